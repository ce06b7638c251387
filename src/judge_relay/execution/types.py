from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NewType

from .status import MALFORMED_STATUS_CODE

SubmissionToken = NewType("SubmissionToken", str)


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """One code-execution request sent to a remote engine.

    Example:
        ```python
        req = ExecutionRequest(source_code="print(input())", language_id=71, stdin="hi")
        ```
    """

    source_code: str
    language_id: int
    stdin: str = ""

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for the engine submission endpoint.

        Example:
            ```python
            body = ExecutionRequest("print(1)", 71).to_payload()
            ```
        """
        return {
            "source_code": self.source_code,
            "language_id": self.language_id,
            "stdin": self.stdin,
        }


@dataclass(frozen=True, slots=True)
class PollBudget:
    """Attempt count and fixed delay bounding one poll loop.

    Example:
        ```python
        budget = PollBudget(max_attempts=10, interval_ms=1000)
        ```
    """

    max_attempts: int = 10
    interval_ms: int = 1000

    def __post_init__(self) -> None:
        """Validate budget bounds after dataclass initialization.

        Example:
            ```python
            PollBudget(max_attempts=1, interval_ms=0)
            ```
        """
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_ms < 0:
            raise ValueError("interval_ms must not be negative")

    @property
    def interval_seconds(self) -> float:
        """Return the delay between fetches in seconds.

        Example:
            ```python
            delay = PollBudget(interval_ms=250).interval_seconds
            ```
        """
        return self.interval_ms / 1000


def _optional_str(value: Any) -> str | None:
    """Normalize an optional text field from an engine response.

    Example:
        ```python
        text = _optional_str(None)
        ```
    """
    if value is None:
        return None
    return str(value)


def _optional_number(value: Any) -> float | None:
    """Normalize an optional numeric field, tolerating numeric strings.

    Example:
        ```python
        seconds = _optional_number("0.012")
        ```
    """
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _status_code(value: Any) -> int:
    """Coerce a reported status id into an integer code.

    Anything that is not an integral number is reported as
    `MALFORMED_STATUS_CODE` so that it classifies as terminal.

    Example:
        ```python
        code = _status_code("3")
        ```
    """
    if isinstance(value, bool):
        return MALFORMED_STATUS_CODE
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else MALFORMED_STATUS_CODE
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return MALFORMED_STATUS_CODE
    return MALFORMED_STATUS_CODE


@dataclass(frozen=True, slots=True)
class StatusSnapshot:
    """The engine's current view of one submitted job.

    Example:
        ```python
        snap = StatusSnapshot.from_response({"status": {"id": 3, "description": "Accepted"}, "stdout": "hi\\n"})
        ```
    """

    status_code: int | None
    status_description: str | None = None
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    time: float | None = None
    memory: float | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, body: dict[str, Any]) -> "StatusSnapshot":
        """Build a snapshot from a Judge0 status response body.

        Example:
            ```python
            snap = StatusSnapshot.from_response({"status_id": 2})
            ```
        """
        status = body.get("status")
        status_code: int | None = None
        description: str | None = None
        if isinstance(status, dict):
            if status.get("id") is not None:
                status_code = _status_code(status["id"])
            description = _optional_str(status.get("description"))
        elif status is not None:
            status_code = MALFORMED_STATUS_CODE
        if status_code is None and body.get("status_id") is not None:
            status_code = _status_code(body["status_id"])
        return cls(
            status_code=status_code,
            status_description=description,
            stdout=_optional_str(body.get("stdout")),
            stderr=_optional_str(body.get("stderr")),
            compile_output=_optional_str(body.get("compile_output")),
            time=_optional_number(body.get("time")),
            memory=_optional_number(body.get("memory")),
            raw=dict(body),
        )


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Last snapshot observed when polling stopped.

    `timed_out` is true when the poll budget ran out while the job was still
    pending; the snapshot is then the final pending one.

    Example:
        ```python
        result = ExecutionResult(snapshot=snap, attempts=1, timed_out=False)
        ```
    """

    snapshot: StatusSnapshot
    attempts: int
    timed_out: bool = False
