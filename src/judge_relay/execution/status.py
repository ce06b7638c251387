from __future__ import annotations

from enum import Enum

IN_QUEUE = 1
PROCESSING = 2
ACCEPTED = 3
MALFORMED_STATUS_CODE = -1

PENDING_STATUS_CODES = frozenset({IN_QUEUE, PROCESSING})

STATUS_DESCRIPTIONS = {
    1: "In Queue",
    2: "Processing",
    3: "Accepted",
    4: "Wrong Answer",
    5: "Time Limit Exceeded",
    6: "Compilation Error",
    7: "Runtime Error (SIGSEGV)",
    8: "Runtime Error (SIGXFSZ)",
    9: "Runtime Error (SIGFPE)",
    10: "Runtime Error (SIGABRT)",
    11: "Runtime Error (NZEC)",
    12: "Runtime Error (Other)",
    13: "Internal Error",
    14: "Exec Format Error",
}


class StatusClass(str, Enum):
    """Classification of an engine status code.

    Example:
        ```python
        assert StatusClass.PENDING.is_terminal is False
        ```
    """

    PENDING = "pending"
    TERMINAL_SUCCESS = "terminal-success"
    TERMINAL_FAILURE = "terminal-failure"

    @property
    def is_terminal(self) -> bool:
        """Return whether the job will not change any further.

        Example:
            ```python
            done = StatusClass.TERMINAL_FAILURE.is_terminal
            ```
        """
        return self is not StatusClass.PENDING


def classify_status(status_code: int | None) -> StatusClass:
    """Map an engine status code to its classification.

    A missing code means the engine has not reported a status yet and counts
    as pending. Codes outside the documented table, including
    `MALFORMED_STATUS_CODE`, are terminal failures so that polling always stops.

    Example:
        ```python
        cls = classify_status(6)
        ```
    """
    if status_code is None or status_code in PENDING_STATUS_CODES:
        return StatusClass.PENDING
    if status_code == ACCEPTED:
        return StatusClass.TERMINAL_SUCCESS
    return StatusClass.TERMINAL_FAILURE


def is_terminal(status_code: int | None) -> bool:
    """Return whether a status code ends polling.

    Example:
        ```python
        stop = is_terminal(3)
        ```
    """
    return classify_status(status_code).is_terminal


def describe_status(status_code: int | None) -> str:
    """Return a human-readable label for a status code.

    Example:
        ```python
        label = describe_status(5)
        ```
    """
    if status_code is None:
        return "Unknown"
    if status_code == MALFORMED_STATUS_CODE:
        return "Malformed status"
    return STATUS_DESCRIPTIONS.get(status_code, f"Unknown ({status_code})")
