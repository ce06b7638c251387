from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from .errors import ExecutionFailed
from .execution.config import resolve_language_id
from .execution.engine import ExecutionEngine
from .execution.poller import Sleeper
from .execution.types import ExecutionRequest, PollBudget
from .runner import run_code

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Code execution failed"


def _first_present(body: Mapping[str, Any], *keys: str) -> Any:
    """Return the value of the first key present in a request body.

    Example:
        ```python
        code = _first_present({"sourceCode": "print(1)"}, "source_code", "sourceCode")
        ```
    """
    for key in keys:
        if key in body:
            return body[key]
    return None


def parse_request(body: Mapping[str, Any]) -> ExecutionRequest:
    """Build an ExecutionRequest from a raw request body.

    Accepts both snake_case and camelCase field names.

    Example:
        ```python
        req = parse_request({"source_code": "print(1)", "language_id": 71, "stdin": ""})
        ```
    """
    source_code = _first_present(body, "source_code", "sourceCode")
    if not isinstance(source_code, str) or not source_code.strip():
        raise ValueError("'source_code' must be a non-empty string")

    raw_language = _first_present(body, "language_id", "languageId")
    if raw_language is None:
        raise ValueError("'language_id' is required")
    if isinstance(raw_language, float) and raw_language.is_integer():
        raw_language = int(raw_language)
    if not isinstance(raw_language, (int, str)):
        raise ValueError("'language_id' must be an integer")
    language_id = resolve_language_id(raw_language)

    stdin = body.get("stdin")
    if stdin is None:
        stdin = ""
    if not isinstance(stdin, str):
        raise ValueError("'stdin' must be a string")
    return ExecutionRequest(source_code=source_code, language_id=language_id, stdin=stdin)


async def handle_execute(
    body: Mapping[str, Any],
    engine: ExecutionEngine,
    budget: PollBudget | None = None,
    *,
    sleep: Sleeper = asyncio.sleep,
) -> tuple[int, dict[str, Any]]:
    """Serve one execute request and return an HTTP-style status and body.

    The body is the engine's last status response as-is, whether the job
    finished or the poll budget ran out. Fatal errors return a generic
    failure message with no partial result.

    Example:
        ```python
        status, payload = await handle_execute({"source_code": "print(1)", "language_id": 71}, engine)
        ```
    """
    try:
        request = parse_request(body)
    except ValueError as exc:
        return 400, {"message": str(exc)}

    try:
        result = await run_code(request, engine, budget, sleep=sleep)
    except ExecutionFailed as exc:
        logger.error("Execute request failed: %s", exc.__cause__ or exc)
        return 500, {"message": FAILURE_MESSAGE}
    return 200, dict(result.snapshot.raw)
