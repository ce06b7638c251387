from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from .engine import ExecutionEngine
from .status import classify_status
from .types import ExecutionResult, PollBudget, SubmissionToken

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


async def poll_until_terminal(
    engine: ExecutionEngine,
    token: SubmissionToken,
    budget: PollBudget,
    *,
    sleep: Sleeper = asyncio.sleep,
) -> ExecutionResult:
    """Poll a job until it reaches a terminal status or the budget runs out.

    Each attempt waits one interval first, then fetches and classifies the
    snapshot. Running out of attempts is not an error: the last (pending)
    snapshot is returned with `timed_out=True`. A failed fetch raises
    `PollError` from the engine and aborts the loop.

    Example:
        ```python
        result = await poll_until_terminal(engine, token, PollBudget(max_attempts=10, interval_ms=1000))
        ```
    """
    attempt = 0
    while True:
        attempt += 1
        await sleep(budget.interval_seconds)
        snapshot = await engine.fetch_status(token)
        status_class = classify_status(snapshot.status_code)
        logger.debug(
            "Poll %d/%d for %s: status=%s (%s)",
            attempt,
            budget.max_attempts,
            token,
            snapshot.status_code,
            status_class.value,
        )
        if status_class.is_terminal:
            logger.info("Job %s finished with status %s after %d poll(s)", token, snapshot.status_code, attempt)
            return ExecutionResult(snapshot=snapshot, attempts=attempt, timed_out=False)
        if attempt >= budget.max_attempts:
            logger.warning("Job %s still pending after %d poll(s); returning last snapshot", token, attempt)
            return ExecutionResult(snapshot=snapshot, attempts=attempt, timed_out=True)
