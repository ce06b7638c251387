from __future__ import annotations

import asyncio
import logging

from .errors import ExecutionFailed, PollError, SubmissionError
from .execution.engine import ExecutionEngine
from .execution.poller import Sleeper, poll_until_terminal
from .execution.types import ExecutionRequest, ExecutionResult, PollBudget

logger = logging.getLogger(__name__)


async def run_code(
    request: ExecutionRequest,
    engine: ExecutionEngine,
    budget: PollBudget | None = None,
    *,
    sleep: Sleeper = asyncio.sleep,
) -> ExecutionResult:
    """Submit code to a remote engine and wait for its outcome.

    Submission and status-fetch failures are raised as `ExecutionFailed`
    with the original error as `__cause__`. Exhausting the budget is not a
    failure; check `ExecutionResult.timed_out`.

    Example:
        ```python
        from judge_relay import ExecutionRequest, Judge0Engine, run_code
        engine = Judge0Engine(base_url="http://localhost:2358")
        result = await run_code(ExecutionRequest("print(1)", 71), engine=engine)
        ```
    """
    effective_budget = budget or PollBudget()
    try:
        token = await engine.submit(request)
    except SubmissionError as exc:
        logger.error("Submission failed: %s", exc)
        raise ExecutionFailed("Code execution failed") from exc

    try:
        return await poll_until_terminal(engine, token, effective_budget, sleep=sleep)
    except PollError as exc:
        logger.error("Polling %s failed: %s", token, exc)
        raise ExecutionFailed("Code execution failed") from exc


def run_code_sync(
    request: ExecutionRequest,
    engine: ExecutionEngine,
    budget: PollBudget | None = None,
) -> ExecutionResult:
    """Run `run_code` to completion from synchronous code.

    Example:
        ```python
        result = run_code_sync(ExecutionRequest("print(1)", 71), engine=engine)
        ```
    """
    return asyncio.run(run_code(request, engine, budget))
