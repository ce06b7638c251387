from __future__ import annotations

from typing import Protocol

from .types import ExecutionRequest, StatusSnapshot, SubmissionToken


class ExecutionEngine(Protocol):
    async def submit(self, request: ExecutionRequest) -> SubmissionToken:
        """Submit one request and return the engine's job token.

        Example:
            ```python
            token = await engine.submit(ExecutionRequest("print(1)", 71))
            ```
        """
        ...

    async def fetch_status(self, token: SubmissionToken) -> StatusSnapshot:
        """Fetch the current snapshot for a job token.

        Example:
            ```python
            snap = await engine.fetch_status(token)
            ```
        """
        ...
