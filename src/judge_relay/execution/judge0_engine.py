from __future__ import annotations

import logging

import httpx

from ..errors import PollError, SubmissionError
from .config import (
    DEFAULT_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    SUBMISSION_QUERY,
    EngineConnection,
    masked_headers,
    validate_base_url,
)
from .types import ExecutionRequest, StatusSnapshot, SubmissionToken

logger = logging.getLogger(__name__)


class Judge0Engine:
    """Submit code to a Judge0 deployment and fetch job status by token.

    Example:
        ```python
        engine = Judge0Engine(base_url="http://localhost:2358")
        ```
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        api_host: str | None = None,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize engine connection settings.

        Example:
            ```python
            engine = Judge0Engine(api_key="secret", api_host="judge0-ce.p.rapidapi.com")
            ```
        """
        self._connection = EngineConnection(
            base_url=validate_base_url(base_url),
            api_key=api_key or None,
            api_host=api_host or None,
            request_timeout_seconds=request_timeout_seconds,
        )
        self._transport = transport
        self._validate_connection_options()

    @property
    def connection(self) -> EngineConnection:
        """Return the effective connection settings.

        Example:
            ```python
            url = engine.connection.base_url
            ```
        """
        return self._connection

    async def submit(self, request: ExecutionRequest) -> SubmissionToken:
        """Send one request to the submission endpoint and return its token.

        Example:
            ```python
            token = await engine.submit(ExecutionRequest("print(1)", 71))
            ```
        """
        url = f"{self._connection.base_url}/submissions"
        logger.debug(
            "Judge0 submit: POST %s language_id=%s headers=%s",
            url,
            request.language_id,
            masked_headers(self._connection.headers()),
        )
        try:
            async with self._client() as client:
                response = await client.post(url, params=SUBMISSION_QUERY, json=request.to_payload())
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise SubmissionError(
                f"Engine rejected submission: HTTP {exc.response.status_code} {_excerpt(exc.response)}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SubmissionError(f"Failed to reach engine at {url}: {exc}") from exc
        except ValueError as exc:
            raise SubmissionError(f"Engine returned invalid JSON for submission: {exc}") from exc

        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token.strip():
            raise SubmissionError("Engine response did not include a submission token")
        logger.info("Submitted job %s (language_id=%s)", token, request.language_id)
        return SubmissionToken(token)

    async def fetch_status(self, token: SubmissionToken) -> StatusSnapshot:
        """Fetch the current status snapshot for a submission token.

        Example:
            ```python
            snap = await engine.fetch_status(token)
            ```
        """
        url = f"{self._connection.base_url}/submissions/{token}"
        try:
            async with self._client() as client:
                response = await client.get(url, params=SUBMISSION_QUERY)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            raise PollError(
                f"Status fetch for {token} failed: HTTP {exc.response.status_code} {_excerpt(exc.response)}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise PollError(f"Failed to reach engine at {url}: {exc}") from exc
        except ValueError as exc:
            raise PollError(f"Engine returned invalid JSON for {token}: {exc}") from exc

        if not isinstance(body, dict):
            raise PollError(f"Engine returned a non-object status body for {token}")
        return StatusSnapshot.from_response(body)

    def _client(self) -> httpx.AsyncClient:
        """Create a short-lived HTTP client for one engine round-trip.

        Example:
            ```python
            async with engine._client() as client:
                ...
            ```
        """
        return httpx.AsyncClient(
            headers=self._connection.headers(),
            timeout=httpx.Timeout(self._connection.request_timeout_seconds),
            transport=self._transport,
        )

    def _validate_connection_options(self) -> None:
        """Validate credential and timeout settings.

        Example:
            ```python
            engine._validate_connection_options()
            ```
        """
        if self._connection.api_key and not self._connection.api_host:
            raise ValueError("api_key requires api_host")
        if self._connection.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")


def _excerpt(response: httpx.Response, limit: int = 200) -> str:
    """Return a short excerpt of a response body for error messages.

    Example:
        ```python
        text = _excerpt(response)
        ```
    """
    return response.text[:limit]
