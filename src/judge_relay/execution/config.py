from __future__ import annotations

from dataclasses import dataclass

import httpx

DEFAULT_BASE_URL = "https://judge0-ce.p.rapidapi.com"
DEFAULT_API_HOST = "judge0-ce.p.rapidapi.com"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
API_KEY_HEADER = "X-RapidAPI-Key"
API_HOST_HEADER = "X-RapidAPI-Host"
SUBMISSION_QUERY = {"base64_encoded": "false", "fields": "*"}

LANGUAGE_ALIASES = {
    "python": 71,
    "java": 62,
    "javascript": 63,
    "cpp": 54,
}
MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class EngineConnection:
    """Connection settings for one Judge0 deployment.

    Example:
        ```python
        conn = EngineConnection(base_url="http://localhost:2358")
        ```
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    api_host: str | None = None
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    def headers(self) -> dict[str, str]:
        """Return credential headers for engine requests.

        Example:
            ```python
            headers = EngineConnection(api_key="k", api_host=DEFAULT_API_HOST).headers()
            ```
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers[API_KEY_HEADER] = self.api_key
            if self.api_host:
                headers[API_HOST_HEADER] = self.api_host
        return headers


def validate_base_url(base_url: str) -> str:
    """Validate and normalize an engine base URL.

    Example:
        ```python
        url = validate_base_url("http://localhost:2358/")
        ```
    """
    cleaned = base_url.strip().rstrip("/")
    try:
        url = httpx.URL(cleaned)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid engine base URL: {base_url!r}") from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise ValueError(
            "Engine base URL must start with http:// or https://. "
            f"Invalid URL: {base_url!r}"
        )
    if url.port is not None and not 0 < url.port <= MAX_PORT:
        raise ValueError(f"Engine base URL port must be between 1 and {MAX_PORT}: {base_url!r}")
    return cleaned


def masked_headers(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of request headers safe to log.

    Example:
        ```python
        safe = masked_headers({"X-RapidAPI-Key": "secret"})
        ```
    """
    return {
        key: "[REDACTED]" if key.lower() == API_KEY_HEADER.lower() else value
        for key, value in headers.items()
    }


def resolve_language_id(value: str | int) -> int:
    """Resolve a language alias or numeric id to a Judge0 language id.

    Example:
        ```python
        lang = resolve_language_id("python")
        ```
    """
    if isinstance(value, bool):
        raise ValueError(f"Unknown language: {value!r}")
    if isinstance(value, int):
        return value
    cleaned = value.strip().lower()
    if cleaned.isdigit():
        return int(cleaned)
    if cleaned in LANGUAGE_ALIASES:
        return LANGUAGE_ALIASES[cleaned]
    known = ", ".join(sorted(LANGUAGE_ALIASES))
    raise ValueError(f"Unknown language: {value!r}. Known aliases: {known}")
