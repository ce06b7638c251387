from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

from .execution.config import (
    DEFAULT_API_HOST,
    DEFAULT_BASE_URL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    validate_base_url,
)
from .execution.judge0_engine import Judge0Engine
from .execution.types import PollBudget

ENV_BASE_URL = "JUDGE0_URL"
ENV_API_KEY = "RAPIDAPI_KEY"
ENV_API_HOST = "RAPIDAPI_HOST"
ENV_MAX_ATTEMPTS = "JUDGE0_MAX_ATTEMPTS"
ENV_INTERVAL_MS = "JUDGE0_INTERVAL_MS"


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the relay settings table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/relay.toml"))
        ```
    """
    if not path.exists():
        return {
            "base_url": DEFAULT_BASE_URL,
            "api_host": DEFAULT_API_HOST,
            "request_timeout_seconds": DEFAULT_REQUEST_TIMEOUT_SECONDS,
            "max_attempts": 10,
            "interval_ms": 1000,
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    settings_obj = raw.get("relay", raw)
    if not isinstance(settings_obj, dict):
        raise ValueError("Relay config must be a TOML table")
    return settings_obj


def _optional_str(value: Any, field_name: str) -> str | None:
    """Validate and normalize an optional string settings field.

    Example:
        ```python
        key = _optional_str("secret", "api_key")
        ```
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string")
    return value.strip() or None


def _int_field(value: Any, field_name: str) -> int:
    """Validate and normalize an integer settings field.

    Example:
        ```python
        attempts = _int_field("10", "max_attempts")
        ```
    """
    if isinstance(value, bool):
        raise ValueError(f"'{field_name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{field_name}' must be an integer") from exc


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_SETTINGS_BASE_URL = str(_DEFAULT_SETTINGS_RAW.get("base_url", DEFAULT_BASE_URL))
DEFAULT_SETTINGS_API_HOST = _optional_str(_DEFAULT_SETTINGS_RAW.get("api_host", DEFAULT_API_HOST), "api_host")
DEFAULT_SETTINGS_TIMEOUT = float(
    _DEFAULT_SETTINGS_RAW.get("request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT_SECONDS)
)
DEFAULT_MAX_ATTEMPTS = _int_field(_DEFAULT_SETTINGS_RAW.get("max_attempts", 10), "max_attempts")
DEFAULT_INTERVAL_MS = _int_field(_DEFAULT_SETTINGS_RAW.get("interval_ms", 1000), "interval_ms")


@dataclass(frozen=True, slots=True)
class RelaySettings:
    """Deployment settings for the remote engine and the poll budget.

    Example:
        ```python
        settings = RelaySettings(base_url="http://localhost:2358", max_attempts=5)
        ```
    """

    base_url: str = DEFAULT_SETTINGS_BASE_URL
    api_key: str | None = None
    api_host: str | None = DEFAULT_SETTINGS_API_HOST
    request_timeout_seconds: float = DEFAULT_SETTINGS_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    interval_ms: int = DEFAULT_INTERVAL_MS
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate settings after dataclass initialization.

        Example:
            ```python
            RelaySettings(request_timeout_seconds=5)
            ```
        """
        validate_base_url(self.base_url)
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")
        if self.api_key and not self.api_host:
            raise ValueError("api_key requires api_host")
        self.budget()

    @classmethod
    def from_file(cls, config_path: str) -> "RelaySettings":
        """Create settings from a TOML file.

        Example:
            ```python
            settings = RelaySettings.from_file("/tmp/relay.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Config file not found: {config_path}")
        raw = _read_settings_toml(path)
        timeout = raw.get("request_timeout_seconds", DEFAULT_SETTINGS_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError("'request_timeout_seconds' must be a number")
        return cls(
            base_url=str(raw.get("base_url", DEFAULT_SETTINGS_BASE_URL)),
            api_key=_optional_str(raw.get("api_key"), "api_key"),
            api_host=_optional_str(raw.get("api_host", DEFAULT_SETTINGS_API_HOST), "api_host"),
            request_timeout_seconds=float(timeout),
            max_attempts=_int_field(raw.get("max_attempts", DEFAULT_MAX_ATTEMPTS), "max_attempts"),
            interval_ms=_int_field(raw.get("interval_ms", DEFAULT_INTERVAL_MS), "interval_ms"),
            config_path=config_path,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        config_path: str | None = None,
    ) -> "RelaySettings":
        """Create settings from an optional TOML file overlaid with environment variables.

        Example:
            ```python
            settings = RelaySettings.from_env({"RAPIDAPI_KEY": "secret"})
            ```
        """
        env = os.environ if environ is None else environ
        base = cls.from_file(config_path) if config_path else cls()
        overrides: dict[str, Any] = {}
        if env.get(ENV_BASE_URL):
            overrides["base_url"] = env[ENV_BASE_URL]
        if env.get(ENV_API_KEY):
            overrides["api_key"] = env[ENV_API_KEY].strip()
        if env.get(ENV_API_HOST):
            overrides["api_host"] = env[ENV_API_HOST].strip()
        if env.get(ENV_MAX_ATTEMPTS):
            overrides["max_attempts"] = _int_field(env[ENV_MAX_ATTEMPTS], ENV_MAX_ATTEMPTS)
        if env.get(ENV_INTERVAL_MS):
            overrides["interval_ms"] = _int_field(env[ENV_INTERVAL_MS], ENV_INTERVAL_MS)
        return replace(base, **overrides) if overrides else base

    def budget(self) -> PollBudget:
        """Return the poll budget configured for this deployment.

        Example:
            ```python
            budget = RelaySettings().budget()
            ```
        """
        return PollBudget(max_attempts=self.max_attempts, interval_ms=self.interval_ms)

    def build_engine(self, engine_cls: type[Judge0Engine] = Judge0Engine) -> Judge0Engine:
        """Create a Judge0 engine from these connection settings.

        `engine_cls` lets callers substitute a compatible engine class.

        Example:
            ```python
            engine = RelaySettings(base_url="http://localhost:2358").build_engine()
            ```
        """
        return engine_cls(
            base_url=self.base_url,
            api_key=self.api_key,
            api_host=self.api_host,
            request_timeout_seconds=self.request_timeout_seconds,
        )
