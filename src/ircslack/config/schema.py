"""Config schema and accessor."""

from __future__ import annotations

import os
import re
from typing import Any

from loguru import logger

from ircslack.core.constants import (
    BASE_URL,
    CACHE_TTL_SECONDS,
    DEFAULT_LOGLINES,
    DEFAULT_TIMEOUT,
    SLACK_SERVER_PATTERN,
)
from ircslack.core.errors import SlackConfigurationError

CONFIG_KEYS = (
    "slack_token",
    "default_loglines",
    "slack_base_url",
    "slack_timeout_seconds",
    "cache_ttl_seconds",
    "server_pattern",
)

# Env keys that override config (loaded once per reload)
_ENV_OVERRIDE_KEYS = (
    "SLACK_TOKEN",
    "SLACK_API_BASE_URL",
)


def _load_env_overrides() -> dict[str, str]:
    return {k: os.environ.get(k, "") for k in _ENV_OVERRIDE_KEYS}


class Config:
    """Typed view of the settings file plus the SLACK_* environment overrides."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data."""
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            self._validate()
        logger.debug("Config reloaded: {} keys", len(self._data))

    def _validate(self) -> None:
        """Validate value ranges; raise SlackConfigurationError on failure."""
        for key in ("slack_timeout_seconds", "cache_ttl_seconds", "default_loglines"):
            value = self._data.get(key)
            if value is None:
                continue
            try:
                number = float(value)
            except (TypeError, ValueError) as exc:
                raise SlackConfigurationError(
                    f"{key} must be a number",
                    code="invalid_number",
                    details={"key": key, "value": value},
                    original_error=exc,
                ) from exc
            if number <= 0:
                raise SlackConfigurationError(
                    f"{key} must be positive",
                    code="non_positive",
                    details={"key": key, "value": value},
                )
        pattern = self._data.get("server_pattern")
        if pattern is not None:
            try:
                re.compile(str(pattern))
            except re.error as exc:
                raise SlackConfigurationError(
                    "server_pattern is not a valid regular expression",
                    code="invalid_pattern",
                    details={"pattern": pattern},
                    original_error=exc,
                ) from exc

    @property
    def slack_base_url(self) -> str:
        val = self._env.get("SLACK_API_BASE_URL") or self._data.get("slack_base_url") or BASE_URL
        val = str(val)
        return val if val.endswith("/") else f"{val}/"

    @property
    def slack_timeout_seconds(self) -> float:
        return float(self._data.get("slack_timeout_seconds", DEFAULT_TIMEOUT))

    @property
    def cache_ttl_seconds(self) -> int:
        return int(self._data.get("cache_ttl_seconds", CACHE_TTL_SECONDS))

    @property
    def server_pattern(self) -> str:
        return str(self._data.get("server_pattern", SLACK_SERVER_PATTERN))

    @property
    def default_token(self) -> str:
        """Initial slack_token setting; SLACK_TOKEN env wins over the file."""
        env_val = self._env.get("SLACK_TOKEN", "")
        if env_val:
            return env_val
        return str(self._data.get("slack_token", "") or "")

    @property
    def default_loglines(self) -> int:
        return int(self._data.get("default_loglines", DEFAULT_LOGLINES))


cfg: Config = Config({})
