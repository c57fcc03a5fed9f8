"""Read the plugin's YAML settings file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from ircslack.config.schema import CONFIG_KEYS
from ircslack.core.errors import SlackConfigurationError


def load_config(path: str | Path) -> dict[str, Any]:
    """Top-level mapping of ``path``; ``{}`` when the file is absent or not a mapping.

    Unknown keys are kept but reported, since a typo would otherwise fall
    back to the default silently. YAML syntax errors raise
    SlackConfigurationError with code ``invalid_yaml``.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise SlackConfigurationError(
            f"{path} is not valid YAML",
            code="invalid_yaml",
            details={"path": str(path)},
            original_error=exc,
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file {} ignored: expected a mapping, got {}", path, type(data).__name__)
        return {}

    for key in sorted(set(data) - set(CONFIG_KEYS)):
        logger.warning("Unknown key {!r} in {}", key, path)
    return data


def load_config_with_env(path: str | Path, env_file: str | Path | None = None) -> dict[str, Any]:
    """Load ``env_file`` (or a ``.env`` found from the cwd) into os.environ, then ``path``."""
    load_dotenv(env_file)
    return load_config(path)
