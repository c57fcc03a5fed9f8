"""Configuration: YAML + env overlay."""

from ircslack.config.loader import load_config, load_config_with_env
from ircslack.config.schema import CONFIG_KEYS, Config, cfg

__all__ = ["CONFIG_KEYS", "Config", "cfg", "load_config", "load_config_with_env"]
