from __future__ import annotations

from tide.config.loader import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    config_path,
    load_config_file,
    resolve_config,
)
from tide.config.models import ConfigError, RunConfig

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "RunConfig",
    "config_path",
    "load_config_file",
    "resolve_config",
]
