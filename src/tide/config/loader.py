from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Mapping

from tide.config.models import ConfigError, RunConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TIDE_CONFIG"
DEFAULT_CONFIG_PATH = "config.toml"

# file key -> RunConfig field
_FIELDS: dict[str, tuple[str, type]] = {
    "url": ("url", str),
    "concurrency": ("concurrency", int),
    "duration": ("duration_sec", int),
    "timeout": ("timeout_sec", int),
    "retries": ("max_retries", int),
}


def config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    if explicit is not None:
        return Path(explicit)
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))


def load_config_file(path: str | os.PathLike[str]) -> RunConfig:
    """Parse a TOML run configuration.

    Raises ConfigError when the file is missing, is not valid TOML, or lacks
    a key or carries a value of the wrong type. Value ranges are not checked
    here; call RunConfig.validate on the result.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("rb") as fh:
            raw = tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid config file {path}: {exc}") from exc
    return RunConfig(**_coerce(raw, path))


def resolve_config(cli_config: RunConfig, path: str | os.PathLike[str] | None = None) -> RunConfig:
    """Prefer the config file when it loads, otherwise fall back to the CLI values."""
    try:
        return load_config_file(config_path(path))
    except ConfigError as exc:
        logger.warning("%s, using command-line arguments", exc)
        return cli_config


def _coerce(raw: Mapping[str, Any], path: Path) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key, (field_name, kind) in _FIELDS.items():
        if key not in raw:
            raise ConfigError(f"Missing '{key}' in config file {path}")
        value = raw[key]
        # bool is an int subclass in Python; TOML booleans are never valid here
        if isinstance(value, bool) or not isinstance(value, kind):
            raise ConfigError(f"'{key}' in config file {path} must be {kind.__name__}")
        values[field_name] = value
    return values
