"""Configuration: YAML + env overlay."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from relaybus.errors import EventbusConfigurationError

DEFAULT_EVENTBUS_NAME = "mainEventbus"

# Environment variable -> config key applied by load_config_with_env
ENV_OVERRIDES = {
    "RELAYBUS_EVENTBUS_NAME": "eventbus_name",
    "RELAYBUS_LOG_LEVEL": "log_level",
}


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | Path) -> dict[str, Any]:
    """Load config from YAML file. Use SafeLoader. Returns raw dict."""
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise EventbusConfigurationError(
            f"Failed to parse config {path}",
            code="config_parse",
            details={"path": str(path)},
            original_error=exc,
        ) from exc

    if not isinstance(data, dict):
        if data is not None:
            logger.warning("Config file {} has invalid structure (expected dict)", path)
        return {}
    return data


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load config from YAML and overlay env-derived values.

    Loads .env via python-dotenv when present, then applies ENV_OVERRIDES.
    """
    from dotenv import load_dotenv

    load_dotenv()
    data = load_config(path)
    overrides = {key: os.environ[env] for env, key in ENV_OVERRIDES.items() if os.environ.get(env)}
    return _deep_update(data, overrides)


class Config:
    """Config accessor with attribute-style access for nested keys."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}

    def reload(self, data: dict[str, Any]) -> None:
        """Replace config data."""
        self._data = data or {}

    @property
    def raw(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'logging.level')."""
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def eventbus_name(self) -> str:
        """Name given to the process-wide main event bus."""
        return str(self._data.get("eventbus_name") or DEFAULT_EVENTBUS_NAME)

    @property
    def log_level(self) -> str | None:
        """Log level override (DEBUG/INFO/WARNING/ERROR); None when unset."""
        level = self._data.get("log_level")
        return str(level).upper() if level else None

    @property
    def intercepted_loggers(self) -> list[str]:
        """Standard-library loggers routed into loguru."""
        loggers = self._data.get("intercepted_loggers")
        return [str(name) for name in loggers] if isinstance(loggers, list) else ["asyncio"]


# Global config instance
cfg: Config = Config({})
