"""
Process-wide settings and logging setup.

Settings are resolved once at call time from (highest priority first):
explicit overrides, NAMEID_* environment variables, ~/.nameid/config.toml,
and the package defaults. Library code never changes them afterwards.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from nameid import (
    DEFAULT_CORE_API_URL,
    DEFAULT_HUB_URL,
    HTTP_TIMEOUT_SECS,
    MAINNET_ADDRESS_VERSION,
)

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".nameid" / "config.toml"
DEFAULT_TRANSIT_KEY_PATH = Path.home() / ".nameid" / "transit_key"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_ENV_VARS = {
    "core_api_url": "NAMEID_CORE_API_URL",
    "hub_url": "NAMEID_HUB_URL",
    "http_timeout": "NAMEID_HTTP_TIMEOUT",
    "log_level": "NAMEID_LOG_LEVEL",
    "transit_key_path": "NAMEID_TRANSIT_KEY_PATH",
}


@dataclass(frozen=True)
class Settings:
    core_api_url: str = DEFAULT_CORE_API_URL
    hub_url: str = DEFAULT_HUB_URL
    address_version: int = MAINNET_ADDRESS_VERSION
    http_timeout: float = HTTP_TIMEOUT_SECS
    log_level: str = "INFO"
    transit_key_path: Path = DEFAULT_TRANSIT_KEY_PATH

    def to_dict(self) -> dict[str, Any]:
        return {
            "core_api_url": self.core_api_url,
            "hub_url": self.hub_url,
            "address_version": self.address_version,
            "http_timeout": self.http_timeout,
            "log_level": self.log_level,
            "transit_key_path": str(self.transit_key_path),
        }


def _coerce(field: str, value: Any) -> Any:
    if field == "http_timeout":
        return float(value)
    if field == "address_version":
        return int(value, 0) if isinstance(value, str) else int(value)
    if field == "transit_key_path":
        return Path(value).expanduser()
    if field == "log_level":
        return str(value).upper()
    return str(value)


def _load_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Failed to load config from %s: %s", path, e)
        return {}
    # Accept either a flat file or a [nameid] table
    return data.get("nameid", data)


def load_settings(config_path: Path | None = None, **overrides: Any) -> Settings:
    """Resolve settings from overrides, environment, config file and defaults."""
    settings = Settings()
    known = set(settings.to_dict())

    values: dict[str, Any] = {}
    for key, value in _load_file(config_path or DEFAULT_CONFIG_PATH).items():
        if key in known:
            values[key] = value
        else:
            log.warning("Ignoring unknown config key %r", key)

    for field, env in _ENV_VARS.items():
        if os.environ.get(env):
            values[field] = os.environ[env]

    values.update({k: v for k, v in overrides.items() if v is not None})

    unknown = set(values) - known
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")

    return replace(settings, **{k: _coerce(k, v) for k, v in values.items()})


def configure_logging(level: str | int = "INFO") -> None:
    """Install the root handler. Call once from the host application."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
