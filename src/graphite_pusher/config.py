"""Configuration loading and validation for graphite_pusher."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .wire import PAYLOAD_OVERHEAD, SAMPLE_OVERHEAD


@dataclass
class PusherConfig:
    """Destination and dispatch cadence."""

    host: str = "localhost"
    port: int = 2004
    frequency: float = 60.0
    connect_timeout: float | None = 10.0
    max_frame_bytes: int = 1 << 20

    def validate(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"port must be within 1-65535, got {self.port}")
        if self.frequency <= 0:
            raise ConfigError(f"frequency must be positive, got {self.frequency}")
        if self.connect_timeout is not None and self.connect_timeout < 0:
            raise ConfigError(f"connect_timeout must not be negative, got {self.connect_timeout}")
        if self.max_frame_bytes < PAYLOAD_OVERHEAD + SAMPLE_OVERHEAD:
            raise ConfigError(f"max_frame_bytes too small: {self.max_frame_bytes}")


@dataclass
class CollectorConfig:
    """System resource collector settings."""

    enabled: bool = True
    interval_seconds: float = 10.0
    prefix: str = "system"
    cpu: bool = True
    memory: bool = True
    network: bool = True
    network_interface: str = ""


@dataclass
class GraphitePusherConfig:
    """Top-level graphite_pusher configuration."""

    pusher: PusherConfig = field(default_factory=PusherConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    log_level: str = "INFO"


_ENV_MAP = {
    "GRAPHITE_PUSHER_HOST": ("pusher", "host"),
    "GRAPHITE_PUSHER_PORT": ("pusher", "port"),
    "GRAPHITE_PUSHER_FREQUENCY": ("pusher", "frequency"),
    "GRAPHITE_PUSHER_CONNECT_TIMEOUT": ("pusher", "connect_timeout"),
    "GRAPHITE_PUSHER_LOG_LEVEL": ("log_level",),
    "GRAPHITE_PUSHER_COLLECTOR_INTERVAL": ("collector", "interval_seconds"),
    "GRAPHITE_PUSHER_COLLECTOR_PREFIX": ("collector", "prefix"),
}

_INT_KEYS = {"port"}
_FLOAT_KEYS = {"frequency", "connect_timeout", "interval_seconds"}


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using the GRAPHITE_PUSHER_ prefix."""
    for env_key, path in _ENV_MAP.items():
        value = os.environ.get(env_key)
        if value is None:
            continue
        obj = data
        for part in path[:-1]:
            obj = obj.setdefault(part, {})
        final_key = path[-1]
        try:
            if final_key in _INT_KEYS:
                obj[final_key] = int(value)
            elif final_key in _FLOAT_KEYS:
                obj[final_key] = float(value)
            else:
                obj[final_key] = value
        except ValueError as exc:
            raise ConfigError(f"{env_key}={value!r} is not a valid number") from exc
    return data


def _dict_to_config(data: dict[str, Any]) -> GraphitePusherConfig:
    """Convert a raw dictionary to a GraphitePusherConfig dataclass."""
    pusher_data = data.get("pusher", {}) or {}
    collector_data = data.get("collector", {}) or {}

    return GraphitePusherConfig(
        pusher=PusherConfig(**{
            k: v for k, v in pusher_data.items()
            if k in PusherConfig.__dataclass_fields__
        }),
        collector=CollectorConfig(**{
            k: v for k, v in collector_data.items()
            if k in CollectorConfig.__dataclass_fields__
        }),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def load_config(path: str | Path | None = None) -> GraphitePusherConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``graphite_pusher.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("graphite_pusher.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    cfg = _dict_to_config(data)
    cfg.pusher.validate()
    return cfg
