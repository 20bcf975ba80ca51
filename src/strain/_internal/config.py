"""Engine settings loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from strain._internal.errors import ConfigError

DEFAULT_POOL_SIZE = 300
DEFAULT_TIMEOUT = 10.0
DEFAULT_TICK_INTERVAL = 1.0


@dataclass(frozen=True)
class EngineSettings:
    """Process-wide knobs for the request executor and sampler.

    Attributes:
        connection_pool_size: Maximum pooled connections per target host.
        request_timeout: Total per-request timeout in seconds.
        tick_interval: Seconds between live metric snapshots.
    """

    connection_pool_size: int = DEFAULT_POOL_SIZE
    request_timeout: float = DEFAULT_TIMEOUT
    tick_interval: float = DEFAULT_TICK_INTERVAL


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        msg = f"{name} must be an integer, got: {raw!r}"
        raise ConfigError(msg) from None
    if value < 1:
        msg = f"{name} must be >= 1, got: {value}"
        raise ConfigError(msg)
    return value


def _read_seconds(name: str, default: float) -> float:
    raw = os.environ.get(name, str(default))
    try:
        value = float(raw)
    except ValueError:
        msg = f"{name} must be a number, got: {raw!r}"
        raise ConfigError(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got: {value}"
        raise ConfigError(msg)
    return value


def load_settings() -> EngineSettings:
    """Build :class:`EngineSettings` from environment variables.

    Environment variables:
        STRAIN_POOL_SIZE: Connections per host (default: 300).
        STRAIN_TIMEOUT: Request timeout in seconds (default: 10.0).
        STRAIN_TICK_INTERVAL: Snapshot interval in seconds (default: 1.0).

    Raises:
        ConfigError: If a variable holds an invalid value.
    """
    return EngineSettings(
        connection_pool_size=_read_int("STRAIN_POOL_SIZE", DEFAULT_POOL_SIZE),
        request_timeout=_read_seconds("STRAIN_TIMEOUT", DEFAULT_TIMEOUT),
        tick_interval=_read_seconds("STRAIN_TICK_INTERVAL", DEFAULT_TICK_INTERVAL),
    )
