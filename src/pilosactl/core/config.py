"""Configuration for pilosactl.

Defines the tunable settings and loads them from a TOML file plus
environment overrides.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "PILOSACTL_CONFIG"

# Environment variable -> config field
ENV_OVERRIDES = {
    "PILOSACTL_HOST": "host",
    "PILOSACTL_CODEC": "codec",
    "PILOSACTL_CLIENT": "client",
}


@dataclass
class PilosactlConfig:
    """Configuration parameters for pilosactl.

    Attributes:
        host: Default cluster host:port for network commands
        codec: Import string ("module:attr") of the bitmap codec
        client: Import string ("module:attr") of the cluster client factory
        log_level: Logging level name for the diagnostic stream
        import_buffer_size: Records buffered by import before sending
        bench_max_bitmap_id: Upper bound (exclusive) of random bitmap ids
        bench_max_profile_id: Upper bound (exclusive) of random profile ids
    """

    host: str = "localhost:15000"
    codec: str | None = None
    client: str | None = None
    log_level: str = "INFO"
    import_buffer_size: int = 10_000_000
    bench_max_bitmap_id: int = 1000
    bench_max_profile_id: int = 100_000

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "PilosactlConfig":
        known = {f.name for f in fields(PilosactlConfig)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")

        cfg = PilosactlConfig(**d)
        if cfg.import_buffer_size <= 0:
            raise ConfigError("import_buffer_size must be positive")
        if not isinstance(logging.getLevelName(cfg.log_level.upper()), int):
            raise ConfigError(f"invalid log_level: {cfg.log_level!r}")
        return cfg


def load_config(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> PilosactlConfig:
    """Load configuration from TOML and apply environment overrides.

    The file is taken from ``path`` or the PILOSACTL_CONFIG variable. When
    neither is set, defaults are used.
    """
    environ = os.environ if environ is None else environ
    if path is None and environ.get(CONFIG_ENV):
        path = environ[CONFIG_ENV]

    data: dict[str, Any] = {}
    if path is not None:
        path = Path(path)
        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"cannot read config {path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid config {path}: {e}") from e
        logger.debug(f"Loaded config from {path}")

    for var, name in ENV_OVERRIDES.items():
        if environ.get(var):
            data[name] = environ[var]

    return PilosactlConfig.from_dict(data)
