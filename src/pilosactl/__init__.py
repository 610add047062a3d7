"""pilosactl - operator tooling for a distributed bitmap index."""

from .core.config import PilosactlConfig, load_config
from .core.errors import (
    PilosactlError,
    RecordError,
    MalformedRecordError,
    InvalidBitmapIDError,
    InvalidProfileIDError,
    InvalidTimestampError,
    FileIOError,
    MapError,
    DecodeError,
    ConfigError,
    CollaboratorError,
    UsageError,
    UnknownCommandError,
)
from .core.types import BitRecord, BitmapInfo, ContainerInfo, FileClassification

__version__ = "0.1.0"
BUILD_TIME = "not recorded"

__all__ = [
    "PilosactlConfig",
    "load_config",
    "PilosactlError",
    "RecordError",
    "MalformedRecordError",
    "InvalidBitmapIDError",
    "InvalidProfileIDError",
    "InvalidTimestampError",
    "FileIOError",
    "MapError",
    "DecodeError",
    "ConfigError",
    "CollaboratorError",
    "UsageError",
    "UnknownCommandError",
    "BitRecord",
    "BitmapInfo",
    "ContainerInfo",
    "FileClassification",
]
