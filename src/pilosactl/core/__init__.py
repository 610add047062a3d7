"""pilosactl core: types, errors and configuration."""

from .config import PilosactlConfig
from .types import BitRecord

__all__ = ["PilosactlConfig", "BitRecord"]
