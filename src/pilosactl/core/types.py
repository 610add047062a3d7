"""Common type definitions for pilosactl.

Defines the records, file kinds and container statistics shared by all
components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Textual time format used by the cluster (minute resolution, UTC)
TIME_FORMAT = "%Y-%m-%dT%H:%M"

# Number of profile ids held by a single slice
SLICE_WIDTH = 1 << 20

MAX_UINT64 = (1 << 64) - 1

Position = tuple[int, int]


@dataclass(frozen=True, slots=True)
class BitRecord:
    """A single set bit as read from an import file.

    Attributes:
        bitmap_id: Row identifier (unsigned 64-bit)
        profile_id: Column identifier (unsigned 64-bit)
        timestamp: Nanoseconds since the Unix epoch, 0 when absent
    """

    bitmap_id: int
    profile_id: int
    timestamp: int = 0

    @property
    def position(self) -> Position:
        """Import order key: bitmap id, then profile id."""
        return (self.bitmap_id, self.profile_id)

    @property
    def slice(self) -> int:
        return self.profile_id // SLICE_WIDTH


class FileClassification(Enum):
    """Kinds of files found in a fragment data directory."""

    CONTAINER = "container"
    CACHE = "cache"
    SNAPSHOTTING = "snapshotting"
    UNHANDLED = "unhandled"


@dataclass(frozen=True)
class ContainerInfo:
    """Directory entry for one physical container of a decoded bitmap.

    Attributes:
        key: High bits shared by every value in the container
        type: Representation name ("array", "run" or "bitmap")
        n: Cardinality
        alloc: Allocated size in bytes
        offset: Byte position of the container data within the decoded buffer
    """

    key: int
    type: str
    n: int
    alloc: int
    offset: int


@dataclass(frozen=True)
class BitmapInfo:
    """Aggregate statistics reported for a decoded bitmap file."""

    containers: list[ContainerInfo] = field(default_factory=list)
    op_n: int = 0
