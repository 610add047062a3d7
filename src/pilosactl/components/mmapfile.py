"""Read-only memory mapping of data files.

Provides a scoped mapping that is released on every exit path.
"""

from __future__ import annotations

import logging
import mmap
import os
from pathlib import Path

from ..core.errors import FileIOError, MapError

logger = logging.getLogger(__name__)


class MappedFile:
    """Read-only, shared memory map of an entire file.

    Args:
        path: File to map

    Invariants:
        - The file is never written
        - ``view`` is only valid between open() and close()
        - close() is idempotent and runs on every exit from a with block
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.size = 0
        self._fd = None
        self._mmap: mmap.mmap | None = None
        self._view: memoryview | None = None

    def open(self) -> MappedFile:
        """Open, stat and map the file."""
        try:
            self._fd = open(self.path, "rb")
            self.size = os.fstat(self._fd.fileno()).st_size
        except OSError as e:
            self.close()
            raise FileIOError(f"cannot open {self.path}: {e}") from e

        try:
            self._mmap = mmap.mmap(self._fd.fileno(), self.size, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as e:
            self.close()
            raise MapError(f"cannot map {self.path}: {e}") from e

        self._view = memoryview(self._mmap)
        logger.info(f"Mapped {self.size} bytes from {self.path}")
        return self

    @property
    def view(self) -> memoryview:
        """Zero-copy view of the mapped bytes."""
        if self._view is None:
            raise MapError(f"{self.path} is not mapped")
        return self._view

    def close(self) -> None:
        """Unmap and close the file."""
        try:
            if self._view is not None:
                self._view.release()
            if self._mmap is not None:
                self._mmap.close()
        except BufferError:
            # A decoder still holds a slice; the map is released with it.
            logger.warning(f"Mapping of {self.path} still referenced, deferring unmap")
        self._view = None
        self._mmap = None
        if self._fd is not None:
            self._fd.close()
            self._fd = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
