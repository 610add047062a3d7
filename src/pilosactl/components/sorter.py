"""Import-order sorter.

Reorders bulk-load files by (bitmap id, profile id) so that imports touch
storage in its physical order. Uses sortedcontainers.SortedKeyList as the
record buffer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import IO

from sortedcontainers import SortedKeyList

from ..core.errors import FileIOError
from ..core.types import BitRecord
from .bitrecord import encode_record, read_file

logger = logging.getLogger(__name__)

# Output buffer size for rewritten rows
WRITE_BUFFER_BYTES = 1 << 20


def _position(record: BitRecord) -> tuple[int, int]:
    return record.position


class RecordBuffer:
    """In-memory buffer holding every record of one sort run in import order.

    Invariants:
        - Records are always iterated in (bitmap_id, profile_id) order
        - Duplicate records are kept
        - Nothing is emitted until the caller iterates the buffer
    """

    def __init__(self):
        self._records: SortedKeyList = SortedKeyList(key=_position)

    def add(self, record: BitRecord) -> None:
        self._records.add(record)

    def update(self, records: Iterable[BitRecord]) -> None:
        for record in records:
            self._records.add(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def clear(self) -> None:
        self._records.clear()


def sort_records(records: Iterable[BitRecord]) -> list[BitRecord]:
    """Consume ``records`` completely and return them in import order."""
    buf = RecordBuffer()
    buf.update(records)
    return list(buf)


def write_records(records: Iterable[BitRecord], out: IO[str]) -> int:
    """Write records as CSV rows and flush; return the number written.

    Raises:
        FileIOError: if writing or the final flush fails
    """
    count = 0
    chunk: list[str] = []
    chunk_size = 0
    try:
        for record in records:
            line = encode_record(record)
            chunk.append(line)
            chunk_size += len(line)
            count += 1
            if chunk_size >= WRITE_BUFFER_BYTES:
                out.write("".join(chunk))
                chunk.clear()
                chunk_size = 0
        out.write("".join(chunk))
        out.flush()
    except OSError as e:
        raise FileIOError(f"write failed after {count} records: {e}") from e
    return count


def sort_file(path: str | Path, out: IO[str]) -> int:
    """Sort the import file at ``path`` into ``out``.

    The whole file is decoded before anything is written, so a bad row
    aborts the run with no output.

    Returns:
        Number of records written

    Raises:
        FileIOError: if the file cannot be read or the output cannot be written
        RecordError: on the first row that cannot be decoded
    """
    buf = RecordBuffer()
    buf.update(read_file(path))

    logger.info(f"Sorted {len(buf)} records from {path}")
    return write_records(buf, out)
