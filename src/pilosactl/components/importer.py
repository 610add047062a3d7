"""Bulk importer.

Streams bit records from CSV files and sends them to the cluster one slice at
a time, in import order.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from pathlib import Path

from ..core.types import BitRecord
from ..interfaces.client import ClusterClient
from .bitrecord import read_file
from .sorter import sort_records

logger = logging.getLogger(__name__)


def group_by_slice(records: Iterable[BitRecord]) -> dict[int, list[BitRecord]]:
    """Split records by slice, preserving import order within each slice."""
    groups: dict[int, list[BitRecord]] = defaultdict(list)
    for record in records:
        groups[record.slice].append(record)
    return groups


class Importer:
    """Buffered bulk importer for one database frame.

    Args:
        client: Cluster client
        db: Database name
        frame: Frame name
        buffer_size: Records held in memory before sending

    Invariants:
        - Each import call carries bits of a single slice
        - Bits within a call are in (bitmap_id, profile_id) order
    """

    def __init__(self, client: ClusterClient, db: str, frame: str, buffer_size: int = 10_000_000):
        self.client = client
        self.db = db
        self.frame = frame
        self.buffer_size = buffer_size
        self._buffer: list[BitRecord] = []
        self.imported = 0

    def add(self, record: BitRecord) -> None:
        self._buffer.append(record)
        if len(self._buffer) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        """Send every buffered record to the cluster."""
        if not self._buffer:
            return

        groups = group_by_slice(sort_records(self._buffer))
        for slice_index in sorted(groups):
            bits = groups[slice_index]
            logger.info(f"importing slice: {slice_index}, n={len(bits)}")
            self.client.import_bits(self.db, self.frame, slice_index, bits)
            self.imported += len(bits)
        self._buffer.clear()

    def import_path(self, path: str | Path) -> None:
        """Import every record of the CSV file at ``path``."""
        logger.info(f"parsing: {path}")
        for record in read_file(path):
            self.add(record)
        self.flush()
