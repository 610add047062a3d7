"""Protocol definition for the cluster client."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import IO, Any, Protocol

from ..core.types import BitRecord


class ClusterClient(Protocol):
    """Network client for a bitmap index cluster.

    All methods are network-bound and may raise transport or server errors;
    callers propagate them unchanged.
    """

    def max_slice_by_database(self) -> Mapping[str, int]:
        """Return the highest slice index per database."""
        ...

    def export_csv(self, db: str, frame: str, slice: int, writer: IO[str]) -> None:
        """Write the bits of one slice as CSV rows to ``writer``."""
        ...

    def import_bits(self, db: str, frame: str, slice: int, bits: Sequence[BitRecord]) -> None:
        """Bulk load ``bits``, all belonging to ``slice``."""
        ...

    def backup_to(self, writer: IO[bytes], db: str, frame: str) -> None:
        """Stream an archive of the frame across the cluster into ``writer``."""
        ...

    def restore_from(self, reader: IO[bytes], db: str, frame: str) -> None:
        """Restore the frame from an archive read from ``reader``."""
        ...

    def execute_query(self, db: str, query: str, allow_write: bool) -> Any:
        """Execute a PQL query and return its result."""
        ...
