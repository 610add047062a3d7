"""Consistency checker for fragment data files.

Routes each path by classification, validates bitmap files with the codec and
reports every defect found. Defects are results, not failures.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from ..core.types import FileClassification
from ..interfaces.codec import BitmapCodec
from .classifier import classify
from .inspector import decode_mapped
from .mmapfile import MappedFile

logger = logging.getLogger(__name__)


@dataclass
class CheckSummary:
    """Totals for one check run."""

    checked: int = 0
    ignored: int = 0
    skipped: int = 0
    defects: int = 0


def defect_messages(result: object) -> list[str]:
    """Flatten a check() result into one message per defect."""
    if result is None:
        return []
    if isinstance(result, BaseExceptionGroup):
        return [m for e in result.exceptions for m in defect_messages(e)]
    if isinstance(result, (str, BaseException)):
        return [str(result)]
    if isinstance(result, Sequence):
        return [m for e in result for m in defect_messages(e)]
    return [str(result)]


class CheckRunner:
    """Run consistency checks over a list of data files.

    Args:
        codec: Bitmap codec used to decode and validate bitmap files; may be
            None when no bitmap files are checked
        stdout: Receives defect lines and per-file status
        stderr: Receives notices for ignored files

    Invariants:
        - Paths are processed in order, one at a time
        - IO, map and decode failures abort the whole run
        - Every bitmap file ends with a "<path>: ok" line, after its defects
    """

    def __init__(self, codec: BitmapCodec | None, stdout: IO[str], stderr: IO[str]):
        self.codec = codec
        self.stdout = stdout
        self.stderr = stderr
        self._handlers: dict[FileClassification, Callable[[str | Path, CheckSummary], None]] = {
            FileClassification.CONTAINER: self.check_bitmap_file,
            FileClassification.CACHE: self.check_cache_file,
            FileClassification.SNAPSHOTTING: self.check_snapshot_file,
        }

    def run(self, paths: Iterable[str | Path]) -> CheckSummary:
        summary = CheckSummary()
        for path in paths:
            handler = self._handlers.get(classify(path))
            if handler is None:
                logger.debug(f"Skipping unhandled file {path}")
                summary.skipped += 1
                continue
            handler(path, summary)

        logger.info(
            f"Checked {summary.checked} files ({summary.defects} defects), "
            f"ignored {summary.ignored}, skipped {summary.skipped}"
        )
        return summary

    def check_bitmap_file(self, path: str | Path, summary: CheckSummary) -> None:
        """Validate a bitmap file and print its defects, then its status line."""
        with MappedFile(path) as mapped:
            bm = decode_mapped(self.codec, mapped)
            messages = defect_messages(bm.check())
            del bm

        for msg in messages:
            self.stdout.write(f"{path}: {msg}\n")
        self.stdout.write(f"{path}: ok\n")

        summary.checked += 1
        summary.defects += len(messages)

    def check_cache_file(self, path: str | Path, summary: CheckSummary) -> None:
        self.stderr.write(f"{path}: ignoring cache file\n")
        summary.ignored += 1

    def check_snapshot_file(self, path: str | Path, summary: CheckSummary) -> None:
        self.stderr.write(f"{path}: ignoring snapshot file\n")
        summary.ignored += 1
