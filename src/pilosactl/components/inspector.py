"""Container inspector.

Memory maps a bitmap file, decodes it with the configured codec and reports
aggregate and per-container statistics. The file is never modified.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import IO

from ..core.errors import DecodeError
from ..core.types import BitmapInfo
from ..interfaces.codec import BitmapCodec, DecodedBitmap
from .mmapfile import MappedFile

logger = logging.getLogger(__name__)


def format_elapsed(seconds: float) -> str:
    """Format a duration the way operators read it: µs, ms or s."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def decode_mapped(codec: BitmapCodec, mapped: MappedFile) -> DecodedBitmap:
    """Attach ``codec`` to the mapped bytes, wrapping any failure in DecodeError."""
    view = mapped.view
    try:
        return codec.decode(view)
    except Exception as e:
        raise DecodeError(f"{mapped.path}: {e}") from e


def _check_offsets(info: BitmapInfo, size: int, path: Path) -> None:
    for c in info.containers:
        if not 0 <= c.offset <= size:
            logger.warning(
                f"{path}: container {c.key} offset {c.offset} outside mapping of {size} bytes"
            )


def inspect_file(path: str | Path, codec: BitmapCodec, stderr: IO[str]) -> BitmapInfo:
    """Decode the bitmap at ``path`` and return its statistics.

    Timing of the decode and stats steps is written to ``stderr``.

    Raises:
        FileIOError: file cannot be opened or stat'd
        MapError: file cannot be memory mapped
        DecodeError: mapped bytes are not a valid bitmap
    """
    path = Path(path)
    with MappedFile(path) as mapped:
        t = time.perf_counter()
        stderr.write("unmarshaling bitmap...")
        stderr.flush()
        bm = decode_mapped(codec, mapped)
        stderr.write(f" ({format_elapsed(time.perf_counter() - t)})\n")

        t = time.perf_counter()
        stderr.write("calculating stats...")
        stderr.flush()
        info = bm.info()
        stderr.write(f" ({format_elapsed(time.perf_counter() - t)})\n")

        # Drop the decoded bitmap before the mapping is released.
        del bm
        _check_offsets(info, mapped.size, path)

    logger.debug(f"Inspected {path}: {len(info.containers)} containers, {info.op_n} ops")
    return info
