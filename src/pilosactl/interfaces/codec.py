"""Protocol definitions for the bitmap container codec."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from ..core.types import BitmapInfo


class DecodedBitmap(Protocol):
    """A bitmap attached to a serialized buffer."""

    def info(self) -> BitmapInfo:
        """Return container directory and pending operation count."""
        ...

    def check(self) -> Exception | Sequence[Exception] | None:
        """Validate internal consistency.

        Returns:
            None when consistent, otherwise a single error, a sequence of
            errors, or an ExceptionGroup listing every defect found.
        """
        ...


class BitmapCodec(Protocol):
    """Decoder for serialized bitmap files."""

    def decode(self, data: memoryview) -> DecodedBitmap:
        """Attach a bitmap to ``data``; raise if it is not a valid bitmap file.

        Invariants:
            - Must not write to ``data``
            - Must not keep references to ``data`` past the decoded bitmap
        """
        ...
