"""File classification by extension."""

from __future__ import annotations

import os

from ..core.types import FileClassification

_EXTENSIONS = {
    "": FileClassification.CONTAINER,
    ".cache": FileClassification.CACHE,
    ".snapshotting": FileClassification.SNAPSHOTTING,
}


def extension(path: str | os.PathLike[str]) -> str:
    """Return the extension of the final path element, including the dot.

    Unlike os.path.splitext, a leading dot counts: ".cache" has extension
    ".cache".
    """
    name = os.path.basename(os.fspath(path))
    i = name.rfind(".")
    return name[i:] if i >= 0 else ""


def classify(path: str | os.PathLike[str]) -> FileClassification:
    """Classify a data file path. Pure; the file is never touched."""
    return _EXTENSIONS.get(extension(path), FileClassification.UNHANDLED)
