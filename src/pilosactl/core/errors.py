"""Exception hierarchy for pilosactl.

Defines all custom exceptions raised by the data file tooling and the CLI.
"""

from __future__ import annotations


class PilosactlError(Exception):
    """Base exception for all pilosactl errors."""
    pass


class RecordError(PilosactlError):
    """Raised when a CSV row cannot be decoded into a bit record.

    Args:
        message: Description of the defect
        line: 1-based line number of the row, when known
    """

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


class MalformedRecordError(RecordError):
    """Raised when a row has the wrong number of columns."""
    pass


class InvalidBitmapIDError(RecordError):
    """Raised when the bitmap id column is not an unsigned 64-bit integer."""
    pass


class InvalidProfileIDError(RecordError):
    """Raised when the profile id column is not an unsigned 64-bit integer."""
    pass


class InvalidTimestampError(RecordError):
    """Raised when the timestamp column does not match the time format."""
    pass


class FileIOError(PilosactlError):
    """Raised when a data file cannot be opened, read or written."""
    pass


class MapError(PilosactlError):
    """Raised when a data file cannot be memory mapped."""
    pass


class DecodeError(PilosactlError):
    """Raised when mapped bytes are not a valid bitmap file."""
    pass


class ConfigError(PilosactlError):
    """Raised when the configuration file is unreadable or invalid."""
    pass


class CollaboratorError(PilosactlError):
    """Raised when a codec or cluster client cannot be resolved."""
    pass


class UsageError(PilosactlError):
    """Raised when command line arguments are missing or invalid."""
    pass


class UnknownCommandError(UsageError):
    """Raised when specifying an unknown command."""

    def __init__(self, command: str):
        super().__init__(f"unknown command: {command}")
        self.command = command
