"""CSV codec for bit records.

Row format: BITMAPID,PROFILEID[,TIMESTAMP] with no header. Rows whose first
column is empty are blank and carry no record.
"""

from __future__ import annotations

import calendar
import csv
import re
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..core.errors import (
    FileIOError,
    InvalidBitmapIDError,
    InvalidProfileIDError,
    InvalidTimestampError,
    MalformedRecordError,
    RecordError,
)
from ..core.types import MAX_UINT64, TIME_FORMAT, BitRecord

_UINT_RE = re.compile(r"[0-9]+")
_TIME_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000


def _parse_uint64(text: str) -> int | None:
    if not _UINT_RE.fullmatch(text):
        return None
    value = int(text)
    if value > MAX_UINT64:
        return None
    return value


def parse_timestamp(text: str) -> int:
    """Parse TIME_FORMAT text (UTC) into nanoseconds since the epoch."""
    if not _TIME_RE.fullmatch(text):
        raise ValueError(f"timestamp does not match {TIME_FORMAT}: {text!r}")
    t = datetime.strptime(text, TIME_FORMAT)
    return calendar.timegm(t.timetuple()) * _NANOS_PER_SECOND


def format_timestamp(nanos: int) -> str:
    """Render nanoseconds since the epoch in TIME_FORMAT (UTC)."""
    t = _EPOCH + timedelta(microseconds=nanos // 1000)
    return t.strftime(TIME_FORMAT)


def decode_row(fields: Sequence[str]) -> BitRecord | None:
    """Decode one CSV row into a bit record.

    Returns:
        The record, or None for a blank row. Callers must skip None.

    Raises:
        MalformedRecordError: fewer than two columns
        InvalidBitmapIDError: column 0 is not an unsigned 64-bit integer
        InvalidProfileIDError: column 1 is not an unsigned 64-bit integer
        InvalidTimestampError: column 2 is present but not in TIME_FORMAT
    """
    if not fields or fields[0] == "":
        return None
    if len(fields) < 2:
        raise MalformedRecordError(f"bad column count: {len(fields)}")

    bitmap_id = _parse_uint64(fields[0])
    if bitmap_id is None:
        raise InvalidBitmapIDError(f"invalid bitmap id: {fields[0]!r}")

    profile_id = _parse_uint64(fields[1])
    if profile_id is None:
        raise InvalidProfileIDError(f"invalid profile id: {fields[1]!r}")

    timestamp = 0
    if len(fields) > 2 and fields[2] != "":
        try:
            timestamp = parse_timestamp(fields[2])
        except ValueError as e:
            raise InvalidTimestampError(f"invalid timestamp: {fields[2]!r}") from e

    return BitRecord(bitmap_id, profile_id, timestamp)


def encode_record(record: BitRecord) -> str:
    """Encode a record as a CSV line, omitting a zero timestamp."""
    line = f"{record.bitmap_id},{record.profile_id}"
    if record.timestamp != 0:
        line += "," + format_timestamp(record.timestamp)
    return line + "\n"


def read_records(lines: Iterable[str]) -> Iterator[BitRecord]:
    """Decode every non-blank row of a CSV stream.

    Record errors are tagged with the 1-based line number of the offending row.
    """
    reader = csv.reader(lines)
    while True:
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise MalformedRecordError(str(e), line=reader.line_num) from e

        try:
            record = decode_row(fields)
        except RecordError as e:
            e.line = reader.line_num
            raise

        if record is None:
            continue
        yield record


def read_file(path: str | Path) -> Iterator[BitRecord]:
    """Decode every non-blank row of the CSV file at ``path``.

    Raises:
        FileIOError: if the file cannot be opened or read
        RecordError: on the first row that cannot be decoded, including rows
            holding bytes that are not UTF-8
    """
    # Undecodable bytes survive as lone surrogates and fail field validation.
    try:
        f = open(path, newline="", encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        raise FileIOError(f"cannot open {path}: {e}") from e

    with f:
        records = read_records(f)
        while True:
            try:
                record = next(records)
            except StopIteration:
                return
            except OSError as e:
                raise FileIOError(f"cannot read {path}: {e}") from e
            yield record
