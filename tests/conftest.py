"""Shared fakes for the bitmap codec and cluster client."""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from pilosactl.core.types import BitmapInfo, ContainerInfo

FAKE_MAGIC = b"FAKE"


class FakeBitmap:
    """Decoded bitmap backed by a parsed copy of the file contents."""

    def __init__(self, doc):
        self._doc = doc

    def info(self):
        return BitmapInfo(
            containers=[ContainerInfo(*c) for c in self._doc.get("containers", [])],
            op_n=self._doc.get("op_n", 0),
        )

    def check(self):
        defects = [ValueError(msg) for msg in self._doc.get("defects", [])]
        mode = self._doc.get("defect_mode", "list")
        if not defects:
            return None
        if mode == "single":
            return defects[0]
        if mode == "group":
            return ExceptionGroup("check failed", defects)
        return defects


class FakeCodec:
    """Codec for test files: magic bytes followed by a JSON document."""

    def __init__(self):
        self.decoded = []

    def decode(self, data):
        raw = bytes(data)
        if not raw.startswith(FAKE_MAGIC):
            raise ValueError("invalid magic")
        doc = json.loads(raw[len(FAKE_MAGIC):].decode("utf-8"))
        self.decoded.append(len(raw))
        return FakeBitmap(doc)


class FakeClient:
    """Records every call made by the commands."""

    def __init__(self, host="localhost:15000", max_slices=None):
        self.host = host
        self.max_slices = max_slices or {}
        self.calls = []
        self.imports = []
        self.queries = []

    def max_slice_by_database(self):
        self.calls.append("max_slice_by_database")
        return self.max_slices

    def export_csv(self, db, frame, slice, writer):
        self.calls.append(("export_csv", db, frame, slice))
        writer.write(f"{slice},{slice * 10}\n")

    def import_bits(self, db, frame, slice, bits):
        self.imports.append((db, frame, slice, list(bits)))

    def backup_to(self, writer, db, frame):
        self.calls.append(("backup_to", db, frame))
        writer.write(b"archive:" + f"{db}/{frame}".encode())

    def restore_from(self, reader, db, frame):
        self.calls.append(("restore_from", db, frame, reader.read()))

    def execute_query(self, db, query, allow_write):
        self.queries.append((db, query, allow_write))
        return {"results": [True]}


def write_bitmap_file(path, containers=(), op_n=0, defects=(), defect_mode="list"):
    """Write a file the FakeCodec can decode."""
    doc = {
        "containers": [list(c) for c in containers],
        "op_n": op_n,
        "defects": list(defects),
        "defect_mode": defect_mode,
    }
    Path(path).write_bytes(FAKE_MAGIC + json.dumps(doc).encode("utf-8"))
    return Path(path)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def client():
    return FakeClient(max_slices={"db0": 2})


@pytest.fixture
def bitmap_file():
    """Factory writing fake bitmap files."""
    return write_bitmap_file
