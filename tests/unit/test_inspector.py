"""Unit tests for the container inspector and its report."""

import io

import pytest

from pilosactl.components.inspector import format_elapsed, inspect_file
from pilosactl.core.errors import DecodeError, FileIOError, MapError
from pilosactl.core.types import BitmapInfo, ContainerInfo
from pilosactl.render.report_renderer import render_inspect

CONTAINERS = [
    (65536, "bitmap", 4096, 8192, 0x40),
    (0, "array", 3, 6, 0x10),
    (131072, "run", 70000, 12, 0x2040),
]


def test_inspect_returns_collaborator_stats(temp_dir, codec, bitmap_file):
    """Test that stats are returned in collaborator order."""
    path = bitmap_file(temp_dir / "0", containers=CONTAINERS, op_n=5)
    stderr = io.StringIO()

    info = inspect_file(path, codec, stderr)

    assert info.op_n == 5
    assert [c.key for c in info.containers] == [65536, 0, 131072]
    assert info.containers[1] == ContainerInfo(0, "array", 3, 6, 0x10)


def test_inspect_reports_timing(temp_dir, codec, bitmap_file):
    """Test that decode and stats timings go to the diagnostic stream."""
    path = bitmap_file(temp_dir / "0", containers=CONTAINERS)
    stderr = io.StringIO()

    inspect_file(path, codec, stderr)

    lines = stderr.getvalue().splitlines()
    assert lines[0].startswith("unmarshaling bitmap... (")
    assert lines[1].startswith("calculating stats... (")


def test_inspect_decode_failure(temp_dir, codec):
    """Test that undecodable bytes raise DecodeError wrapping the codec error."""
    path = temp_dir / "0"
    path.write_bytes(b"not a bitmap")

    with pytest.raises(DecodeError) as exc_info:
        inspect_file(path, codec, io.StringIO())
    assert "invalid magic" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_inspect_missing_file(temp_dir, codec):
    """Test that a missing file is an IO error."""
    with pytest.raises(FileIOError):
        inspect_file(temp_dir / "0", codec, io.StringIO())


def test_inspect_empty_file(temp_dir, codec):
    """Test that an empty file is a map error."""
    path = temp_dir / "0"
    path.write_bytes(b"")

    with pytest.raises(MapError):
        inspect_file(path, codec, io.StringIO())
    assert codec.decoded == []


def test_inspect_does_not_modify_file(temp_dir, codec, bitmap_file):
    """Test that inspecting leaves the file untouched."""
    path = bitmap_file(temp_dir / "0", containers=CONTAINERS)
    before = path.read_bytes()

    inspect_file(path, codec, io.StringIO())

    assert path.read_bytes() == before


def test_render_summary_block():
    """Test the top-level summary of the report."""
    info = BitmapInfo(containers=[ContainerInfo(*c) for c in CONTAINERS], op_n=12)

    lines = render_inspect(info).splitlines()

    assert lines[:5] == [
        "== Bitmap Info ==",
        "Containers: 3",
        "Operations: 12",
        "",
        "== Containers ==",
    ]


def test_render_container_table():
    """Test one aligned row per container, in order."""
    info = BitmapInfo(containers=[ContainerInfo(*c) for c in CONTAINERS], op_n=0)

    report = render_inspect(info)
    lines = report.splitlines()
    table = lines[5:]

    assert report.endswith("\n")
    assert table[0].split() == ["KEY", "TYPE", "N", "ALLOC", "OFFSET"]
    assert table[1].split() == ["65536", "bitmap", "4096", "8192", "0x00000040"]
    assert table[2].split() == ["0", "array", "3", "6", "0x00000010"]
    assert table[3].split() == ["131072", "run", "70000", "12", "0x00002040"]
    assert len(table) == 4

    # Offset column starts at the same position on every line
    col = table[0].index("OFFSET")
    assert all(row.index("0x") == col for row in table[1:])


def test_render_empty_bitmap():
    """Test the report for a bitmap with no containers."""
    lines = render_inspect(BitmapInfo()).splitlines()

    assert lines[1] == "Containers: 0"
    assert lines[2] == "Operations: 0"
    assert lines[-1].split() == ["KEY", "TYPE", "N", "ALLOC", "OFFSET"]


@pytest.mark.parametrize(
    "seconds, expected",
    [(0.0000025, "2.500µs"), (0.0125, "12.500ms"), (3.5, "3.500s")],
)
def test_format_elapsed(seconds, expected):
    """Test human-readable durations."""
    assert format_elapsed(seconds) == expected
