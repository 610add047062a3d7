"""Unit tests for the consistency checker."""

import io

import pytest

from pilosactl.components.checker import CheckRunner, defect_messages
from pilosactl.core.errors import DecodeError, FileIOError


@pytest.fixture
def streams():
    return io.StringIO(), io.StringIO()


def test_healthy_file_prints_ok(temp_dir, codec, bitmap_file, streams):
    """Test that a consistent file produces just the status line."""
    stdout, stderr = streams
    path = bitmap_file(temp_dir / "0")

    summary = CheckRunner(codec, stdout, stderr).run([str(path)])

    assert stdout.getvalue() == f"{path}: ok\n"
    assert stderr.getvalue() == ""
    assert summary.checked == 1
    assert summary.defects == 0


@pytest.mark.parametrize("mode", ["list", "group"])
def test_multiple_defects_then_ok(temp_dir, codec, bitmap_file, streams, mode):
    """Test that every defect is listed before the ok trailer."""
    stdout, stderr = streams
    path = bitmap_file(
        temp_dir / "0", defects=["bad key order", "bad n", "bad run"], defect_mode=mode
    )

    summary = CheckRunner(codec, stdout, stderr).run([str(path)])

    assert stdout.getvalue().splitlines() == [
        f"{path}: bad key order",
        f"{path}: bad n",
        f"{path}: bad run",
        f"{path}: ok",
    ]
    assert summary.defects == 3


def test_single_defect(temp_dir, codec, bitmap_file, streams):
    """Test that a single error result is printed once."""
    stdout, stderr = streams
    path = bitmap_file(temp_dir / "0", defects=["container overflow"], defect_mode="single")

    CheckRunner(codec, stdout, stderr).run([str(path)])

    assert stdout.getvalue().splitlines() == [
        f"{path}: container overflow",
        f"{path}: ok",
    ]


def test_defects_do_not_abort_batch(temp_dir, codec, bitmap_file, streams):
    """Test that files after a defective file are still checked."""
    stdout, stderr = streams
    bad = bitmap_file(temp_dir / "0", defects=["a", "b", "c"])
    good = bitmap_file(temp_dir / "1")

    summary = CheckRunner(codec, stdout, stderr).run([str(bad), str(good)])

    lines = stdout.getvalue().splitlines()
    assert len(lines) == 5
    assert lines[3] == f"{bad}: ok"
    assert lines[4] == f"{good}: ok"
    assert summary.checked == 2


def test_routing_by_classification(temp_dir, codec, bitmap_file, streams):
    """Test that a, a.cache, a.snapshotting and a.txt are checked, ignored, ignored, skipped."""
    stdout, stderr = streams
    a = bitmap_file(temp_dir / "a")
    paths = [str(a), f"{a}.cache", f"{a}.snapshotting", f"{a}.txt"]

    summary = CheckRunner(codec, stdout, stderr).run(paths)

    assert stdout.getvalue() == f"{a}: ok\n"
    assert stderr.getvalue().splitlines() == [
        f"{a}.cache: ignoring cache file",
        f"{a}.snapshotting: ignoring snapshot file",
    ]
    assert (summary.checked, summary.ignored, summary.skipped) == (1, 2, 1)


def test_ignored_files_are_not_opened(temp_dir, streams):
    """Test that cache and snapshot files need neither a codec nor the file."""
    stdout, stderr = streams

    summary = CheckRunner(None, stdout, stderr).run(
        [str(temp_dir / "0.cache"), str(temp_dir / "0.snapshotting")]
    )

    assert summary.ignored == 2
    assert stdout.getvalue() == ""


def test_decode_failure_aborts_batch(temp_dir, codec, bitmap_file, streams):
    """Test that an undecodable file stops the run immediately."""
    stdout, stderr = streams
    bad = temp_dir / "0"
    bad.write_bytes(b"garbage")
    good = bitmap_file(temp_dir / "1")

    with pytest.raises(DecodeError):
        CheckRunner(codec, stdout, stderr).run([str(bad), str(good)])
    assert stdout.getvalue() == ""


def test_missing_file_aborts_batch(temp_dir, codec, bitmap_file, streams):
    """Test that an IO failure stops the run after earlier files were reported."""
    stdout, stderr = streams
    good = bitmap_file(temp_dir / "0")

    with pytest.raises(FileIOError):
        CheckRunner(codec, stdout, stderr).run([str(good), str(temp_dir / "1")])
    assert stdout.getvalue() == f"{good}: ok\n"


def test_defect_messages_flattening():
    """Test the shapes a check result may take."""
    assert defect_messages(None) == []
    assert defect_messages(ValueError("x")) == ["x"]
    assert defect_messages([ValueError("x"), ValueError("y")]) == ["x", "y"]
    group = ExceptionGroup("g", [ValueError("x"), ExceptionGroup("h", [KeyError("k")])])
    assert defect_messages(group) == ["x", "'k'"]
    assert defect_messages("plain") == ["plain"]
