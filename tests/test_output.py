from pathlib import Path

import pytest

from photogallery.errors import BuildReport, OutputWriteError
from photogallery.output import (
    OutputFile,
    atomic_target,
    ensure_output_root,
    plan_action,
    prune_files,
    write_files,
)


def test_atomic_target_moves_into_place(tmp_path):
    target = tmp_path / "a" / "b.txt"
    with atomic_target(target) as tmp:
        assert tmp.parent == target.parent
        tmp.write_text("hello")
        assert not target.exists()
    assert target.read_text() == "hello"
    assert [p.name for p in target.parent.iterdir()] == ["b.txt"]


def test_atomic_target_keeps_previous_file_on_failure(tmp_path):
    target = tmp_path / "b.txt"
    target.write_text("old")
    with pytest.raises(RuntimeError):
        with atomic_target(target) as tmp:
            tmp.write_text("half")
            raise RuntimeError("boom")
    assert target.read_text() == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["b.txt"]


def test_output_file_needs_one_source():
    with pytest.raises(ValueError):
        OutputFile(Path("x"))


def test_plan_action(tmp_path):
    item = OutputFile.text(Path("index.html"), "<html>")
    target = tmp_path / "index.html"
    assert plan_action(item, target) == "create"
    target.write_text("<html>")
    assert plan_action(item, target) == "unchanged"
    target.write_text("<HTML>")
    assert plan_action(item, target) == "update"


def test_plan_action_for_copies(tmp_path):
    source = tmp_path / "source.jpg"
    source.write_bytes(b"jpeg bytes")
    target = tmp_path / "out" / "source.jpg"
    item = OutputFile.copy(Path("source.jpg"), source)
    assert plan_action(item, target) == "create"
    item.write(target)
    assert target.read_bytes() == b"jpeg bytes"
    assert plan_action(item, target) == "unchanged"


def test_write_files_reports_operations(tmp_path):
    (tmp_path / "same.txt").write_text("same")
    (tmp_path / "old.txt").write_text("old")
    report = BuildReport()

    write_files(
        [
            OutputFile.text(Path("same.txt"), "same"),
            OutputFile.text(Path("old.txt"), "new"),
            OutputFile.text(Path("sub/new.txt"), "new"),
        ],
        tmp_path,
        report,
    )

    assert sorted(report.operations) == [
        ("create", "sub/new.txt"),
        ("unchanged", "same.txt"),
        ("update", "old.txt"),
    ]
    assert (tmp_path / "old.txt").read_text() == "new"
    assert (tmp_path / "sub" / "new.txt").read_text() == "new"


def test_write_files_dry_run(tmp_path):
    report = BuildReport(dry_run=True)
    write_files([OutputFile.text(Path("a/b.txt"), "x")], tmp_path / "out", report, dry_run=True)
    assert report.operations == [("create", "a/b.txt")]
    assert not (tmp_path / "out").exists()


def test_write_files_continues_after_failure(tmp_path):
    # A directory where a file should go cannot be replaced.
    (tmp_path / "blocked.txt").mkdir()
    report = BuildReport()

    write_files(
        [
            OutputFile.text(Path("blocked.txt"), "x"),
            OutputFile.text(Path("fine.txt"), "y"),
        ],
        tmp_path,
        report,
    )

    assert ("failed", "blocked.txt") in report.operations
    assert ("create", "fine.txt") in report.operations
    assert isinstance(report.errors[0], OutputWriteError)
    assert (tmp_path / "fine.txt").read_text() == "y"


def test_ensure_output_root(tmp_path):
    ensure_output_root(tmp_path / "dry", dry_run=True)
    assert not (tmp_path / "dry").exists()
    ensure_output_root(tmp_path / "real")
    assert (tmp_path / "real").is_dir()


def test_output_root_is_a_file(tmp_path):
    (tmp_path / "out").write_text("x")
    with pytest.raises(OutputWriteError):
        ensure_output_root(tmp_path / "out")


def test_prune_files(tmp_path):
    stale = tmp_path / "thumbnails" / "small" / "x.jpg"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"x")
    relative = [Path("thumbnails/small/x.jpg")]

    report = BuildReport(dry_run=True)
    prune_files(relative, tmp_path, report, dry_run=True)
    assert stale.exists()
    assert report.operations == [("delete", "thumbnails/small/x.jpg")]

    report = BuildReport()
    prune_files(relative, tmp_path, report)
    assert not stale.exists()
    assert report.files["delete"] == 1
