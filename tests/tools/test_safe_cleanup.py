"""Tests for the safe-cleanup tool."""

import pytest

from ldde.context import PipelineContext
from ldde.exceptions import ToolError
from ldde.tools import safe_cleanup
from ldde.tools.safe_cleanup import SafeCleanup, SafeCleanupParams


@pytest.fixture
def trashed(monkeypatch):
    paths = []
    monkeypatch.setattr(safe_cleanup, "send2trash", paths.append)
    return paths


def test_existing_paths_are_trashed(trashed, tmp_path):
    a = tmp_path / "a.txt"
    a.write_text("x")
    b = tmp_path / "build"
    b.mkdir()
    missing = tmp_path / "missing"

    SafeCleanup().execute(
        SafeCleanupParams(paths=[str(a), str(missing), str(b)]), PipelineContext({"name": "x"})
    )
    assert trashed == [str(a), str(b)]


def test_dangling_symlink_is_trashed(trashed, tmp_path):
    link = tmp_path / "link"
    link.symlink_to(tmp_path / "gone")
    SafeCleanup().execute(SafeCleanupParams(paths=[str(link)]), PipelineContext({"name": "x"}))
    assert trashed == [str(link)]


def test_nothing_to_do(trashed, tmp_path):
    SafeCleanup().execute(
        SafeCleanupParams(paths=[str(tmp_path / "nope")], quiet=True), PipelineContext({"name": "x"})
    )
    assert trashed == []


def test_trash_failure(monkeypatch, tmp_path):
    def refuse(path):
        raise OSError(f"cannot trash {path}")

    monkeypatch.setattr(safe_cleanup, "send2trash", refuse)
    target = tmp_path / "f"
    target.write_text("")
    with pytest.raises(ToolError, match="Safe cleanup failed: cannot trash"):
        SafeCleanup().execute(SafeCleanupParams(paths=[str(target)]), PipelineContext({"name": "x"}))


def test_paths_required():
    with pytest.raises(ValueError):
        SafeCleanupParams(paths=[])
