"""Unit tests for sonarrimport.fs.operations.

Covers:
- Basic rename on the same filesystem
- Cross-device move fallback (EXDEV)
- Dry-run mode (no-op)
- Overwrite protection
- Removal of directories left empty by a move
"""

import errno
from pathlib import Path

import pytest

from sonarrimport.fs.operations import remove_empty_parents, safe_rename


def test_safe_rename_basic(tmp_path: Path) -> None:
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("episode")

    assert safe_rename(src, dst) == dst

    assert not src.exists()
    assert dst.read_text() == "episode"


def test_cross_device(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A rename failing with EXDEV falls back to copy + unlink."""
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("cross device")

    def raise_exdev(self: Path, target: Path) -> None:
        raise OSError(errno.EXDEV, "Invalid cross-device link")

    monkeypatch.setattr(Path, "rename", raise_exdev)
    safe_rename(src, dst)

    assert not src.exists()
    assert dst.read_text() == "cross device"


def test_other_os_errors_propagate(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    src = tmp_path / "source.mkv"
    src.write_text("x")

    def raise_eacces(self: Path, target: Path) -> None:
        raise PermissionError(errno.EACCES, "Permission denied")

    monkeypatch.setattr(Path, "rename", raise_eacces)
    with pytest.raises(PermissionError):
        safe_rename(src, tmp_path / "dest.mkv")


def test_dry_run(tmp_path: Path) -> None:
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("x")

    assert safe_rename(src, dst, dry_run=True) == dst
    assert src.exists()
    assert not dst.exists()


def test_refuses_overwrite(tmp_path: Path) -> None:
    src = tmp_path / "source.mkv"
    dst = tmp_path / "dest.mkv"
    src.write_text("new")
    dst.write_text("old")

    with pytest.raises(FileExistsError):
        safe_rename(src, dst)

    safe_rename(src, dst, overwrite=True)
    assert dst.read_text() == "new"


def test_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        safe_rename(tmp_path / "missing.mkv", tmp_path / "dest.mkv")


def test_remove_empty_parents(tmp_path: Path) -> None:
    deep = tmp_path / "a" / "b" / "c"
    deep.mkdir(parents=True)
    (tmp_path / "a" / "keep.nfo").write_text("x")

    removed = remove_empty_parents(deep, tmp_path)

    assert removed == [deep.resolve(), (tmp_path / "a" / "b").resolve()]
    assert (tmp_path / "a").exists()


def test_remove_empty_parents_never_removes_stop(tmp_path: Path) -> None:
    assert remove_empty_parents(tmp_path, tmp_path) == []
    assert tmp_path.exists()
