from __future__ import annotations

import io
from pathlib import Path

import pytest

from fetch_unroll.errors import FilesystemError
from fetch_unroll.installer.destination import (
    prepare_dir,
    prepare_file,
    remove_dir_entries,
    rollback_dir,
    rollback_file,
    write_file,
)
from fetch_unroll.types import SaveOptions, UnrollOptions


def _populate(root: Path) -> None:
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "sub" / "deeper" / "f.txt").write_text("x", encoding="utf-8")
    (root / "top.txt").write_text("y", encoding="utf-8")


def test_remove_dir_entries_keeps_directory(tmp_path: Path) -> None:
    _populate(tmp_path)
    remove_dir_entries(tmp_path)
    assert tmp_path.is_dir()
    assert list(tmp_path.iterdir()) == []


def test_remove_dir_entries_unlinks_symlinked_directories(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "keep.txt").write_text("keep", encoding="utf-8")
    dest = tmp_path / "dest"
    dest.mkdir()
    (dest / "link").symlink_to(outside, target_is_directory=True)

    remove_dir_entries(dest)

    assert list(dest.iterdir()) == []
    assert (outside / "keep.txt").exists()


# ---------------------------------------------------------------------------
# prepare_dir / rollback_dir
# ---------------------------------------------------------------------------


def test_prepare_dir_existing_is_cleaned(tmp_path: Path) -> None:
    _populate(tmp_path)
    assert prepare_dir(tmp_path, UnrollOptions()) is True
    assert list(tmp_path.iterdir()) == []


def test_prepare_dir_existing_kept_without_cleanup(tmp_path: Path) -> None:
    _populate(tmp_path)
    assert prepare_dir(tmp_path, UnrollOptions(cleanup_dest_dir=False)) is True
    assert (tmp_path / "top.txt").exists()


def test_prepare_dir_creates_missing_with_parents(tmp_path: Path) -> None:
    dest = tmp_path / "a" / "b" / "c"
    assert prepare_dir(dest, UnrollOptions()) is False
    assert dest.is_dir()


def test_prepare_dir_rejects_missing_without_create(tmp_path: Path) -> None:
    dest = tmp_path / "missing"
    with pytest.raises(FilesystemError, match="does not exist"):
        prepare_dir(dest, UnrollOptions(create_dest_path=False))
    assert not dest.exists()


def test_prepare_dir_replaces_file(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    dest.write_text("not a dir", encoding="utf-8")
    assert prepare_dir(dest, UnrollOptions()) is False
    assert dest.is_dir()


def test_prepare_dir_rejects_file_without_fix(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    dest.write_text("not a dir", encoding="utf-8")
    with pytest.raises(FilesystemError, match="not a directory"):
        prepare_dir(dest, UnrollOptions(fix_invalid_dest=False))
    assert dest.read_text(encoding="utf-8") == "not a dir"


def test_prepare_dir_removes_file_but_does_not_create_without_create(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    dest.write_text("not a dir", encoding="utf-8")
    with pytest.raises(FilesystemError):
        prepare_dir(dest, UnrollOptions(create_dest_path=False))
    assert not dest.exists()


def test_rollback_dir_removes_created_directory(tmp_path: Path) -> None:
    dest = tmp_path / "dest"
    dest.mkdir()
    (dest / "partial").write_text("p", encoding="utf-8")
    rollback_dir(dest, already_existed=False, options=UnrollOptions())
    assert not dest.exists()


def test_rollback_dir_empties_preexisting_directory(tmp_path: Path) -> None:
    _populate(tmp_path)
    rollback_dir(tmp_path, already_existed=True, options=UnrollOptions())
    assert tmp_path.is_dir()
    assert list(tmp_path.iterdir()) == []


def test_rollback_dir_disabled_leaves_everything(tmp_path: Path) -> None:
    _populate(tmp_path)
    rollback_dir(tmp_path, already_existed=False, options=UnrollOptions(cleanup_on_error=False))
    assert (tmp_path / "top.txt").exists()


def test_rollback_dir_ignores_missing_destination(tmp_path: Path) -> None:
    rollback_dir(tmp_path / "never-created", already_existed=False, options=UnrollOptions())


# ---------------------------------------------------------------------------
# prepare_file / write_file / rollback_file
# ---------------------------------------------------------------------------


def test_prepare_file_existing_without_force_is_noop(tmp_path: Path) -> None:
    dest = tmp_path / "asset.bin"
    dest.write_bytes(b"original")
    assert prepare_file(dest, SaveOptions(force_overwrite=False)) is False
    assert dest.read_bytes() == b"original"


def test_prepare_file_existing_with_force_is_removed(tmp_path: Path) -> None:
    dest = tmp_path / "asset.bin"
    dest.write_bytes(b"original")
    assert prepare_file(dest, SaveOptions()) is True
    assert not dest.exists()


def test_prepare_file_directory_is_removed_when_fixing(tmp_path: Path) -> None:
    dest = tmp_path / "asset.bin"
    _populate(dest)
    assert prepare_file(dest, SaveOptions()) is True
    assert not dest.exists()


def test_prepare_file_creates_parent_directories(tmp_path: Path) -> None:
    dest = tmp_path / "x" / "y" / "asset.bin"
    assert prepare_file(dest, SaveOptions()) is True
    assert dest.parent.is_dir()


def test_write_file_into_directory_is_filesystem_error(tmp_path: Path) -> None:
    with pytest.raises(FilesystemError):
        write_file(io.BytesIO(b"data"), tmp_path)


def test_rollback_file_removes_partial_file(tmp_path: Path) -> None:
    dest = tmp_path / "asset.bin"
    dest.write_bytes(b"half")
    rollback_file(dest, SaveOptions())
    assert not dest.exists()


def test_rollback_file_disabled_keeps_partial_file(tmp_path: Path) -> None:
    dest = tmp_path / "asset.bin"
    dest.write_bytes(b"half")
    rollback_file(dest, SaveOptions(cleanup_on_error=False))
    assert dest.read_bytes() == b"half"
