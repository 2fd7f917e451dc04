"""Destination reconciliation: prepare the target before writing, roll back after failure.

Directory destinations (unroll):
- existing directory: optionally emptied, never removed; remembered as pre-existing
- existing non-directory: replaced by a directory when fixing is allowed, else rejected
- missing: created (with parents) when allowed, else rejected

File destinations (save):
- existing file: overwritten when forced, else left untouched and the save is a no-op
- existing directory: removed when fixing is allowed
- missing: parent directories created when allowed

Rollback on a pre-existing directory removes its *current* children; whatever
it held before the call is not restored.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO

from fetch_unroll.errors import FilesystemError
from fetch_unroll.logging import get_logger
from fetch_unroll.types import SaveOptions, UnrollOptions

log = get_logger()


@contextmanager
def filesystem_errors(what: str) -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise FilesystemError(f"Failed to {what}: {exc}") from exc


def remove_dir_entries(path: Path) -> None:
    """Remove every child of *path*, keeping *path* itself."""
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


# ---------------------------------------------------------------------------
# Directory destinations
# ---------------------------------------------------------------------------


def prepare_dir(path: Path, options: UnrollOptions) -> bool:
    """Make *path* an extraction-ready directory.

    Returns True when the directory already existed before this call.
    """
    with filesystem_errors(f"prepare destination {path}"):
        if path.is_dir():
            if options.cleanup_dest_dir:
                log.debug("cleaning destination directory %s", path)
                remove_dir_entries(path)
            return True

        if path.exists() or path.is_symlink():
            if not options.fix_invalid_dest:
                raise FilesystemError(f"Destination is not a directory: {path}")
            log.debug("removing non-directory destination %s", path)
            path.unlink()

        if not options.create_dest_path:
            raise FilesystemError(f"Destination directory does not exist: {path}")
        log.debug("creating destination directory %s", path)
        path.mkdir(parents=True, exist_ok=True)
        return False


def rollback_dir(path: Path, already_existed: bool, options: UnrollOptions) -> None:
    if not options.cleanup_on_error or not path.is_dir():
        return
    with filesystem_errors(f"roll back destination {path}"):
        if already_existed:
            log.warning("extraction failed, emptying %s", path)
            remove_dir_entries(path)
        else:
            log.warning("extraction failed, removing %s", path)
            shutil.rmtree(path)


# ---------------------------------------------------------------------------
# File destinations
# ---------------------------------------------------------------------------


def prepare_file(path: Path, options: SaveOptions) -> bool:
    """Make *path* writable as a file.

    Returns False when an existing file must be kept, i.e. the save is a no-op.
    """
    with filesystem_errors(f"prepare destination {path}"):
        if path.is_file():
            if not options.force_overwrite:
                log.info("destination exists, leaving it untouched: %s", path)
                return False
            path.unlink()
        elif path.is_dir():
            if options.fix_invalid_dest:
                log.debug("removing directory at file destination %s", path)
                shutil.rmtree(path)
        elif options.create_dest_path:
            path.parent.mkdir(parents=True, exist_ok=True)
    return True


def write_file(stream: BinaryIO, path: Path) -> None:
    with filesystem_errors(f"write {path}"), open(path, "wb") as out:
        shutil.copyfileobj(stream, out)


def rollback_file(path: Path, options: SaveOptions) -> None:
    if not options.cleanup_on_error or not path.is_file():
        return
    log.warning("save failed, removing partial file %s", path)
    with filesystem_errors(f"remove partial file {path}"):
        path.unlink()
