"""Write tar entries into a prepared destination directory.

Without stripping, entries stream straight from the gzip decoder in a single
pass, and symlinks and hardlinks are recreated when they stay inside the
destination. With stripping, the decoded payload is buffered once; when the
strip depth must be capped by the common ancestor, a first pass over the buffer
measures it and a second pass over a fresh view of the same buffer extracts.
Links are skipped there, since their targets name unstripped paths.
"""

from __future__ import annotations

import gzip
import io
import os
from collections.abc import Iterable
from pathlib import Path

from fetch_unroll.archive.decompress import read_all
from fetch_unroll.archive.reader import ArchiveEntry, EntryKind, iter_entries
from fetch_unroll.archive.strip import common_components, effective_strip, stripped_parts
from fetch_unroll.errors import FilesystemError
from fetch_unroll.logging import get_logger
from fetch_unroll.security.archive import dir_mode, file_mode, safe_symlink, safe_target
from fetch_unroll.types import StripPolicy

log = get_logger()


def _write_file(entry: ArchiveEntry, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "wb") as out:
        for chunk in entry.iter_chunks():
            out.write(chunk)
    os.chmod(target, file_mode(entry.mode))
    os.utime(target, (entry.mtime, entry.mtime))


def _link_source(entry: ArchiveEntry, dest: Path, target: Path) -> Path | str | None:
    """Return what *entry* links to, or None when that leaves *dest*."""
    if entry.is_symlink:
        return entry.linkname if safe_symlink(dest, target, entry.linkname) else None
    if entry.link_parts in ((), (".",)):
        return None
    return safe_target(dest, entry.link_parts)


def _write_link(entry: ArchiveEntry, dest: Path) -> bool:
    target = None
    if entry.parts not in ((), (".",)):
        target = safe_target(dest, entry.parts)
    if target is None:
        log.warning("skipping entry outside destination: %s", entry.name)
        return False
    source = _link_source(entry, dest, target)
    if source is None:
        log.warning("skipping link leaving destination: %s -> %s", entry.name, entry.linkname)
        return False

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() or target.is_file():
            target.unlink()
        if entry.is_symlink:
            os.symlink(source, target)
        else:
            os.link(source, target)
    except OSError as exc:
        raise FilesystemError(f"Failed to link {entry.name!r} to {entry.linkname!r}: {exc}") from exc
    return True


def _write_entry(entry: ArchiveEntry, dest: Path, strip: int, links: bool) -> bool:
    if links and (entry.is_symlink or entry.is_hardlink):
        return _write_link(entry, dest)

    parts = stripped_parts(entry, strip)
    if parts is None:
        if entry.kind is EntryKind.OTHER:
            log.info("skipping %s entry: %s", entry.kind.value, entry.name)
        return False

    target = safe_target(dest, parts)
    if target is None:
        log.warning("skipping entry outside destination: %s", entry.name)
        return False

    try:
        if entry.kind is EntryKind.DIRECTORY:
            target.mkdir(parents=True, exist_ok=True)
            os.chmod(target, dir_mode(entry.mode))
        else:
            _write_file(entry, target)
    except OSError as exc:
        raise FilesystemError(f"Failed to extract {entry.name!r} to {target}: {exc}") from exc
    return True


def write_entries(
    entries: Iterable[ArchiveEntry], dest: Path, strip: int, links: bool = False
) -> int:
    """Extract *entries* under *dest*; return how many were written.

    Symlinks and hardlinks are recreated only when *links* is set. The first
    failing entry aborts the whole run.
    """
    return sum(1 for entry in entries if _write_entry(entry, dest, strip, links))


def extract(decoder: gzip.GzipFile, dest: Path, policy: StripPolicy) -> int:
    if policy.count == 0:
        return write_entries(iter_entries(decoder), dest, 0, links=True)

    payload = read_all(decoder)
    common = None
    if policy.when_alone:
        common = common_components(iter_entries(io.BytesIO(payload)))
        log.debug("common ancestor depth: %d", common)
    strip = effective_strip(policy, common)
    log.debug("stripping %d leading components", strip)
    return write_entries(iter_entries(io.BytesIO(payload)), dest, strip)
