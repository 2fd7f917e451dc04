from __future__ import annotations

import gzip
import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import pytest


def _add(tar: tarfile.TarFile, name: str, data: bytes | None, mode: int) -> None:
    info = tarfile.TarInfo(name)
    info.mtime = 1_600_000_000
    if data is None:
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
        tar.addfile(info)
    else:
        info.size = len(data)
        info.mode = mode
        tar.addfile(info, io.BytesIO(data))


def build_targz(
    entries: dict[str, bytes | None],
    links: dict[str, str] | None = None,
    modes: dict[str, int] | None = None,
    hardlinks: dict[str, str] | None = None,
) -> bytes:
    """Build a .tar.gz in memory.

    *entries* maps member names to file content (None for a directory);
    *links* maps symlink names to their targets and *hardlinks* maps hardlink
    names to the archive member they share content with.
    """
    modes = modes or {}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT) as tar:
        for name, data in entries.items():
            _add(tar, name, data, modes.get(name, 0o644))
        for name, target in (links or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.SYMTYPE
            info.linkname = target
            tar.addfile(info)
        for name, source in (hardlinks or {}).items():
            info = tarfile.TarInfo(name)
            info.type = tarfile.LNKTYPE
            info.linkname = source
            tar.addfile(info)
    return gzip.compress(buf.getvalue(), mtime=0)


def snapshot_tree(root: Path) -> dict[str, bytes | None]:
    """Map each path under *root* to its bytes (None for directories)."""
    tree: dict[str, bytes | None] = {}
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root).as_posix()
        tree[rel] = None if p.is_dir() else p.read_bytes()
    return tree


@pytest.fixture
def targz() -> Callable[..., bytes]:
    return build_targz


@pytest.fixture
def snapshot() -> Callable[[Path], dict[str, bytes | None]]:
    return snapshot_tree


@pytest.fixture
def pkg_archive() -> bytes:
    """A typical release tarball wrapped in a single top-level directory."""
    return build_targz(
        {
            "pkg-1.0/": None,
            "pkg-1.0/bin/": None,
            "pkg-1.0/bin/tool": b"#!/bin/sh\necho tool\n",
            "pkg-1.0/lib/": None,
            "pkg-1.0/lib/lib.so": b"\x7fELF fake",
            "pkg-1.0/README": b"read me\n",
        },
        modes={"pkg-1.0/bin/tool": 0o755},
    )
