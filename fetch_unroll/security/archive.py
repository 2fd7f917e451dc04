"""Entry containment guards for tar extraction.

Guards against common archive attacks:
- Tar Slip (../ traversal)
- Absolute member names (anchors are dropped by the reader; resolution is re-checked here)
- Symlinks whose target leaves the destination
- setuid/setgid bits carried by archive members
"""

from __future__ import annotations

import os
import stat
from pathlib import Path, PurePosixPath


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def safe_target(root: Path, parts: tuple[str, ...]) -> Path | None:
    """Return ``root`` joined with *parts*, or None when it would escape *root*."""
    if ".." in parts:
        return None
    base = root.resolve()
    target = base.joinpath(*parts)
    if not _is_within(base, target.resolve()):
        return None
    return target


def safe_symlink(root: Path, link: Path, linkname: str) -> bool:
    """Whether a symlink at *link* pointing to *linkname* resolves inside *root*."""
    if not linkname or PurePosixPath(linkname).is_absolute():
        return False
    base = root.resolve()
    resolved = Path(os.path.normpath(link.parent.resolve() / linkname))
    return _is_within(base, resolved)


def file_mode(mode: int) -> int:
    return stat.S_IMODE(mode) & ~stat.S_ISUID & ~stat.S_ISGID


def dir_mode(mode: int) -> int:
    # owner must be able to write children into it
    return file_mode(mode) | stat.S_IRWXU
