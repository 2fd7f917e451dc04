"""Lazy tar entry iteration over a decoded byte stream.

Entries are produced in archive order from ``tarfile`` stream mode, so the
sequence is finite and non-restartable: an entry's content must be consumed
before the iterator advances.
"""

from __future__ import annotations

import enum
import tarfile
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from fetch_unroll.archive.decompress import decode_errors

CHUNK_SIZE = 64 * 1024


class EntryKind(enum.Enum):
    DIRECTORY = "directory"
    REGULAR = "regular"
    OTHER = "other"


def _kind_of(member: tarfile.TarInfo) -> EntryKind:
    if member.isdir():
        return EntryKind.DIRECTORY
    if member.isreg():
        return EntryKind.REGULAR
    return EntryKind.OTHER


def _parts_of(name: str) -> tuple[str, ...]:
    # drop the root anchor only; a leading "." stays a component of its own
    relative = name.lstrip("/")
    parts = tuple(p for p in relative.split("/") if p and p != ".")
    if relative == "." or relative.startswith("./"):
        return (".", *parts)
    return parts


@dataclass
class ArchiveEntry:
    name: str
    parts: tuple[str, ...]
    kind: EntryKind
    mode: int
    mtime: float
    linkname: str
    _tar: tarfile.TarFile
    _member: tarfile.TarInfo

    @property
    def is_symlink(self) -> bool:
        return self._member is not None and self._member.issym()

    @property
    def is_hardlink(self) -> bool:
        return self._member is not None and self._member.islnk()

    @property
    def link_parts(self) -> tuple[str, ...]:
        """Components of a hardlink source, which tar names from the archive root."""
        return _parts_of(self.linkname)

    def iter_chunks(self, size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """Yield the entry content. Only valid while this is the current entry."""
        if self.kind is not EntryKind.REGULAR:
            return
        with decode_errors(f"tar entry {self.name!r}"):
            fileobj = self._tar.extractfile(self._member)
        if fileobj is None:
            return
        while True:
            with decode_errors(f"tar entry {self.name!r}"):
                chunk = fileobj.read(size)
            if not chunk:
                return
            yield chunk


def iter_entries(stream: BinaryIO) -> Iterator[ArchiveEntry]:
    """Yield archive entries from a decoded tar *stream*."""
    with decode_errors("tar archive"):
        tar = tarfile.open(fileobj=stream, mode="r|")
    with tar:
        while True:
            with decode_errors("tar archive"):
                member = tar.next()
            if member is None:
                return
            yield ArchiveEntry(
                name=member.name,
                parts=_parts_of(member.name),
                kind=_kind_of(member),
                mode=member.mode,
                mtime=member.mtime,
                linkname=member.linkname,
                _tar=tar,
                _member=member,
            )
