"""Leading path-component stripping with common-ancestor detection."""

from __future__ import annotations

from collections.abc import Iterable

from fetch_unroll.archive.reader import ArchiveEntry, EntryKind
from fetch_unroll.types import StripPolicy

_EXTRACTABLE = (EntryKind.DIRECTORY, EntryKind.REGULAR)


def common_components(entries: Iterable[ArchiveEntry]) -> int:
    """Return how many leading components every directory/file entry shares.

    Comparison is component-wise and stops at the first divergence. Archives
    without directory or regular-file entries have depth 0.
    """
    common: tuple[str, ...] | None = None
    for entry in entries:
        if entry.kind not in _EXTRACTABLE:
            continue
        if common is None:
            common = entry.parts
            continue
        depth = 0
        for ours, theirs in zip(common, entry.parts):
            if ours != theirs:
                break
            depth += 1
        common = common[:depth]
    return len(common) if common else 0


def effective_strip(policy: StripPolicy, common: int | None = None) -> int:
    if not policy.when_alone:
        return policy.count
    if common is None:
        raise ValueError("common ancestor depth is required when stripping only when alone")
    return min(policy.count, common)


def stripped_parts(entry: ArchiveEntry, strip: int) -> tuple[str, ...] | None:
    """Return the destination-relative components for *entry*, or None to skip it.

    Directories stripped down to nothing are skipped; regular files always keep
    at least their own name. A bare "." names the destination itself and is
    skipped too.
    """
    if entry.kind not in _EXTRACTABLE or not entry.parts:
        return None
    if entry.kind is EntryKind.DIRECTORY:
        remaining = entry.parts[strip:]
    else:
        remaining = entry.parts[min(strip, len(entry.parts) - 1):]
    if not remaining or remaining == (".",):
        return None
    return remaining
