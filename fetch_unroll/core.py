"""Pipeline orchestration: fetch → (save | gunzip → tar entries → strip → write).

Typical use from a build script::

    Fetch.from_url(url).unroll().strip_components(1).to("vendor/libfoo")

Each builder carries a frozen options bundle; toggles return a new builder.
Failures raise a :class:`~fetch_unroll.errors.FetchUnrollError` subclass after
the destination has been rolled back (unless cleanup-on-error is disabled).
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import httpx

from fetch_unroll.archive.decompress import open_gzip
from fetch_unroll.archive.extract import extract
from fetch_unroll.installer.destination import (
    filesystem_errors,
    prepare_dir,
    prepare_file,
    rollback_dir,
    rollback_file,
    write_file,
)
from fetch_unroll.logging import get_logger
from fetch_unroll.transport.http import FetchSource, fetch
from fetch_unroll.types import SaveOptions, TransportOptions, UnrollOptions

log = get_logger()


class Fetch:
    def __init__(self, source: FetchSource) -> None:
        self.source = source

    @classmethod
    def from_url(
        cls,
        url: str,
        options: TransportOptions | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> Fetch:
        return cls(fetch(url, options, transport=transport))

    @classmethod
    def from_fileobj(cls, fileobj: BinaryIO) -> Fetch:
        """Use an already opened binary stream (taken over and closed) as the source."""
        return cls(FetchSource.from_fileobj(fileobj))

    def save(self) -> Save:
        return Save(self.source)

    def unroll(self) -> Unroll:
        return Unroll(self.source)


class Save:
    """Write the fetched bytes to a single file."""

    def __init__(self, source: FetchSource, options: SaveOptions | None = None) -> None:
        self.source = source
        self.options = options or SaveOptions()

    def _with(self, **changes) -> Save:
        return Save(self.source, SaveOptions.model_validate({**self.options.model_dump(), **changes}))

    def create_dest_path(self, flag: bool) -> Save:
        return self._with(create_dest_path=flag)

    def force_overwrite(self, flag: bool) -> Save:
        return self._with(force_overwrite=flag)

    def fix_invalid_dest(self, flag: bool) -> Save:
        return self._with(fix_invalid_dest=flag)

    def cleanup_on_error(self, flag: bool) -> Save:
        return self._with(cleanup_on_error=flag)

    def to(self, path: str | Path) -> None:
        """Save to *path*.

        An existing file is kept as-is (and the call succeeds) when
        force-overwrite is off.
        """
        path = Path(path)
        with self.source as source:
            stream = source.reader()
            if not prepare_file(path, self.options):
                return
            try:
                write_file(stream, path)
            except Exception:
                rollback_file(path, self.options)
                raise
        log.info("saved %s", path)


class Unroll:
    """Extract a fetched .tar.gz archive into a directory."""

    def __init__(self, source: FetchSource, options: UnrollOptions | None = None) -> None:
        self.source = source
        self.options = options or UnrollOptions()

    def _with(self, **changes) -> Unroll:
        return Unroll(
            self.source, UnrollOptions.model_validate({**self.options.model_dump(), **changes})
        )

    def create_dest_path(self, flag: bool) -> Unroll:
        return self._with(create_dest_path=flag)

    def cleanup_dest_dir(self, flag: bool) -> Unroll:
        return self._with(cleanup_dest_dir=flag)

    def fix_invalid_dest(self, flag: bool) -> Unroll:
        return self._with(fix_invalid_dest=flag)

    def cleanup_on_error(self, flag: bool) -> Unroll:
        return self._with(cleanup_on_error=flag)

    def strip_components(self, count: int) -> Unroll:
        return self._with(strip_components=count)

    def strip_when_alone(self, flag: bool) -> Unroll:
        return self._with(strip_when_alone=flag)

    def to(self, path: str | Path) -> None:
        path = Path(path)
        with self.source as source:
            stream = source.reader()
            already_existed = prepare_dir(path, self.options)
            try:
                with filesystem_errors(f"extract into {path}"), open_gzip(stream) as decoder:
                    count = extract(decoder, path, self.options.strip_policy)
            except Exception:
                rollback_dir(path, already_existed, self.options)
                raise
        log.info("unrolled %d entries into %s", count, path)


def fetch_unroll(
    url: str,
    dest: str | Path,
    options: UnrollOptions | None = None,
    *,
    transport_options: TransportOptions | None = None,
    transport: httpx.BaseTransport | None = None,
) -> None:
    """Fetch a .tar.gz from *url* and extract it into *dest*."""
    Unroll(fetch(url, transport_options, transport=transport), options).to(dest)


def fetch_save(
    url: str,
    dest: str | Path,
    options: SaveOptions | None = None,
    *,
    transport_options: TransportOptions | None = None,
    transport: httpx.BaseTransport | None = None,
) -> None:
    """Fetch *url* and write the body to the file *dest*."""
    Save(fetch(url, transport_options, transport=transport), options).to(dest)
