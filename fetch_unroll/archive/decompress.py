"""Gzip decoding over a forward-only byte stream."""

from __future__ import annotations

import gzip
import tarfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO

from fetch_unroll.errors import DecodeError

_DECODE_FAILURES = (tarfile.TarError, gzip.BadGzipFile, zlib.error, EOFError)


@contextmanager
def decode_errors(what: str) -> Iterator[None]:
    """Translate gzip/tar decoding failures into DecodeError."""
    try:
        yield
    except _DECODE_FAILURES as exc:
        raise DecodeError(f"Malformed {what}: {exc}") from exc


def open_gzip(stream: BinaryIO) -> gzip.GzipFile:
    """Wrap *stream* in a gzip decoder, checking the header up front.

    Raises DecodeError when the stream is not gzip data.
    """
    decoder = gzip.GzipFile(fileobj=stream, mode="rb")
    with decode_errors("gzip stream"):
        decoder.peek(1)
    return decoder


def read_all(decoder: gzip.GzipFile) -> bytes:
    """Buffer the whole decoded payload in memory."""
    with decode_errors("gzip stream"):
        return decoder.read()
