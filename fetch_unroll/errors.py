"""Error taxonomy shared by every stage of the fetch/unroll pipeline."""

from __future__ import annotations


class FetchUnrollError(Exception):
    """Base class for all fetch-unroll failures."""


class TransportError(FetchUnrollError):
    """The HTTP fetch failed: network, TLS, status, redirect loop or bad URL."""


class DecodeError(FetchUnrollError):
    """The payload is not a valid gzip-compressed tar stream."""


class FilesystemError(FetchUnrollError):
    """Writing to (or preparing) the destination failed."""
