"""Exceptions raised by the spec index."""
from __future__ import annotations

from typing import Optional


class SpecFetcherError(Exception):
    """Base class for spec index failures."""


class FetchError(SpecFetcherError):
    """Remote source unreachable and no usable local copy."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CorruptCacheError(SpecFetcherError):
    """A cached file still fails to decode after the self-heal retry."""

    def __init__(self, path: str):
        super().__init__(f"Invalid spec cache file in {path}")
        self.path = path
