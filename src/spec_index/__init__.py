"""Client-side spec index: fetch, cache and query remote package indexes."""

from spec_index.dependency import Dependency
from spec_index.errors import CorruptCacheError, FetchError, SpecFetcherError
from spec_index.fetcher import SpecFetcher
from spec_index.models import IndexKind, NameTuple, PlatformMismatch, QueryType

__all__ = [
    "SpecFetcher",
    "Dependency",
    "NameTuple",
    "IndexKind",
    "QueryType",
    "PlatformMismatch",
    "SpecFetcherError",
    "FetchError",
    "CorruptCacheError",
]
