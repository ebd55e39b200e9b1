"""SpecFetcher: metadata sync and lookup across remote sources.

One instance owns its in-process index buckets; nothing is shared between
instances. Collaborators (transport, codec, platform predicate) can be
injected, otherwise the ``requests``-backed transport, the JSON codec and
the configured local platforms are used.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from constants import Constants
from common.logging_utils import extra_context
from spec_index.aggregator import SourceAggregator, SpecCache
from spec_index.blob_cache import BlobCache, Transport
from spec_index.codec import Codec, JsonCodec
from spec_index.dependency import Dependency
from spec_index.descriptor import DescriptorFetcher
from spec_index.index import IndexLoader
from spec_index.matcher import DependencyMatcher, flatten
from spec_index.models import IndexKind, NameTuple, PlatformMismatch, QueryType, SourcedTuple
from spec_index.paths import cache_dir
from spec_index.platforms import PlatformPredicate, make_platform_match
from spec_index.suggest import suggest_names

logger = logging.getLogger(__name__)


def owns_cache_root(cache_root: str) -> bool:
    """True when the current user owns the home directory above ``cache_root``.

    Platforms without uids (Windows) always allow writes.
    """
    getuid = getattr(os, "getuid", None)
    if getuid is None:
        return True
    home = os.path.expanduser("~")
    probe = home if cache_root.startswith(home) else cache_root
    while not os.path.exists(probe):
        parent = os.path.dirname(probe)
        if parent == probe:
            return False
        probe = parent
    return os.stat(probe).st_uid == getuid()


class SpecFetcher:
    """Retrieve, cache and query spec indexes of remote sources."""

    def __init__(
        self,
        sources: Optional[Sequence[str]] = None,
        transport: Optional[Transport] = None,
        codec: Optional[Codec] = None,
        cache_root: Optional[str] = None,
        update_cache: Optional[bool] = None,
        platform_match: Optional[PlatformPredicate] = None,
    ):
        if transport is None:
            from common.http_client import RemoteFetcher  # pylint: disable=import-outside-toplevel
            transport = RemoteFetcher()

        self.sources = list(sources if sources is not None else Constants.DEFAULT_SOURCES)
        self.dir = cache_root or Constants.CACHE_ROOT
        if update_cache is None:
            update_cache = Constants.UPDATE_CACHE
        if update_cache is None:
            update_cache = owns_cache_root(self.dir)
        self.update_cache = update_cache
        self.transport = transport
        self.codec = codec or JsonCodec()
        self.platform_match = platform_match or make_platform_match()

        self.cache = SpecCache()
        self.blob_cache = BlobCache(self.transport, self.codec, self.update_cache)
        self.index_loader = IndexLoader(self.blob_cache, self.dir)
        self.descriptors = DescriptorFetcher(self.transport, self.codec, self.dir, self.update_cache)
        self.aggregator = SourceAggregator(self.sources, self.cache, self.index_loader.load)
        self.matcher = DependencyMatcher(self.aggregator, self.platform_match)

        logger.debug(
            "Spec fetcher ready",
            extra=extra_context(
                event="init",
                component="fetcher",
                path=self.dir,
                count=len(self.sources),
                update_cache=self.update_cache,
            ),
        )

    # ------------------------------------------------------------------
    # Cache layout and raw loads
    # ------------------------------------------------------------------

    def cache_dir(self, uri: str) -> str:
        """Return the local directory to write ``uri`` to."""
        return cache_dir(self.dir, uri)

    def load_specs(self, source: str, kind: IndexKind) -> List[NameTuple]:
        """Load an index file, bypassing the in-process buckets."""
        return self.index_loader.load(source, kind)

    def tuples_for(self, source: str, kind: IndexKind) -> List[NameTuple]:
        return self.aggregator.tuples_for(source, kind)

    def invalidate(self, source: Optional[str] = None, kind: Optional[IndexKind] = None) -> None:
        """Forget loaded indexes so the next query reloads them."""
        self.cache.invalidate(source, kind)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def available_specs(self, query_type: QueryType) -> Dict[str, List[NameTuple]]:
        return self.aggregator.available(query_type)

    def list(self, all: bool = False, prerelease: bool = False) -> Dict[str, List[NameTuple]]:  # pylint: disable=redefined-builtin
        return self.aggregator.list(all=all, prerelease=prerelease)

    def fetch_spec(self, spec: NameTuple, source: str) -> Any:
        return self.descriptors.fetch(spec, source)

    def search_for_dependency(
        self, dependency: Dependency, matching_platform: bool = True
    ) -> Tuple[List[SourcedTuple], List[PlatformMismatch]]:
        return self.matcher.search(dependency, matching_platform)

    def spec_for_dependency(
        self, dependency: Dependency, matching_platform: bool = True
    ) -> Tuple[List[Tuple[Any, str]], List[PlatformMismatch]]:
        """Like ``search_for_dependency`` but with full descriptors."""
        tuples, errors = self.search_for_dependency(dependency, matching_platform)
        specs = [(self.fetch_spec(spec, source), source) for spec, source in tuples]
        return specs, errors

    def find_matching(self, dependency: Dependency) -> List[SourcedTuple]:
        return self.search_for_dependency(dependency)[0]

    def detect(
        self,
        predicate: Callable[[str, Any, Optional[str]], bool],
        query_type: QueryType = QueryType.COMPLETE,
    ) -> List[SourcedTuple]:
        return self.matcher.detect(predicate, query_type)

    def suggest_gems_from_name(self, gem_name: str) -> List[str]:
        """Up to five installable names close to ``gem_name``."""
        return suggest_names(gem_name, flatten(self.list()), self.platform_match)
