"""In-process index buckets aggregated across sources."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from common.logging_utils import extra_context
from spec_index.models import IndexKind, NameTuple, QUERY_KINDS, QueryType

logger = logging.getLogger(__name__)

Loader = Callable[[str, IndexKind], List[NameTuple]]


class SpecCache:
    """Per-kind buckets mapping a source to its loaded tuples.

    A (kind, source) slot is loaded at most once until invalidated; each
    slot has its own lock so loads of different indexes do not block each
    other.
    """

    def __init__(self) -> None:
        self._buckets: Dict[IndexKind, Dict[str, List[NameTuple]]] = {
            kind: {} for kind in IndexKind
        }
        self._locks: Dict[Tuple[IndexKind, str], threading.Lock] = {}
        self._guard = threading.Lock()

    def bucket(self, kind: IndexKind) -> Dict[str, List[NameTuple]]:
        return self._buckets[kind]

    def _lock_for(self, kind: IndexKind, source: str) -> threading.Lock:
        with self._guard:
            key = (kind, source)
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get_or_load(self, kind: IndexKind, source: str, loader: Loader) -> List[NameTuple]:
        bucket = self._buckets[kind]
        cached = bucket.get(source)
        if cached is not None:
            return cached
        with self._lock_for(kind, source):
            cached = bucket.get(source)
            if cached is None:
                cached = bucket[source] = loader(source, kind)
            return cached

    def invalidate(self, source: Optional[str] = None, kind: Optional[IndexKind] = None) -> None:
        """Drop loaded slots; waits for an in-flight load of a slot to finish first."""
        kinds = [kind] if kind is not None else list(IndexKind)
        with self._guard:
            # Every slot ever loaded has a lock, so the lock registry lists them all.
            slots = [
                key for key in self._locks
                if key[0] in kinds and (source is None or key[1] == source)
            ]
        for k, s in slots:
            with self._lock_for(k, s):
                self._buckets[k].pop(s, None)
        logger.debug(
            "Spec cache invalidated",
            extra=extra_context(
                event="cache_invalidate",
                component="aggregator",
                source=source,
                kind=kind.value if kind is not None else None,
            ),
        )


class SourceAggregator:
    """Combine index loads over the configured sources."""

    def __init__(self, sources: Sequence[str], cache: SpecCache, loader: Loader):
        self.sources = list(sources)
        self.cache = cache
        self.loader = loader

    def tuples_for(self, source: str, kind: IndexKind) -> List[NameTuple]:
        return self.cache.get_or_load(kind, source, self.loader)

    def available(self, query_type: QueryType) -> Dict[str, List[NameTuple]]:
        """Map every source to the tuples of ``query_type``, in source order."""
        result: Dict[str, List[NameTuple]] = {}
        kinds = QUERY_KINDS[query_type]
        for source in self.sources:
            if len(kinds) == 1:
                result[source] = self.tuples_for(source, kinds[0])
            else:
                combined: List[NameTuple] = []
                for kind in kinds:
                    combined.extend(self.tuples_for(source, kind))
                result[source] = combined
        return result

    def list(self, all: bool = False, prerelease: bool = False) -> Dict[str, List[NameTuple]]:  # pylint: disable=redefined-builtin
        """Presentation view: ``all`` released, ``prerelease`` only, or latest.

        Only the ``all`` view drops tuples with a missing or prerelease
        version; ``latest`` drops prerelease tuples. Cached buckets are left
        untouched.
        """
        if all:
            kind = IndexKind.ALL
        elif prerelease:
            kind = IndexKind.PRERELEASE
        else:
            kind = IndexKind.LATEST

        listing: Dict[str, List[NameTuple]] = {}
        for source in self.sources:
            specs = self.tuples_for(source, kind)
            if kind is IndexKind.ALL:
                specs = [s for s in specs if s.version is not None and not s.is_prerelease]
            elif kind is IndexKind.LATEST:
                specs = [s for s in specs if not s.is_prerelease]
            listing[source] = specs
        return listing
