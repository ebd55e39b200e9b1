"""Match dependency queries against aggregated index tuples."""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from spec_index.aggregator import SourceAggregator
from spec_index.dependency import Dependency
from spec_index.models import NameTuple, PlatformMismatch, QueryType, SourcedTuple, sort_key
from spec_index.platforms import PlatformPredicate

logger = logging.getLogger(__name__)


def query_type_for(dependency: Dependency) -> QueryType:
    """Prerelease queries see every index; latest-only ones the latest index."""
    if dependency.prerelease:
        return QueryType.COMPLETE
    if dependency.latest_version:
        return QueryType.LATEST
    return QueryType.RELEASED


class DependencyMatcher:
    """Filter, platform-check and order index tuples for one dependency."""

    def __init__(self, aggregator: SourceAggregator, platform_match: PlatformPredicate):
        self.aggregator = aggregator
        self.platform_match = platform_match

    def search(
        self, dependency: Dependency, matching_platform: bool = True
    ) -> Tuple[List[SourcedTuple], List[PlatformMismatch]]:
        """Find the tuples satisfying ``dependency``.

        Returns (tuples, mismatches): ``(tuple, source)`` pairs sorted by name
        then version (stable for equal keys), and at most one
        ``PlatformMismatch`` per dependency listing every rejected platform.
        With ``matching_platform`` false every platform is accepted.
        """
        query_type = query_type_for(dependency)
        rejected: Dict[Dependency, PlatformMismatch] = {}
        found: List[SourcedTuple] = []

        for source, specs in self.aggregator.available(query_type).items():
            for spec in specs:
                if not dependency.match(spec.name, spec.version):
                    continue
                if matching_platform and not self.platform_match(spec.platform):
                    mismatch = rejected.get(dependency)
                    if mismatch is None:
                        mismatch = rejected[dependency] = PlatformMismatch(spec.name, spec.version)
                    mismatch.add_platform(spec.platform)
                    continue
                found.append((spec, source))

        found.sort(key=lambda pair: sort_key(pair[0]))

        if is_debug_enabled(logger):
            logger.debug(
                "Dependency search",
                extra=extra_context(
                    event="search",
                    component="matcher",
                    target=repr(dependency),
                    kind=query_type.value,
                    count=len(found),
                ),
            )
        return found, list(rejected.values())

    def detect(
        self,
        predicate: Callable[[str, Optional[object], Optional[str]], bool],
        query_type: QueryType = QueryType.COMPLETE,
    ) -> List[SourcedTuple]:
        """Every ``(tuple, source)`` for which ``predicate(name, version, platform)`` holds."""
        tuples: List[SourcedTuple] = []
        for source, specs in self.aggregator.available(query_type).items():
            for spec in specs:
                if predicate(spec.name, spec.version, spec.platform):
                    tuples.append((spec, source))
        return tuples


def flatten(listing: Dict[str, List[NameTuple]]) -> List[NameTuple]:
    """Concatenate per-source tuple lists in source order."""
    flat: List[NameTuple] = []
    for specs in listing.values():
        flat.extend(specs)
    return flat
