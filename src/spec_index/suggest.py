"""'Did you mean' suggestions for unknown package names."""
from __future__ import annotations

from typing import Iterable, List, Tuple

from constants import Constants
from spec_index.models import NameTuple
from spec_index.platforms import PlatformPredicate


def levenshtein_distance(str1: str, str2: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if str1 == str2:
        return 0
    if not str1:
        return len(str2)
    if not str2:
        return len(str1)

    previous = list(range(len(str2) + 1))
    for i, c1 in enumerate(str1, start=1):
        current = [i]
        for j, c2 in enumerate(str2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def suggest_names(
    gem_name: str,
    specs: Iterable[NameTuple],
    platform_match: PlatformPredicate,
    limit: int = Constants.SUGGESTION_LIMIT,
) -> List[str]:
    """Return up to ``limit`` names close to ``gem_name``.

    Candidates must be at a distance below ``len(gem_name) // 2``; an exact
    (case-insensitive) hit short-circuits and is returned alone, even for
    one-letter queries whose threshold is zero. Ties keep first-seen order.
    """
    gem_name = gem_name.lower()
    max_distance = len(gem_name) // 2

    matches: List[Tuple[str, int]] = []
    for spec in specs:
        if not platform_match(spec.platform):
            continue
        distance = levenshtein_distance(gem_name, spec.name.lower())
        # Checked before the threshold so one-letter queries still find an
        # exact name; rubygems skips those because its threshold is 0.
        if distance == 0:
            return [spec.name]
        if distance >= max_distance:
            continue
        matches.append((spec.name, distance))

    unique: List[Tuple[str, int]] = []
    seen = set()
    for match in matches:
        if match not in seen:
            seen.add(match)
            unique.append(match)
    unique.sort(key=lambda match: match[1])
    return [name for name, _ in unique[:limit]]
