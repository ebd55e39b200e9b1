"""Data models for spec indexes and dependency queries."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from packaging.version import InvalidVersion, Version


class IndexKind(Enum):
    """Index files published by every source."""
    ALL = "all"
    LATEST = "latest"
    PRERELEASE = "prerelease"


class QueryType(Enum):
    """Views over the indexes offered to callers."""
    LATEST = "latest"
    RELEASED = "released"
    COMPLETE = "complete"
    PRERELEASE = "prerelease"


# Order matters: COMPLETE lists prerelease entries before released ones.
QUERY_KINDS: Dict[QueryType, Tuple[IndexKind, ...]] = {
    QueryType.LATEST: (IndexKind.LATEST,),
    QueryType.RELEASED: (IndexKind.ALL,),
    QueryType.COMPLETE: (IndexKind.PRERELEASE, IndexKind.ALL),
    QueryType.PRERELEASE: (IndexKind.PRERELEASE,),
}


class SpecVersion(Version):
    """A comparable version that renders with its original spelling.

    ``14.0.0.beta1`` compares like PEP 440 ``14.0.0b1`` but file names built
    from it must keep the publisher's spelling.
    """

    def __init__(self, version: str) -> None:
        super().__init__(version)
        self.raw = version.strip()

    def __str__(self) -> str:
        return self.raw


class NameTuple(NamedTuple):
    """One package variant without its full descriptor."""
    name: str
    version: Optional[Version]
    platform: Optional[str] = None

    @property
    def is_prerelease(self) -> bool:
        return self.version is not None and self.version.is_prerelease


def parse_version(raw: Any) -> Optional[Version]:
    """Parse ``raw`` into a Version, or None when absent or unparseable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, Version):
        return raw
    try:
        return SpecVersion(str(raw))
    except InvalidVersion:
        return None


def sort_key(spec: NameTuple) -> Tuple[str, bool, Version]:
    """Name first, then version; a missing version sorts lowest."""
    if spec.version is None:
        return spec.name, False, Version("0")
    return spec.name, True, spec.version


@dataclass
class PlatformMismatch:
    """Platforms rejected for one dependency during a match pass."""
    name: str
    version: Optional[Version]
    platforms: List[Optional[str]] = field(default_factory=list)

    def add_platform(self, platform: Optional[str]) -> None:
        self.platforms.append(platform)

    @property
    def wordy(self) -> str:
        found = ", ".join(p or "ruby" for p in self.platforms)
        return f"Found {self.name} ({self.version}), but was for platform{'s' if len(self.platforms) != 1 else ''} {found}"


# (tuple, source url) pairs returned by searches.
SourcedTuple = Tuple[NameTuple, str]
