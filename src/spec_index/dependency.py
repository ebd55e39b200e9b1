"""Dependency queries: a name plus a version requirement."""
from __future__ import annotations

import re
from typing import Optional, Pattern, Union

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

from spec_index.models import parse_version

_PESSIMISTIC = re.compile(r"^~>\s*(?P<version>\S+)$")
_BARE_EQUALS = re.compile(r"^=\s*(?P<version>\S+)$")
_OP_SPACE = re.compile(r"^(?P<op>[<>=!~]+)\s+")


def _translate_clause(clause: str) -> str:
    """Map one requirement clause onto PEP 440 syntax.

    ``~> 1.2`` becomes ``~=1.2``; ``~> 1`` (single component, not valid for
    ``~=``) becomes ``>=1,<2``; ``= 1.0`` becomes ``==1.0``.
    """
    clause = clause.strip()
    m = _PESSIMISTIC.match(clause)
    if m:
        ver = m.group("version")
        if "." not in ver:
            return f">={ver},<{int(ver) + 1}"
        return f"~={ver}"
    m = _BARE_EQUALS.match(clause)
    if m:
        return f"=={m.group('version')}"
    if clause and clause[0].isdigit():
        return f"=={clause}"
    return _OP_SPACE.sub(lambda mo: mo.group("op"), clause)


def parse_requirement(requirement: Optional[str]) -> SpecifierSet:
    """Parse a comma-separated requirement string into a SpecifierSet.

    Raises:
        ValueError: if a clause cannot be parsed.
    """
    if not requirement or not requirement.strip():
        return SpecifierSet()
    clauses = [_translate_clause(c) for c in requirement.split(",") if c.strip()]
    try:
        return SpecifierSet(",".join(clauses))
    except InvalidSpecifier as exc:
        raise ValueError(f"Invalid requirement: {requirement!r}") from exc


class Dependency:
    """A single dependency query against the spec indexes.

    ``name`` may be an exact package name or a compiled regular expression.
    The prerelease flag is implied when the requirement names a prerelease
    version; the latest-only flag defaults to "no version requirement".
    """

    def __init__(
        self,
        name: Union[str, Pattern[str]],
        requirement: Optional[str] = None,
        prerelease: bool = False,
        latest_version: Optional[bool] = None,
    ):
        self.name = name
        self.requirement = requirement or ""
        self.specifier = parse_requirement(requirement)
        self._prerelease = prerelease
        self._latest_version = latest_version

    @property
    def prerelease(self) -> bool:
        if self._prerelease:
            return True
        for spec in self.specifier:
            version = parse_version(spec.version.rstrip(".*"))
            if version is not None and version.is_prerelease:
                return True
        return False

    @property
    def latest_version(self) -> bool:
        if self._latest_version is not None:
            return self._latest_version
        return len(self.specifier) == 0

    def name_matches(self, name: str) -> bool:
        if isinstance(self.name, str):
            return self.name == name
        return self.name.search(name) is not None

    def match(self, name: str, version: Optional[Version]) -> bool:
        """True when ``name`` matches and ``version`` satisfies the requirement."""
        if version is None or not self.name_matches(name):
            return False
        return self.specifier.contains(version, prereleases=True)

    def _key(self):
        name = self.name if isinstance(self.name, str) else self.name.pattern
        return name, str(self.specifier), self.prerelease, self.latest_version

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dependency):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        name = self.name if isinstance(self.name, str) else self.name.pattern
        req = f" ({self.requirement})" if self.requirement else ""
        return f"<Dependency {name}{req}>"
