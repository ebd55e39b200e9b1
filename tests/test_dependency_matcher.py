"""Tests for dependency parsing and matching against the indexes."""

import re

import pytest

from spec_index.aggregator import SourceAggregator, SpecCache
from spec_index.dependency import Dependency, parse_requirement
from spec_index.matcher import DependencyMatcher, query_type_for
from spec_index.models import IndexKind, NameTuple, QueryType, parse_version
from spec_index.platforms import make_platform_match

from conftest import MIRROR, SOURCE


def _tuple(name, version, platform="ruby"):
    return NameTuple(name, parse_version(version), platform)


def _matcher(data, sources=(SOURCE,), platforms=("x86_64-linux",)):
    def loader(source, kind):
        return list(data.get((source, kind), []))

    aggregator = SourceAggregator(list(sources), SpecCache(), loader)
    return DependencyMatcher(aggregator, make_platform_match(platforms))


class TestDependency:
    """Test requirement parsing and the match predicate."""

    @pytest.mark.parametrize("requirement,inside,outside", [
        (">= 1.0, < 2", "1.5", "2.0"),
        ("~> 1.2", "1.9", "2.0"),
        ("~> 1.2.3", "1.2.9", "1.3.0"),
        ("~> 1", "1.9", "2.0"),
        ("= 1.0", "1.0", "1.0.1"),
        ("1.0", "1.0", "1.1"),
        ("!= 1.1", "1.2", "1.1"),
    ])
    def test_requirement_translation(self, requirement, inside, outside):
        """Test requirement operators map onto version specifiers."""
        dep = Dependency("rake", requirement)
        assert dep.match("rake", parse_version(inside))
        assert not dep.match("rake", parse_version(outside))

    def test_invalid_requirement(self):
        """Test an unparseable requirement raises ValueError."""
        with pytest.raises(ValueError):
            parse_requirement(">> nonsense")

    def test_name_must_match(self):
        """Test a different name never matches."""
        assert not Dependency("rake").match("rack", parse_version("1.0"))

    def test_regex_name(self):
        """Test a compiled pattern matches by search."""
        dep = Dependency(re.compile(r"^ra"))
        assert dep.match("rake", parse_version("1.0"))
        assert dep.match("rack", parse_version("1.0"))
        assert not dep.match("nokogiri", parse_version("1.0"))

    def test_missing_version_never_matches(self):
        """Test a tuple without a version never matches."""
        assert not Dependency("rake").match("rake", None)

    def test_prerelease_implied_by_requirement(self):
        """Test a prerelease requirement implies prerelease."""
        assert Dependency("rake", ">= 14.0.0.beta1").prerelease
        assert not Dependency("rake", ">= 13").prerelease

    def test_latest_defaults_to_no_requirement(self):
        """Test latest-only defaults to having no requirement."""
        assert Dependency("rake").latest_version
        assert not Dependency("rake", ">= 1").latest_version
        assert not Dependency("rake", latest_version=False).latest_version

    def test_equal_dependencies_hash_alike(self):
        """Test equal dependencies compare and hash alike."""
        assert Dependency("rake", "~> 13.0") == Dependency("rake", "~> 13.0")
        assert len({Dependency("rake", "~> 13.0"), Dependency("rake", "~> 13.0")}) == 1


class TestQueryTypeSelection:
    """Test the dependency to query type mapping."""

    def test_prerelease_wins(self):
        """Test prerelease selects the complete view."""
        assert query_type_for(Dependency("rake", prerelease=True, latest_version=True)) is QueryType.COMPLETE

    def test_latest(self):
        """Test latest-only selects the latest view."""
        assert query_type_for(Dependency("rake")) is QueryType.LATEST

    def test_released(self):
        """Test a plain requirement selects the released view."""
        assert query_type_for(Dependency("rake", ">= 1")) is QueryType.RELEASED


class TestSearch:
    """Test filtering, ordering and platform mismatch collection."""

    def test_sorted_by_name_then_version(self):
        """Test results are sorted by name then version."""
        data = {(SOURCE, IndexKind.ALL): [_tuple("b", "1"), _tuple("a", "2"), _tuple("a", "1")]}
        matcher = _matcher(data)

        tuples, errors = matcher.search(Dependency(re.compile("."), ">= 0"))

        assert [(t.name, str(t.version)) for t, _ in tuples] == [("a", "1"), ("a", "2"), ("b", "1")]
        assert errors == []

    def test_equal_keys_keep_encounter_order(self):
        """Test equal sort keys keep source order."""
        data = {
            (SOURCE, IndexKind.ALL): [_tuple("rake", "13.0.1", "x86_64-linux")],
            (MIRROR, IndexKind.ALL): [_tuple("rake", "13.0.1", "ruby")],
        }
        matcher = _matcher(data, sources=(SOURCE, MIRROR))

        tuples, _ = matcher.search(Dependency("rake", ">= 13"))

        assert [(t.platform, src) for t, src in tuples] == [("x86_64-linux", SOURCE), ("ruby", MIRROR)]

    def test_results_carry_source(self):
        """Test each result carries its source."""
        data = {
            (SOURCE, IndexKind.ALL): [_tuple("rake", "13.0.1")],
            (MIRROR, IndexKind.ALL): [_tuple("rake", "12.3.3")],
        }
        matcher = _matcher(data, sources=(SOURCE, MIRROR))

        tuples, _ = matcher.search(Dependency("rake", ">= 12"))

        assert tuples == [(_tuple("rake", "12.3.3"), MIRROR), (_tuple("rake", "13.0.1"), SOURCE)]

    def test_one_mismatch_record_lists_every_rejected_platform(self):
        """Test one mismatch record collects every rejected platform."""
        data = {(SOURCE, IndexKind.ALL): [
            _tuple("nokogiri", "1.11.0", "java"),
            _tuple("nokogiri", "1.11.0", "x64-mingw32"),
            _tuple("nokogiri", "1.11.0", "x86_64-linux"),
        ]}
        matcher = _matcher(data)

        tuples, errors = matcher.search(Dependency("nokogiri", "= 1.11.0"))

        assert [t.platform for t, _ in tuples] == ["x86_64-linux"]
        assert len(errors) == 1
        assert errors[0].name == "nokogiri"
        assert errors[0].platforms == ["java", "x64-mingw32"]

    def test_matching_platform_false_accepts_everything(self):
        """Test platform filtering can be disabled."""
        data = {(SOURCE, IndexKind.ALL): [
            _tuple("nokogiri", "1.11.0", "java"),
            _tuple("nokogiri", "1.11.0", "x64-mingw32"),
        ]}
        matcher = _matcher(data)

        tuples, errors = matcher.search(Dependency("nokogiri", "= 1.11.0"), matching_platform=False)

        assert len(tuples) == 2
        assert errors == []

    def test_prerelease_dependency_searches_complete_view(self):
        """Test prerelease dependencies also see prerelease tuples."""
        data = {
            (SOURCE, IndexKind.ALL): [_tuple("rake", "13.0.1")],
            (SOURCE, IndexKind.PRERELEASE): [_tuple("rake", "14.0.0.beta1")],
        }
        matcher = _matcher(data)

        released, _ = matcher.search(Dependency("rake", ">= 13"))
        complete, _ = matcher.search(Dependency("rake", ">= 13", prerelease=True))

        assert [str(t.version) for t, _ in released] == ["13.0.1"]
        assert [str(t.version) for t, _ in complete] == ["13.0.1", "14.0.0.beta1"]

    def test_latest_dependency_uses_latest_index(self):
        """Test latest-only dependencies read the latest index."""
        data = {
            (SOURCE, IndexKind.ALL): [_tuple("rake", "12.3.3"), _tuple("rake", "13.0.1")],
            (SOURCE, IndexKind.LATEST): [_tuple("rake", "13.0.1")],
        }
        matcher = _matcher(data)

        tuples, _ = matcher.search(Dependency("rake"))

        assert [str(t.version) for t, _ in tuples] == ["13.0.1"]


class TestDetect:
    """Test predicate-based detection."""

    def test_detect_with_predicate(self):
        """Test detect returns tuples accepted by the predicate."""
        data = {
            (SOURCE, IndexKind.ALL): [_tuple("rake", "13.0.1"), _tuple("rack", "2.2.3")],
            (SOURCE, IndexKind.PRERELEASE): [_tuple("rake", "14.0.0.beta1")],
        }
        matcher = _matcher(data)

        found = matcher.detect(lambda name, version, platform: name == "rake")

        assert [str(t.version) for t, _ in found] == ["14.0.0.beta1", "13.0.1"]
