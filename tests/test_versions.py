"""
Tests for version parsing and comparison (arc_audit/versions.py).
"""

import itertools

import pytest

from arc_audit.versions import (
    Comparison,
    VersionIdentifier,
    compare_versions,
    is_outdated,
    latest_version,
    parse_version,
)


class TestParseVersion:
    """Tests for parse_version."""

    def test_four_components(self):
        """Test a full four-component version."""
        v = parse_version("1.36.02311.654")
        assert v is not None
        assert v.parts == (1, 36, 2311, 654)
        assert v.original == "1.36.02311.654"

    def test_two_components_padded(self):
        """Test that missing components are padded with zero."""
        v = parse_version("1.36")
        assert v.parts == (1, 36, 0, 0)

    def test_single_component(self):
        """Test a bare major version."""
        assert parse_version("7").parts == (7, 0, 0, 0)

    def test_leading_v_accepted(self):
        """Test that a leading 'v' is tolerated."""
        assert parse_version("v2.1.3").parts == (2, 1, 3, 0)

    def test_whitespace_stripped(self):
        """Test surrounding whitespace is ignored."""
        assert parse_version("  1.2.3.4\n").parts == (1, 2, 3, 4)

    @pytest.mark.parametrize("text", [
        None,
        "",
        "abc",
        "1.2.x",
        "1.0.0-beta",
        "1.0rc1",
        "1.0.post1",
        "1.0.dev3",
        "1.0+local",
        "1!2.0",
        "1.2.3.4.5",
    ])
    def test_malformed_returns_none(self, text):
        """Test that non-numeric or oversized versions are rejected."""
        assert parse_version(text) is None

    def test_str_is_canonical(self):
        """Test string form of a VersionIdentifier."""
        assert str(parse_version("1.2")) == "1.2.0.0"


class TestCompareVersions:
    """Tests for compare_versions."""

    def test_less(self):
        """Test ordinary less-than."""
        assert compare_versions("1.0.0.0", "1.1.0.0") is Comparison.LESS

    def test_greater(self):
        """Test ordinary greater-than."""
        assert compare_versions("2.0", "1.99.99.99") is Comparison.GREATER

    def test_equal_to_itself(self):
        """Test compare(v, v) is EQUAL."""
        assert compare_versions("1.36.02311.654", "1.36.02311.654") is Comparison.EQUAL

    def test_padding_makes_equal(self):
        """Test two-component and four-component forms compare consistently."""
        assert compare_versions("1.36", "1.36.0.0") is Comparison.EQUAL
        assert compare_versions("1.36", "1.36.0.1") is Comparison.LESS

    def test_numeric_not_lexicographic(self):
        """Test that multi-digit components compare numerically."""
        assert compare_versions("1.9", "1.10") is Comparison.LESS
        assert compare_versions("9.0", "10.0") is Comparison.LESS

    def test_malformed_is_incomparable(self):
        """Test malformed input yields INCOMPARABLE, not an exception."""
        assert compare_versions("1.2.x", "1.2.3") is Comparison.INCOMPARABLE
        assert compare_versions("1.2.3", "garbage") is Comparison.INCOMPARABLE

    def test_missing_is_incomparable(self):
        """Test None/empty yields INCOMPARABLE, never EQUAL."""
        assert compare_versions(None, None) is Comparison.INCOMPARABLE
        assert compare_versions("", "1.0") is Comparison.INCOMPARABLE
        assert compare_versions("1.0", None) is Comparison.INCOMPARABLE

    def test_total_order_matches_tuple_order(self):
        """Test compare agrees with numeric tuple comparison for well-formed versions."""
        samples = ["0.0.0.0", "1.0", "1.0.0.1", "1.2.3", "1.10.0.0", "2.0.0.0", "10.1"]
        for a, b in itertools.product(samples, repeat=2):
            pa, pb = parse_version(a).parts, parse_version(b).parts
            expected = Comparison.LESS if pa < pb else Comparison.GREATER if pa > pb else Comparison.EQUAL
            assert compare_versions(a, b) is expected, (a, b)

    def test_antisymmetric(self):
        """Test swapping operands flips LESS and GREATER."""
        assert compare_versions("1.2", "1.3") is Comparison.LESS
        assert compare_versions("1.3", "1.2") is Comparison.GREATER


class TestLatestVersion:
    """Tests for latest_version and is_outdated."""

    def test_picks_numeric_max(self):
        """Test max-by ordering, not string ordering."""
        assert latest_version(["1.9.0.0", "1.10.0.0", "1.2.0.0"]) == "1.10.0.0"

    def test_returns_original_string(self):
        """Test that the original spelling is returned."""
        assert latest_version(["1.36.02311.654", "1.35.0.0"]) == "1.36.02311.654"

    def test_skips_malformed(self):
        """Test malformed candidates are ignored."""
        assert latest_version(["bogus", "1.0.0.0", "1.x"]) == "1.0.0.0"

    def test_empty(self):
        """Test empty and all-malformed inputs."""
        assert latest_version([]) is None
        assert latest_version(["x", ""]) is None

    def test_is_outdated(self):
        """Test is_outdated is true only for a known LESS."""
        assert is_outdated("1.0", "1.1") is True
        assert is_outdated("1.1", "1.1") is False
        assert is_outdated("1.2", "1.1") is False
        assert is_outdated(None, "1.1") is False
        assert is_outdated("1.0", None) is False
        assert is_outdated("1.x", "1.1") is False

    def test_identifiers_sortable(self):
        """Test VersionIdentifier ordering ignores the original string."""
        a = VersionIdentifier(parts=(1, 0, 0, 0), original="1.0")
        b = VersionIdentifier(parts=(1, 0, 0, 0), original="1.0.0.0")
        assert a == b
        assert max([parse_version("1.2"), parse_version("1.10")]).original == "1.10"
