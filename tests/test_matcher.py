"""Tests for target matching."""

import pytest

from grim.errors import ConfigurationError
from grim.matcher import match_target, match_targets, matches_pattern, parse_pid
from grim.models import MatchCriteria, ProcessSnapshot

from conftest import make_proc

EXACT = MatchCriteria(exact=True)
SUBSTRING = MatchCriteria(exact=False)


def pids(candidates):
    """Pids of ``candidates`` in order."""
    return [candidate.pid for candidate in candidates]


class TestParsePid:
    def test_numeric(self):
        """Test plain digits parse as a pid."""
        assert parse_pid("4242") == 4242

    def test_pattern(self):
        """Test anything but plain ASCII digits is a pattern."""
        assert parse_pid("chrome") is None
        assert parse_pid("12abc") is None
        assert parse_pid("") is None
        assert parse_pid("1_000") is None
        assert parse_pid(" 17") is None
        assert parse_pid("-5") is None
        # Arabic-Indic and fullwidth digits
        assert parse_pid("\u0664\u0662") is None
        assert parse_pid("\uff14\uff12") is None


class TestNumericTargets:
    """Numeric targets are pid lookups, never patterns."""

    def test_existing_pid(self, snapshot):
        """Test a present pid matches under both criteria."""
        assert pids(match_target(snapshot, "101", SUBSTRING)) == [101]
        assert pids(match_target(snapshot, "101", EXACT)) == [101]

    def test_missing_pid(self, snapshot):
        """Test an absent pid matches nothing."""
        assert match_target(snapshot, "99999", SUBSTRING) == []

    def test_underscored_number_is_a_pattern(self):
        """Test that "1_000" is matched as a name, not read as pid 1000."""
        snapshot = ProcessSnapshot([make_proc(1000, "init"), make_proc(7, "job_1_000")])
        assert pids(match_target(snapshot, "1_000", SUBSTRING)) == [7]

    def test_numeric_target_does_not_match_command_line(self):
        """Test numeric targets never match as patterns."""
        # "60" appears in sleep's command line but is treated as a pid
        snapshot = ProcessSnapshot([make_proc(102, "sleep", ("sleep", "60"))])
        assert match_target(snapshot, "60", SUBSTRING) == []


class TestPatternTargets:
    def test_exact_is_case_insensitive_name_equality(self, snapshot):
        """Test exact matching compares lowered names."""
        assert pids(match_target(snapshot, "CHROME", EXACT)) == [200, 201]

    def test_exact_ignores_command_line(self, snapshot):
        """Test exact matching does not look at the command line."""
        assert match_target(snapshot, "server.py", EXACT) == []

    def test_substring_matches_name_and_command_line(self, snapshot):
        """Test substring matching looks at name and command line."""
        # node matches through its command line
        assert pids(match_target(snapshot, "chrome", SUBSTRING)) == [200, 201, 202, 300]

    def test_substring_is_superset_of_exact(self, snapshot):
        """Test every exact match is also a substring match."""
        for pattern in ("chrome", "bash", "python3", "sleep"):
            exact = set(pids(match_target(snapshot, pattern, EXACT)))
            substring = set(pids(match_target(snapshot, pattern, SUBSTRING)))
            assert exact <= substring

    def test_no_match_is_not_an_error(self, snapshot):
        """Test zero matches returns an empty list."""
        assert match_target(snapshot, "nonexistent-xyz", SUBSTRING) == []

    def test_matches_pattern_mixed_case(self):
        """Test pattern matching ignores case."""
        proc = make_proc(5, "Firefox", ("/usr/lib/Firefox/firefox-bin",))
        assert matches_pattern(proc, "fIrEfOx", EXACT)
        assert matches_pattern(proc, "FIREFOX-BIN", SUBSTRING)
        assert not matches_pattern(proc, "firefox-bin", EXACT)


class TestMatchTargets:
    def test_union_collapses_duplicates(self, snapshot):
        """Test overlapping targets yield each pid once."""
        candidates = match_targets(snapshot, ["chrome", "200", "Chrome_Helper"], SUBSTRING)
        assert pids(candidates) == [200, 201, 202, 300]

    def test_snapshot_order(self, snapshot):
        """Test results follow snapshot order, not target order."""
        assert pids(match_targets(snapshot, ["sleep", "bash"], SUBSTRING)) == [100, 102]

    def test_empty_target_list_is_configuration_error(self, snapshot):
        """Test an empty target list raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            match_targets(snapshot, [], SUBSTRING)

    def test_targets_with_no_matches(self, snapshot):
        """Test unmatched targets give an empty list."""
        assert match_targets(snapshot, ["nonexistent-xyz", "99999"]) == []
