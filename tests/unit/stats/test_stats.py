"""
Tests for the key-value statistics store.

Author: Chronoloop Project
Date: October 2026
"""

import pytest

from chronoloop.errors import MissingStatError
from chronoloop.stats import Stats


class TestStats:
    """Test typed reads, writes and missing keys."""

    def test_scalar_roundtrip(self, stats):
        stats.set_scalar("TrlErr", 1)
        assert stats.read_scalar("TrlErr") == 1.0
        assert isinstance(stats.read_scalar("TrlErr"), float)

    def test_int_and_scalar_fallbacks(self, stats):
        stats.set_int("Epoch", 3)
        stats.set_scalar("NZero", 2.0)
        assert stats.read_scalar("Epoch") == 3.0
        assert stats.read_int("NZero") == 2

    def test_missing_key_raises(self, stats):
        with pytest.raises(MissingStatError):
            stats.read_scalar("Nope")
        with pytest.raises(MissingStatError):
            stats.read_int("Nope")
        with pytest.raises(MissingStatError):
            stats.read_string("Nope")

    def test_missing_key_is_a_key_error(self, stats):
        with pytest.raises(KeyError):
            stats.read_int("NZero")

    def test_has_and_clear(self):
        stats = Stats()
        stats.set_string("TrialName", "Store1:2")
        assert stats.has("TrialName")
        stats.clear()
        assert not stats.has("TrialName")

    def test_print_keys(self, stats):
        stats.set_int("Run", 0)
        stats.set_scalar("PctErr", 0.123456)
        stats.set_string("TrialName", "Ignore:1")
        line = stats.print_keys(["Run", "PctErr", "TrialName", "Missing"])
        assert line == "Run: 0\tPctErr: 0.1235\tTrialName: Ignore:1"
