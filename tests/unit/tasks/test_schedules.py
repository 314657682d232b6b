"""
Tests for actions and the cyclic/random action schedules.

Author: Chronoloop Project
Date: October 2026
"""

import pytest

from chronoloop.errors import ConfigurationError
from chronoloop.tasks import Action, CyclicSchedule, RandomSchedule, SIREnv


class TestAction:
    """Test action labels, slots and parsing."""

    def test_labels_and_slots(self):
        assert Action.STORE1.label == "Store1"
        assert str(Action.RECALL2) == "Recall2"
        assert Action.RECALL2.slot == 1
        assert Action.IGNORE.slot is None
        assert Action.STORE2.is_store and not Action.STORE2.is_recall

    @pytest.mark.parametrize("name", ["Store1", "STORE1", " store1 "])
    def test_parse_case_insensitive(self, name):
        assert Action.parse(name) is Action.STORE1

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError):
            Action.parse("Forget")


class TestCyclicSchedule:
    """Test fixed repeating schedules."""

    def test_repeats_sequence(self):
        env = SIREnv("Train", schedule=CyclicSchedule(["Store1", "Ignore", "Recall1"]), seed=0)
        actions = [env.step() for _ in range(7)]
        assert actions == [
            Action.STORE1, Action.IGNORE, Action.RECALL1,
            Action.STORE1, Action.IGNORE, Action.RECALL1,
            Action.STORE1,
        ]

    def test_reset_restarts_sequence(self):
        env = SIREnv("Train", schedule=CyclicSchedule([Action.STORE1, Action.STORE2]), seed=0)
        env.step()
        env.init(1)
        assert env.step() is Action.STORE1

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            CyclicSchedule([])

    def test_must_start_with_store(self):
        with pytest.raises(ConfigurationError):
            CyclicSchedule(["Ignore", "Store1"])


class TestRandomSchedule:
    """Test valid-action draws."""

    def test_first_action_always_store(self):
        for seed in range(200):
            env = SIREnv("Train", schedule=RandomSchedule(seed), seed=seed)
            assert env.step().is_store

    def test_recall_only_after_matching_store(self):
        for seed in range(100):
            env = SIREnv("Train", schedule=RandomSchedule(seed), seed=seed)
            stored = set()
            for _ in range(25):
                action = env.step()
                if action.is_store:
                    stored.add(action.slot)
                elif action.is_recall:
                    assert action.slot in stored

    def test_valid_actions_grow_with_memory(self):
        schedule = RandomSchedule(0)
        env = SIREnv("Train", schedule=CyclicSchedule(["Store2"]), seed=0)
        assert schedule.valid_actions(env) == [Action.STORE1, Action.STORE2]
        env.step()
        assert schedule.valid_actions(env) == [Action.STORE1, Action.STORE2, Action.IGNORE, Action.RECALL2]

    def test_all_actions_eventually_drawn(self):
        env = SIREnv("Train", schedule=RandomSchedule(3), seed=3)
        seen = {env.step() for _ in range(300)}
        assert seen == set(Action)
