"""
Tests for run/task/learning configuration and validation.

Author: Chronoloop Project
Date: October 2026
"""

import math

import pytest

from chronoloop.config import (
    ConfigValidationError,
    LearningRateConfig,
    RunConfig,
    SimConfig,
    SIRTaskConfig,
    ValidatorRegistry,
)
from chronoloop.errors import ConfigurationError


class TestRunConfig:
    """Test loop sizes and run controls."""

    def test_defaults_valid(self):
        RunConfig().validate()

    @pytest.mark.parametrize("field", ["n_runs", "n_epochs", "n_trials", "n_cycles"])
    def test_non_positive_sizes_rejected(self, field):
        with pytest.raises(ConfigValidationError, match=field):
            RunConfig(**{field: 0}).validate()

    def test_phase_order_checked(self):
        with pytest.raises(ConfigValidationError, match="minus_phase_end"):
            RunConfig(minus_phase_end=80, plus_phase_end=75).validate()
        with pytest.raises(ConfigValidationError, match="n_cycles"):
            RunConfig(n_cycles=50, minus_phase_end=30, plus_phase_end=60).validate()

    def test_test_trials_and_interval(self):
        config = RunConfig(n_trials=20, test_interval=0)
        assert config.test_trials == 20
        assert not config.testing_enabled
        config = RunConfig(n_trials=20, n_test_trials=8, test_interval=5)
        assert config.test_trials == 8
        assert config.testing_enabled

    def test_all_errors_reported_together(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            RunConfig(n_runs=0, n_epochs=-1).validate()
        message = str(exc_info.value)
        assert "n_runs" in message and "n_epochs" in message


class TestTaskAndLearningConfig:
    """Test task and learning-rate sections."""

    def test_fixed_schedule_required_without_random(self):
        with pytest.raises(ConfigValidationError):
            SIRTaskConfig(random_schedule=False).validate()
        SIRTaskConfig(random_schedule=False, schedule=["Store1", "Recall1"]).validate()

    def test_reward_values_finite(self):
        with pytest.raises(ConfigValidationError):
            SIRTaskConfig(rew_val=math.inf).validate()

    def test_unknown_entropy_measure(self):
        with pytest.raises(ConfigValidationError, match="entropy_measure"):
            LearningRateConfig(entropy_measure="gini").validate()

    def test_min_above_max_rejected(self):
        with pytest.raises(ConfigValidationError):
            LearningRateConfig(min_multiplier=5.0, max_multiplier=4.0).validate()

    def test_empty_target_layers_rejected(self):
        with pytest.raises(ConfigValidationError):
            LearningRateConfig(target_layers=()).validate()


class TestSimConfig:
    """Test the nested configuration and dict conversion."""

    def test_from_dict(self):
        config = SimConfig.from_dict({
            "run": {"n_runs": 2, "n_epochs": 5},
            "learning": {"mod_learn_rate": True, "target_layers": ["MatrixGo"]},
        })
        assert config.run.n_runs == 2
        assert config.task.n_stim == 4
        assert config.learning.target_layers == ("MatrixGo",)

    def test_unknown_section_rejected(self):
        with pytest.raises(ConfigValidationError):
            SimConfig.from_dict({"network": {}})

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigValidationError, match="n_epoch"):
            SimConfig.from_dict({"run": {"n_epoch": 5}})

    def test_invalid_values_rejected_from_dict(self):
        with pytest.raises(ConfigurationError):
            SimConfig.from_dict({"run": {"n_trials": 0}, "task": {"n_stim": 0}})

    def test_to_dict_roundtrips(self):
        config = SimConfig.from_dict({"run": {"seed": 3}})
        assert SimConfig.from_dict(config.to_dict()).run.seed == 3


class TestValidatorRegistry:
    """Test rule lookup and compound rules."""

    def test_range_rule(self):
        validator = ValidatorRegistry.get_validator("range(0, 1)")
        validator(0.5, "x")
        with pytest.raises(ConfigValidationError):
            validator(1.5, "x")

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ConfigValidationError):
            ValidatorRegistry.get_validator("positive_integer")(True, "n")

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            ValidatorRegistry.get_validator("prime")
