"""
Typed configuration for runs, the SIR task and learning-rate modulation.

All values are fixed at initialization; nothing here changes during a run.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple

from chronoloop.config.validation import ConfigValidationError, ValidatedConfig


@dataclass
class RunConfig(ValidatedConfig):
    """Loop sizes and run-level controls.

    Attributes:
        n_runs: Total number of runs to do when running Train
        n_epochs: Total number of epochs per run
        n_trials: Total number of trials per epoch
        n_zero: Stop a run after this many consecutive zero-error epochs
            (values <= 0 fall back to 2 at the stop predicate)
        test_interval: Run the Test stack every this many training epochs;
            0 or negative disables periodic testing
        n_cycles: Settling cycles per trial
        minus_phase_end: Cycle at which the minus phase ends
        plus_phase_end: Cycle at which the plus phase ends
        n_test_trials: Trials per test epoch (None = n_trials)
        seed: Base random seed (None = fresh seeds)
    """

    n_runs: int = 10
    n_epochs: int = 200
    n_trials: int = 100
    n_zero: int = 5
    test_interval: int = -1
    n_cycles: int = 100
    minus_phase_end: int = 75
    plus_phase_end: int = 99
    n_test_trials: Optional[int] = None
    seed: Optional[int] = None

    _validation_rules = {
        'n_runs': ('positive_integer',),
        'n_epochs': ('positive_integer',),
        'n_trials': ('positive_integer',),
        'n_zero': ('integer',),
        'test_interval': ('integer',),
        'n_cycles': ('positive_integer',),
        'minus_phase_end': ('positive_integer',),
        'plus_phase_end': ('positive_integer',),
        'n_test_trials': ('optional_positive_integer',),
    }

    def extra_errors(self) -> List[str]:
        errors = []
        if isinstance(self.plus_phase_end, int) and isinstance(self.minus_phase_end, int):
            if not self.minus_phase_end < self.plus_phase_end:
                errors.append(
                    f"minus_phase_end={self.minus_phase_end} must be < plus_phase_end={self.plus_phase_end}"
                )
            if isinstance(self.n_cycles, int) and self.plus_phase_end >= self.n_cycles:
                errors.append(f"plus_phase_end={self.plus_phase_end} must be < n_cycles={self.n_cycles}")
        return errors

    @property
    def test_trials(self) -> int:
        return self.n_test_trials if self.n_test_trials is not None else self.n_trials

    @property
    def testing_enabled(self) -> bool:
        return self.test_interval > 0

    def validate(self) -> None:
        self.validate_config()


@dataclass
class SIRTaskConfig(ValidatedConfig):
    """Store-Ignore-Recall environment settings.

    Attributes:
        n_stim: Number of distinct stimuli
        rew_val: Reward value for a correct recall
        no_rew_val: Reward value for an incorrect recall
        random_schedule: Draw actions pseudo-randomly (else use ``schedule``)
        schedule: Fixed cyclic action schedule, names from Action
            (e.g. ["Store1", "Ignore", "Recall1"])
        seed: Seed for action and stimulus draws
    """

    n_stim: int = 4
    rew_val: float = 1.0
    no_rew_val: float = 0.0
    random_schedule: bool = True
    schedule: Optional[List[str]] = None
    seed: Optional[int] = None

    _validation_rules = {
        'n_stim': ('positive_integer',),
        'rew_val': ('finite',),
        'no_rew_val': ('finite',),
    }

    def extra_errors(self) -> List[str]:
        if not self.random_schedule and not self.schedule:
            return ["schedule must be given when random_schedule is False"]
        return []

    def validate(self) -> None:
        self.validate_config()


@dataclass
class LearningRateConfig(ValidatedConfig):
    """Reward/entropy learning-rate modulation.

    Attributes:
        burst_da_gain: Strength of dopamine bursts (1 default; reduce for PD OFF)
        dip_da_gain: Strength of dopamine dips (1 default; reduce for D2 agonists)
        mod_learn_rate: Use the entropy multiplier; when False it is fixed at 1.0
        entropy_measure: "shannon" (gating-layer entropy) or "population_sum"
            (summed hidden-layer activity)
        target_layers: Layers whose learning rate receives the multiplier
        min_multiplier: Lower clamp of the multiplier
        max_multiplier: Upper clamp of the multiplier
    """

    burst_da_gain: float = 1.0
    dip_da_gain: float = 1.0
    mod_learn_rate: bool = False
    entropy_measure: str = "shannon"
    target_layers: Tuple[str, ...] = ("MatrixGo", "MatrixNoGo", "RWPred")
    min_multiplier: float = 0.25
    max_multiplier: float = 4.0

    _validation_rules = {
        'burst_da_gain': ('finite',),
        'dip_da_gain': ('finite',),
        'entropy_measure': ('one_of(shannon, population_sum)',),
        'min_multiplier': ('positive', 'finite'),
        'max_multiplier': ('positive', 'finite'),
    }

    def extra_errors(self) -> List[str]:
        errors = []
        if self.min_multiplier > self.max_multiplier:
            errors.append(f"min_multiplier={self.min_multiplier} exceeds max_multiplier={self.max_multiplier}")
        if not self.target_layers:
            errors.append("target_layers must name at least one layer")
        return errors

    def validate(self) -> None:
        self.validate_config()


@dataclass
class SimConfig:
    """Complete simulation configuration."""

    run: RunConfig = field(default_factory=RunConfig)
    task: SIRTaskConfig = field(default_factory=SIRTaskConfig)
    learning: LearningRateConfig = field(default_factory=LearningRateConfig)

    def validate(self) -> None:
        """Validate every section, reporting all failures together."""
        errors = []
        for section in (self.run, self.task, self.learning):
            try:
                section.validate()
            except ConfigValidationError as e:
                errors.append(str(e))
        if errors:
            raise ConfigValidationError("\n".join(errors))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimConfig":
        """Build from a nested mapping: {"run": {...}, "task": {...}, "learning": {...}}.

        Unknown sections or keys are configuration errors.
        """
        sections = {"run": RunConfig, "task": SIRTaskConfig, "learning": LearningRateConfig}
        unknown = set(data) - set(sections)
        if unknown:
            raise ConfigValidationError(f"Unknown config sections: {sorted(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key, section_cls in sections.items():
            values = dict(data.get(key, {}))
            allowed = {f.name for f in fields(section_cls)}
            bad = set(values) - allowed
            if bad:
                raise ConfigValidationError(f"Unknown keys in '{key}': {sorted(bad)}")
            if key == "learning" and "target_layers" in values:
                values["target_layers"] = tuple(values["target_layers"])
            kwargs[key] = section_cls(**values)

        config = cls(**kwargs)
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
