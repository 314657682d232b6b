"""Reward computation and entropy-modulated learning rates."""

from chronoloop.neuromodulation.entropy import (
    MAX_MULTIPLIER,
    MIN_MULTIPLIER,
    EntropyMeasure,
    PopulationSumEntropy,
    ShannonEntropy,
    clamp_multiplier,
    make_entropy_measure,
)
from chronoloop.neuromodulation.learning_rate import LearningRateController, RewardEntropyState

__all__ = [
    "EntropyMeasure",
    "LearningRateController",
    "MAX_MULTIPLIER",
    "MIN_MULTIPLIER",
    "PopulationSumEntropy",
    "RewardEntropyState",
    "ShannonEntropy",
    "clamp_multiplier",
    "make_entropy_measure",
]
