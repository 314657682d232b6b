"""
Population-activity uncertainty measures.

Both measures read a layer's running-average activations and return a
learning-rate multiplier clamped to [min_value, max_value] (default
[0.25, 4.0]).

Measures:
=========

1. POPULATION SUM (Hidden layer):
   - Sum of activations divided by ``divisor`` (10)
   - If the most active unit is below ``min_max_act`` (0.02) the layer is
     carrying no reliable information and the result is forced to the maximum

2. SHANNON ENTROPY (GPiThal gating layer):
   - Activations normalized to a probability distribution
   - ``-sum(p * log p)`` over nonzero probabilities
   - Divided by ``log(n_units)``, the entropy of a uniform distribution
   - Fewer than two units, or no activity at all, gives zero entropy

The two measures read different layers and normalize differently, so they
are kept as separate strategies rather than one parameterized formula.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import math
from typing import Protocol

import torch

from chronoloop.core.protocols import NetworkProtocol
from chronoloop.errors import ConfigurationError

MIN_MULTIPLIER = 0.25
MAX_MULTIPLIER = 4.0


class EntropyMeasure(Protocol):
    def compute(self, net: NetworkProtocol) -> float:
        ...


def clamp_multiplier(value: float, min_value: float = MIN_MULTIPLIER, max_value: float = MAX_MULTIPLIER) -> float:
    if not math.isfinite(value):
        return max_value
    return float(min(max(value, min_value), max_value))


def _clean(acts: torch.Tensor) -> torch.Tensor:
    """Flatten to float and zero out non-finite entries."""
    acts = acts.detach().reshape(-1).to(torch.float32)
    return torch.where(torch.isfinite(acts), acts, torch.zeros_like(acts))


class PopulationSumEntropy:
    """Summed hidden-layer activity as an uncertainty proxy."""

    def __init__(
        self,
        layer: str = "Hidden",
        divisor: float = 10.0,
        min_max_act: float = 0.02,
        min_value: float = MIN_MULTIPLIER,
        max_value: float = MAX_MULTIPLIER,
    ):
        self.layer = layer
        self.divisor = divisor
        self.min_max_act = min_max_act
        self.min_value = min_value
        self.max_value = max_value

    def from_activations(self, acts: torch.Tensor) -> float:
        acts = _clean(acts)
        if acts.numel() == 0 or acts.max().item() < self.min_max_act:
            return self.max_value
        return clamp_multiplier(acts.sum().item() / self.divisor, self.min_value, self.max_value)

    def compute(self, net: NetworkProtocol) -> float:
        return self.from_activations(net.read_activation(self.layer))


class ShannonEntropy:
    """Normalized Shannon entropy of a gating layer's activity."""

    def __init__(
        self,
        layer: str = "GPiThal",
        min_value: float = MIN_MULTIPLIER,
        max_value: float = MAX_MULTIPLIER,
    ):
        self.layer = layer
        self.min_value = min_value
        self.max_value = max_value

    @staticmethod
    def normalized_entropy(acts: torch.Tensor) -> float:
        """Entropy in [0, 1]; 0 for fewer than 2 units or no activity."""
        acts = _clean(acts).clamp(min=0.0)
        n = acts.numel()
        if n < 2:
            return 0.0
        total = acts.sum()
        if total.item() <= 0:
            return 0.0
        probs = acts / total
        probs = probs[probs > 0]
        ent = -(probs * torch.log(probs)).sum().item()
        return ent / math.log(n)

    def from_activations(self, acts: torch.Tensor) -> float:
        return clamp_multiplier(self.normalized_entropy(acts), self.min_value, self.max_value)

    def compute(self, net: NetworkProtocol) -> float:
        return self.from_activations(net.read_activation(self.layer))


def make_entropy_measure(kind: str, min_value: float = MIN_MULTIPLIER, max_value: float = MAX_MULTIPLIER) -> EntropyMeasure:
    """Build a measure by config name ("shannon" or "population_sum")."""
    if kind == "shannon":
        return ShannonEntropy(min_value=min_value, max_value=max_value)
    if kind == "population_sum":
        return PopulationSumEntropy(min_value=min_value, max_value=max_value)
    raise ConfigurationError(f"Unknown entropy measure: {kind}")
