"""Shared test fixtures and configuration."""

import random
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytest
import torch

from chronoloop.core import Mode, SimContext, Stacks
from chronoloop.errors import LayerNotFoundError
from chronoloop.stats import LogTables, Stats


@pytest.fixture(autouse=True)
def set_random_seed():
    """Ensure reproducible tests by setting all random seeds.

    This fixture runs automatically for every test to ensure deterministic behavior.
    """
    torch.manual_seed(42)
    np.random.seed(42)
    random.seed(42)


class RecordingNetwork:
    """Network collaborator double that records every call.

    Answers ``answer`` for every arg-max read; activations come from
    ``activations`` (per layer) or default to 0.5 on every unit.
    """

    def __init__(self, answer: int = 0, activations: Optional[Dict[str, torch.Tensor]] = None):
        self.answer = answer
        self.activations = dict(activations or {})
        self.roles: Dict[str, str] = {}
        self.sizes: Dict[str, int] = {}
        self.connections: List[Tuple[str, str, str, str]] = []
        self.inputs: List[Tuple[str, torch.Tensor]] = []
        self.lrate_calls: List[Tuple[str, float]] = []
        self.lrate_base = 0.04
        self.lrate_mults: Dict[str, float] = {}
        self.gains: Dict[str, Tuple[float, float]] = {}
        self.phase_ends: List[bool] = []
        self.n_built = 0
        self.n_init_weights = 0
        self.n_init_external = 0
        self.n_new_state = 0
        self.n_cycles = 0
        self.n_learn = 0

    def add_layer(self, name: str, geometry: Sequence[int], role: str):
        self.roles[name] = role
        self.sizes[name] = int(np.prod(geometry))

    def connect(self, src: str, dst: str, pattern: str = "full", path_kind: str = "forward"):
        self.connections.append((src, dst, pattern, path_kind))

    def build(self) -> None:
        self.n_built += 1

    def init_weights(self) -> None:
        self.n_init_weights += 1

    def init_external(self) -> None:
        self.n_init_external += 1

    def apply_external_input(self, layer_name: str, pattern: torch.Tensor) -> None:
        self._check(layer_name)
        self.inputs.append((layer_name, pattern.clone()))

    def step_one_processing_unit(self) -> None:
        self.n_cycles += 1

    def read_activation(self, layer_name: str) -> torch.Tensor:
        self._check(layer_name)
        if layer_name in self.activations:
            return self.activations[layer_name]
        return torch.full((self.sizes.get(layer_name, 4),), 0.5)

    def read_arg_max_output_index(self, layer_name: str) -> int:
        self._check(layer_name)
        return self.answer

    def adjust_learning_rate(self, layer_name: str, multiplier: float) -> None:
        self._check(layer_name)
        self.lrate_calls.append((layer_name, multiplier))
        self.lrate_mults[layer_name] = multiplier

    def read_learning_rate(self, layer_name: str) -> float:
        self._check(layer_name)
        return self.lrate_base * self.lrate_mults.get(layer_name, 1.0)

    def set_dopamine_gains(self, layer_name: str, burst_gain: float, dip_gain: float) -> None:
        self._check(layer_name)
        self.gains[layer_name] = (burst_gain, dip_gain)

    def new_state(self) -> None:
        self.n_new_state += 1

    def end_phase(self, plus: bool) -> None:
        self.phase_ends.append(plus)

    def learn(self) -> None:
        self.n_learn += 1

    def layers_by_role(self, *roles: str) -> List[str]:
        return [name for name, role in self.roles.items() if role in roles]

    def rewards(self) -> List[float]:
        """Reward values applied to the Rew layer, in order."""
        return [float(p.reshape(-1)[0]) for name, p in self.inputs if name == "Rew"]

    def _check(self, layer_name: str) -> None:
        # An empty topology accepts any name, so unit tests need no setup
        if self.roles and layer_name not in self.roles:
            raise LayerNotFoundError(layer_name, list(self.roles))


@pytest.fixture
def recording_net():
    return RecordingNetwork()


@pytest.fixture
def stats():
    return Stats()


@pytest.fixture
def logs():
    return LogTables()


@pytest.fixture
def small_stacks():
    """Train 2x3x4x5 and Test 1x1x2x5 stacks."""
    loops = Stacks()
    loops.add_stack(Mode.TRAIN, run=2, epoch=3, trial=4, cycle=5)
    loops.add_stack(Mode.TEST, run=1, epoch=1, trial=2, cycle=5)
    return loops


@pytest.fixture
def ctx(small_stacks, recording_net, stats, logs):
    return SimContext(loops=small_stacks, net=recording_net, stats=stats, logs=logs)
