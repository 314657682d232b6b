"""
Reference network engine.

A small torch-based stand-in for an external neural simulator, implementing
:class:`~chronoloop.core.protocols.NetworkProtocol` so the loop hierarchy,
reward controller and statistics can be driven end to end.

This is NOT a neuron model. Settling uses a pluggable ``dynamics`` callable
mapping a layer's net input to its activation; the default is a fixed
random linear relay through a sigmoid. ``learn()`` records the trial's
effective learning rates but applies no weight update.

Per layer the engine keeps:
- act: current activation vector
- avg_m: running average of act (read by the entropy measures)
- act_m / act_p: snapshots at the end of the minus and plus phases
- ext: external input, clamped onto input layers always and onto target
  layers during the plus phase
- lrate, lrate_mult, dopamine gains and param-sheet values

Usage:
======
    net = ReferenceNetwork(seed=1)
    net.add_layer("Input", (1, 4), role="input")
    net.add_layer("Output", (1, 4), role="target")
    net.connect("Input", "Output")
    net.build()
    net.init_weights()

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import torch

from chronoloop.config.param_sets import ParamSheet
from chronoloop.errors import ConfigurationError, LayerNotFoundError

logger = logging.getLogger(__name__)

CLAMPED_ROLES = ("input",)
TARGET_ROLES = ("target",)
PATTERNS = ("full", "one_to_one")

Dynamics = Callable[[torch.Tensor, "NetLayer"], torch.Tensor]


def sigmoid_relay(net_input: torch.Tensor, layer: "NetLayer") -> torch.Tensor:
    """Default settling rule: sigmoid of gain-scaled net input minus threshold."""
    gain = float(layer.params.get("gain", 4.0))
    thr = float(layer.params.get("thr", 0.5))
    return torch.sigmoid(gain * (net_input - thr))


@dataclass
class NetLayer:
    """One layer's state; also a param-sheet target."""

    name: str
    shape: Tuple[int, ...]
    role: str
    classes: List[str] = field(default_factory=list)
    params: Dict[str, Any] = field(default_factory=dict)
    lrate_base: float = 0.04
    lrate_mult: float = 1.0
    burst_da_gain: float = 1.0
    dip_da_gain: float = 1.0

    def __post_init__(self) -> None:
        n = self.n_units
        self.act = torch.zeros(n)
        self.avg_m = torch.zeros(n)
        self.act_m = torch.zeros(n)
        self.act_p = torch.zeros(n)
        self.ext: Optional[torch.Tensor] = None

    @property
    def n_units(self) -> int:
        n = 1
        for dim in self.shape:
            n *= dim
        return n

    @property
    def type_name(self) -> str:
        return "Layer"

    @property
    def lrate(self) -> float:
        return self.lrate_base * self.lrate_mult

    def set_param(self, key: str, value: Any) -> None:
        if key == "lrate":
            self.lrate_base = float(value)
        elif key == "burst_da_gain":
            self.burst_da_gain = float(value)
        elif key == "dip_da_gain":
            self.dip_da_gain = float(value)
        else:
            self.params[key] = value

    def reset_state(self) -> None:
        self.act.zero_()
        self.avg_m.zero_()


@dataclass
class Projection:
    src: str
    dst: str
    pattern: str = "full"
    path_kind: str = "forward"
    classes: List[str] = field(default_factory=list)
    weights: Optional[torch.Tensor] = None


class ReferenceNetwork:
    """Torch stand-in engine for the network collaborator interface.

    Args:
        seed: Seed for weight initialization
        dynamics: Settling rule ``fn(net_input, layer) -> act``
        avg_dt: Integration rate of the running-average activation
        weight_scale: Std of the random full-projection weights
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        dynamics: Optional[Dynamics] = None,
        avg_dt: float = 0.1,
        weight_scale: float = 0.5,
    ):
        self.layers: Dict[str, NetLayer] = {}
        self.projections: List[Projection] = []
        self.dynamics: Dynamics = dynamics if dynamics is not None else sigmoid_relay
        self.avg_dt = avg_dt
        self.weight_scale = weight_scale
        self.generator = torch.Generator()
        self.set_seed(seed)

        self.built = False
        self.plus_phase = False
        self.cycle = 0
        self.n_learn = 0
        self.learn_log: List[Dict[str, float]] = []

    def set_seed(self, seed: Optional[int]) -> None:
        if seed is None:
            self.generator.seed()
        else:
            self.generator.manual_seed(seed)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def add_layer(
        self,
        name: str,
        geometry: Sequence[int],
        role: str,
        classes: Sequence[str] = (),
    ) -> NetLayer:
        if self.built:
            raise ConfigurationError(f"Cannot add layer '{name}' after build()")
        if name in self.layers:
            raise ConfigurationError(f"Layer '{name}' already exists")
        if not geometry or any(int(d) < 1 for d in geometry):
            raise ConfigurationError(f"Layer '{name}' geometry must be positive, got {tuple(geometry)}")
        layer = NetLayer(name=name, shape=tuple(int(d) for d in geometry), role=role, classes=list(classes) or [role])
        self.layers[name] = layer
        return layer

    def layer(self, name: str) -> NetLayer:
        if name not in self.layers:
            raise LayerNotFoundError(name, list(self.layers))
        return self.layers[name]

    def connect(
        self,
        src: str,
        dst: str,
        pattern: str = "full",
        path_kind: str = "forward",
        classes: Sequence[str] = (),
    ) -> Projection:
        if self.built:
            raise ConfigurationError(f"Cannot connect {src} -> {dst} after build()")
        self.layer(src)
        self.layer(dst)
        if pattern not in PATTERNS:
            raise ConfigurationError(f"Unknown projection pattern '{pattern}'. Valid: {PATTERNS}")
        proj = Projection(src, dst, pattern, path_kind, list(classes))
        self.projections.append(proj)
        return proj

    def bidir_connect(self, a: str, b: str, pattern: str = "full") -> Tuple[Projection, Projection]:
        return (
            self.connect(a, b, pattern, "forward"),
            self.connect(b, a, pattern, "back"),
        )

    def build(self) -> None:
        if self.built:
            raise ConfigurationError("Network is already built")
        self.built = True
        logger.debug(f"Built network: {len(self.layers)} layers, {len(self.projections)} projections")

    def init_weights(self) -> None:
        """Draw fresh weights and clear all layer state."""
        self._require_built()
        for proj in self.projections:
            n_dst = self.layers[proj.dst].n_units
            n_src = self.layers[proj.src].n_units
            if proj.pattern == "one_to_one":
                w = torch.zeros(n_dst, n_src)
                for i in range(n_dst):
                    w[i, i % n_src] = 1.0
            else:
                w = torch.randn(n_dst, n_src, generator=self.generator) * self.weight_scale / max(n_src, 1) ** 0.5
            proj.weights = w
        for layer in self.layers.values():
            layer.reset_state()
            layer.lrate_mult = 1.0
        self.plus_phase = False
        self.cycle = 0
        self.n_learn = 0
        self.learn_log = []

    def layers_by_role(self, *roles: str) -> List[str]:
        return [name for name, layer in self.layers.items() if layer.role in roles]

    def apply_params(self, sheet: ParamSheet) -> List[Tuple[str, str, Any]]:
        applied = sheet.apply(self.layers.values())
        logger.debug(f"Applied {len(applied)} parameter values")
        return applied

    def _require_built(self) -> None:
        if not self.built:
            raise ConfigurationError("Network must be built before use; call build() first")

    # ------------------------------------------------------------------
    # Inputs and settling
    # ------------------------------------------------------------------

    def init_external(self) -> None:
        for layer in self.layers.values():
            layer.ext = None

    def apply_external_input(self, layer_name: str, pattern: torch.Tensor) -> None:
        layer = self.layer(layer_name)
        pattern = torch.as_tensor(pattern, dtype=torch.float32).reshape(-1)
        if pattern.numel() != layer.n_units:
            raise ConfigurationError(
                f"Pattern for '{layer_name}' has {pattern.numel()} values, layer has {layer.n_units} units"
            )
        layer.ext = pattern.clone()

    def new_state(self) -> None:
        self._require_built()
        for layer in self.layers.values():
            layer.reset_state()
        self.plus_phase = False
        self.cycle = 0

    def step_one_processing_unit(self) -> None:
        """One cycle: synchronous update of every layer from the previous acts."""
        self._require_built()
        net_inputs = {name: torch.zeros(layer.n_units) for name, layer in self.layers.items()}
        for proj in self.projections:
            net_inputs[proj.dst] += proj.weights @ self.layers[proj.src].act

        for name, layer in self.layers.items():
            clamp = layer.role in CLAMPED_ROLES or (self.plus_phase and layer.role in TARGET_ROLES)
            if clamp and layer.ext is not None:
                layer.act = layer.ext.clone()
            elif layer.role in CLAMPED_ROLES:
                layer.act = torch.zeros(layer.n_units)
            else:
                layer.act = self.dynamics(net_inputs[name], layer).reshape(-1)
            layer.avg_m += self.avg_dt * (layer.act - layer.avg_m)
        self.cycle += 1

    def end_phase(self, plus: bool) -> None:
        for layer in self.layers.values():
            if plus:
                layer.act_p = layer.act.clone()
            else:
                layer.act_m = layer.act.clone()
        self.plus_phase = not plus

    def learn(self) -> None:
        """Record effective learning rates; weights are left unchanged."""
        self.n_learn += 1
        self.learn_log.append({name: layer.lrate for name, layer in self.layers.items()})

    # ------------------------------------------------------------------
    # Readout and modulation
    # ------------------------------------------------------------------

    def read_activation(self, layer_name: str) -> torch.Tensor:
        return self.layer(layer_name).avg_m.clone()

    def read_arg_max_output_index(self, layer_name: str) -> int:
        return int(torch.argmax(self.layer(layer_name).act).item())

    def adjust_learning_rate(self, layer_name: str, multiplier: float) -> None:
        self.layer(layer_name).lrate_mult = float(multiplier)

    def read_learning_rate(self, layer_name: str) -> float:
        return self.layer(layer_name).lrate

    def set_dopamine_gains(self, layer_name: str, burst_gain: float, dip_gain: float) -> None:
        layer = self.layer(layer_name)
        layer.burst_da_gain = float(burst_gain)
        layer.dip_da_gain = float(dip_gain)

    def output_sse(self, layer_name: str, tolerance: float = 0.5) -> float:
        """Sum squared error of the minus-phase act against the target pattern.

        Per-unit differences within ``tolerance`` count as zero.
        """
        layer = self.layer(layer_name)
        if layer.ext is None:
            return 0.0
        diff = (layer.act_m - layer.ext).abs()
        diff = torch.where(diff < tolerance, torch.zeros_like(diff), diff)
        return float((diff ** 2).sum().item())
