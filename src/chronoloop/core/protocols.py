"""
Collaborator protocols consumed by the scheduler and its callbacks.

The loop hierarchy itself knows nothing about networks, statistics or
views. Callbacks talk to these collaborators through the structural
interfaces below, so any engine that provides the methods can be driven.

- NetworkProtocol: the simulated network (layers, inputs, settling, learning)
- StatsProtocol: scalar/string statistics store plus per-scale log commits
- GuiProtocol: optional view; never mutates simulation state

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

import torch

from chronoloop.core.time_scales import Mode, TimeScale


@runtime_checkable
class NetworkProtocol(Protocol):
    """Interface of the external network engine.

    Lookups of unknown layer names must raise ``LayerNotFoundError``; the
    scheduler treats that as fatal.
    """

    def add_layer(self, name: str, geometry: Sequence[int], role: str) -> Any:
        ...

    def connect(self, src: str, dst: str, pattern: str = "full", path_kind: str = "forward") -> Any:
        ...

    def build(self) -> None:
        ...

    def init_weights(self) -> None:
        ...

    def init_external(self) -> None:
        """Clear all external inputs before a new trial's patterns are applied."""
        ...

    def apply_external_input(self, layer_name: str, pattern: torch.Tensor) -> None:
        ...

    def step_one_processing_unit(self) -> None:
        """One cycle's worth of settling."""
        ...

    def read_activation(self, layer_name: str) -> torch.Tensor:
        """Per-unit running-average activations of a layer."""
        ...

    def read_arg_max_output_index(self, layer_name: str) -> int:
        ...

    def adjust_learning_rate(self, layer_name: str, multiplier: float) -> None:
        ...

    def read_learning_rate(self, layer_name: str) -> float:
        """Effective learning rate of a layer (base rate times multiplier)."""
        ...

    def set_dopamine_gains(self, layer_name: str, burst_gain: float, dip_gain: float) -> None:
        ...

    def new_state(self) -> None:
        """Prepare for a new trial."""
        ...

    def end_phase(self, plus: bool) -> None:
        """End of the minus (plus=False) or plus (plus=True) settling phase."""
        ...

    def learn(self) -> None:
        ...

    def layers_by_role(self, *roles: str) -> List[str]:
        ...


@runtime_checkable
class StatsProtocol(Protocol):
    """Statistics store read and written by callbacks."""

    def set_scalar(self, key: str, value: float) -> None:
        ...

    def set_int(self, key: str, value: int) -> None:
        ...

    def set_string(self, key: str, value: str) -> None:
        ...

    def read_scalar(self, key: str) -> float:
        ...

    def read_int(self, key: str) -> int:
        ...

    def read_string(self, key: str) -> str:
        ...

    def has(self, key: str) -> bool:
        ...


@runtime_checkable
class LogProtocol(Protocol):
    """Per-(mode, scale) row store."""

    def commit_row(self, mode: Mode, scale: TimeScale, stats: StatsProtocol) -> Optional[Mapping[str, Any]]:
        ...

    def reset(self, mode: Mode, scale: TimeScale) -> None:
        ...


@runtime_checkable
class GuiProtocol(Protocol):
    """Optional view collaborator."""

    def refresh(self, counters: Mapping[str, Any]) -> None:
        ...

    def is_visible(self) -> bool:
        ...
