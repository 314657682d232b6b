"""Explicit simulation context passed to every loop callback."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Optional

from chronoloop.core.time_scales import Mode

if TYPE_CHECKING:
    from chronoloop.core.protocols import GuiProtocol, LogProtocol, NetworkProtocol, StatsProtocol
    from chronoloop.core.stacks import Stacks
    from chronoloop.neuromodulation.learning_rate import LearningRateController
    from chronoloop.tasks.store_ignore_recall import SIREnv


@dataclass
class SimContext:
    """Everything a callback may read or write, built once per simulation.

    Callbacks receive this object by reference instead of reaching for
    module-level globals. Later callbacks in a tick may rely on writes made
    by earlier ones in registration order.

    Attributes:
        loops: The Stacks manager (also used for nested mode switches)
        net: Network collaborator
        stats: Statistics collaborator
        logs: Log-table collaborator
        envs: Environment per mode
        lr_control: Reward/entropy learning-rate controller
        gui: Optional view collaborator
        extras: Free-form slot for experiment-specific state
    """

    loops: "Stacks"
    net: Optional["NetworkProtocol"] = None
    stats: Optional["StatsProtocol"] = None
    logs: Optional["LogProtocol"] = None
    envs: Dict[Mode, "SIREnv"] = field(default_factory=dict)
    lr_control: Optional["LearningRateController"] = None
    gui: Optional["GuiProtocol"] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def mode(self) -> Mode:
        """Currently active mode (owned by the Stacks manager)."""
        return self.loops.mode

    def env(self, mode: Optional[Mode] = None) -> "SIREnv":
        """Environment for ``mode`` (defaults to the active mode)."""
        return self.envs[mode or self.loops.mode]
