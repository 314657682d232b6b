"""
Core control-loop scheduler.

Counter -> Loop -> Stack -> Stacks, executed by the Runner.
"""

from chronoloop.core.context import SimContext
from chronoloop.core.counter import Counter
from chronoloop.core.loop import Loop, LoopEvent
from chronoloop.core.phases import (
    MINUS_PHASE_END,
    PLUS_PHASE_END,
    PLUS_PHASE_START,
    configure_cycle_and_learn,
    configure_standard_phases,
    configure_view_updates,
)
from chronoloop.core.protocols import GuiProtocol, LogProtocol, NetworkProtocol, StatsProtocol
from chronoloop.core.registry import CallbackRegistry, FuncKind, NamedFunc
from chronoloop.core.runner import Runner
from chronoloop.core.stack import Stack
from chronoloop.core.stacks import Stacks
from chronoloop.core.time_scales import Mode, TimeScale

__all__ = [
    "CallbackRegistry",
    "Counter",
    "FuncKind",
    "GuiProtocol",
    "LogProtocol",
    "Loop",
    "LoopEvent",
    "MINUS_PHASE_END",
    "Mode",
    "NamedFunc",
    "NetworkProtocol",
    "PLUS_PHASE_END",
    "PLUS_PHASE_START",
    "Runner",
    "SimContext",
    "Stack",
    "Stacks",
    "StatsProtocol",
    "TimeScale",
    "configure_cycle_and_learn",
    "configure_standard_phases",
    "configure_view_updates",
]
