"""
Standard wiring of a network onto the loop hierarchy.

- configure_standard_phases: minus/plus phase events within the Cycle loop
- configure_cycle_and_learn: per-cycle settling and per-trial learning
- configure_view_updates: optional GUI refresh at Trial and Epoch ends

These helpers register callbacks under fixed names so later subsystems can
anchor against them, e.g. the reward step inserted before "MinusPhase:End".

"PlusPhase:Start" and "PlusPhase:End" are anchors only and carry no callbacks.
The plus phase is completed by the Trial loop's "PlusPhase" on_end, after the
last cycle has settled; an event at plus_end fires before that cycle runs.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from chronoloop.core.protocols import GuiProtocol, NetworkProtocol
from chronoloop.core.stacks import Stacks
from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.errors import ConfigurationError

MINUS_PHASE_END = "MinusPhase:End"
PLUS_PHASE_START = "PlusPhase:Start"
PLUS_PHASE_END = "PlusPhase:End"


def configure_standard_phases(
    stacks: Stacks,
    net: NetworkProtocol,
    minus_end: int = 75,
    plus_end: int = 99,
) -> None:
    """Add the minus/plus phase events to every stack's Cycle loop.

    Args:
        stacks: Configured stacks
        net: Network receiving the phase boundary
        minus_end: Cycle at which the minus phase ends and the plus phase starts
        plus_end: Cycle at which the plus phase ends
    """
    if not 0 < minus_end < plus_end:
        raise ConfigurationError(
            f"Phase timing requires 0 < minus_end < plus_end, got {minus_end}, {plus_end}"
        )

    for stack in stacks.stacks.values():
        cycle = stack.loop(TimeScale.CYCLE)
        minus = cycle.add_event(MINUS_PHASE_END, minus_end)
        minus.on_event.add(MINUS_PHASE_END, lambda ctx: net.end_phase(plus=False))
        cycle.add_event(PLUS_PHASE_START, minus_end)
        cycle.add_event(PLUS_PHASE_END, plus_end)


def configure_cycle_and_learn(stacks: Stacks, net: NetworkProtocol) -> None:
    """Register settling, phase completion and learning on every stack.

    Learning only happens in Train mode.
    """
    for mode, stack in stacks.stacks.items():
        trial = stack.loop(TimeScale.TRIAL)
        cycle = stack.loop(TimeScale.CYCLE)

        trial.on_start.add("NewState", lambda ctx: net.new_state())
        cycle.main.add("Cycle", lambda ctx: net.step_one_processing_unit())
        trial.on_end.add("PlusPhase", lambda ctx: net.end_phase(plus=True))
        if mode is Mode.TRAIN:
            trial.on_end.add("Learn", lambda ctx: net.learn())


def configure_view_updates(
    stacks: Stacks,
    gui: Optional[GuiProtocol],
    counters_fn: Callable[[Any, TimeScale], Mapping[str, Any]],
) -> None:
    """Refresh ``gui`` at the end of each Trial and Epoch, when visible.

    Args:
        stacks: Configured stacks
        gui: View collaborator, or None to skip wiring
        counters_fn: ``fn(ctx, scale)`` producing the counter text/snapshot
    """
    if gui is None:
        return

    def make_refresh(scale: TimeScale) -> Callable[[Any], None]:
        def refresh(ctx: Any) -> None:
            if not gui.is_visible():
                return
            gui.refresh(counters_fn(ctx, scale))
        return refresh

    for stack in stacks.stacks.values():
        for scale in (TimeScale.TRIAL, TimeScale.EPOCH):
            stack.loop(scale).on_end.add("UpdateView", make_refresh(scale))
