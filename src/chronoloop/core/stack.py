"""
Stack: the full Run/Epoch/Trial/Cycle hierarchy for one execution Mode.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from chronoloop.core.loop import Loop
from chronoloop.core.registry import CallbackRegistry
from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.errors import ConfigurationError

if TYPE_CHECKING:
    from chronoloop.core.protocols import StatsProtocol


class Stack:
    """Ordered loops, one per time scale, owned by a single Mode.

    Construction requires a maximum for every scale; a missing or invalid
    maximum is a ConfigurationError so a partially-configured hierarchy can
    never run.

    Example:
        stack = Stack(Mode.TRAIN, {
            TimeScale.RUN: 1, TimeScale.EPOCH: 10,
            TimeScale.TRIAL: 100, TimeScale.CYCLE: 100,
        })
        stack.loop(TimeScale.TRIAL).on_start.add("ApplyInputs", apply_inputs)
    """

    def __init__(self, mode: Mode, maxima: Mapping[TimeScale, Optional[int]]):
        if not isinstance(mode, Mode):
            raise ConfigurationError(f"Stack mode must be a Mode, got {mode!r}")
        missing = [s.label for s in TimeScale.ordered() if s not in maxima]
        extra = [k for k in maxima if not isinstance(k, TimeScale)]
        if missing or extra:
            raise ConfigurationError(
                f"{mode} stack must define exactly the scales "
                f"{[s.label for s in TimeScale.ordered()]}; missing={missing}, unknown={extra}"
            )

        self.mode = mode
        self._loops: Dict[TimeScale, Loop] = {
            scale: Loop(mode, scale, maxima[scale]) for scale in TimeScale.ordered()
        }
        self.on_init = CallbackRegistry(f"{mode}.OnInit")
        self.done = False

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def loop(self, scale: TimeScale) -> Loop:
        if scale not in self._loops:
            raise ConfigurationError(f"{self.mode} stack has no {scale!r} loop")
        return self._loops[scale]

    @property
    def loops(self) -> List[Loop]:
        """Loops coarsest first."""
        return [self._loops[scale] for scale in TimeScale.ordered()]

    @property
    def order(self) -> List[TimeScale]:
        return TimeScale.ordered()

    def set_max(self, scale: TimeScale, max_ticks: Optional[int]) -> None:
        self.loop(scale).set_max(max_ticks)

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def reset_counters(self) -> None:
        """Zero every counter, close all ticks and clear the done flag."""
        for loop in self.loops:
            loop.counter.reset()
            loop.tick_open = False
        self.done = False

    def counters_snapshot(self) -> Dict[str, int]:
        return {loop.scale.label: loop.counter.cur for loop in self.loops}

    def counters_to_stats(self, stats: "StatsProtocol") -> None:
        """Write each counter to stats under its scale label ("Run", "Epoch", ...)."""
        for loop in self.loops:
            stats.set_int(loop.scale.label, loop.counter.cur)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def validate(self) -> None:
        for loop in self.loops:
            loop.validate()

    def freeze(self) -> None:
        self.on_init.freeze()
        for loop in self.loops:
            loop.freeze()

    def describe(self) -> Dict[str, Any]:
        return {
            "mode": str(self.mode),
            "on_init": self.on_init.names(),
            "loops": [loop.describe() for loop in self.loops],
        }

    def __repr__(self) -> str:
        counters = ", ".join(f"{k}={v}" for k, v in self.counters_snapshot().items())
        return f"Stack({self.mode}, {counters}, done={self.done})"
