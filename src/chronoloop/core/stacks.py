"""
Stacks: the Mode -> Stack manager and mode-switching entry point.

Usage:
======
    loops = Stacks()
    loops.add_stack(Mode.TRAIN, run=1, epoch=50, trial=100, cycle=100)
    loops.add_stack(Mode.TEST, run=1, epoch=1, trial=100, cycle=100)

    # Periodic testing from inside the Train run
    train_epoch = loops.loop(Mode.TRAIN, TimeScale.EPOCH)
    train_epoch.on_start.add(
        "TestAtInterval",
        lambda ctx: ctx.loops.reset_and_run(Mode.TEST, ctx),
    )

    loops.run(Mode.TRAIN, ctx)

Mode switching:
===============
``run()`` may be called from inside a callback of a running stack. The call
is synchronous: the caller's tick stays "in progress" while the nested stack
runs, and ``current_mode`` is restored to its prior value before returning.
Only one level of nesting is supported; deeper nesting, or re-entering a
mode that is already running, raises ModeNestingError.

Cancellation:
=============
``stop()`` sets a single stop flag shared by every stack, so a stop raised
during a nested Test run also halts the enclosing Train run. The flag is
cleared when the next top-level run begins.

A nested run halted this way is remembered against its parent mode. The
next top-level ``run()`` of the parent first finishes that nested run, with
``mode`` switched as for any nested run, and then resumes the parent's open
tick. Resetting either stack's counters drops the pending nested run.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional

from chronoloop.core.loop import Loop
from chronoloop.core.runner import Runner
from chronoloop.core.stack import Stack
from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.errors import ConfigurationError, ModeNestingError

logger = logging.getLogger(__name__)

ModeScaleFunc = Callable[[Any, Mode, TimeScale], Any]


@dataclass
class _StepTarget:
    mode: Mode
    scale: TimeScale
    n: int
    count: int = 0


class Stacks:
    """Mapping of Mode to Stack plus the currently active mode."""

    MAX_NESTING = 1

    def __init__(self) -> None:
        self.stacks: Dict[Mode, Stack] = {}
        self.mode: Mode = Mode.TRAIN
        self._frames: List[Mode] = []
        self._stop_requested = False
        self._step: Optional[_StepTarget] = None
        self._interrupted: Dict[Mode, Mode] = {}
        self._frozen = False
        self._active_ctx: Any = None
        self._runner = Runner(self)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add_stack(
        self,
        mode: Mode,
        *,
        run: Optional[int],
        epoch: Optional[int],
        trial: Optional[int],
        cycle: Optional[int],
    ) -> Stack:
        """Create and register the stack for ``mode``."""
        if self._frozen:
            raise ConfigurationError(f"Cannot add {mode} stack: registration is closed once a run has begun")
        if mode in self.stacks:
            raise ConfigurationError(f"A {mode} stack is already configured")
        stack = Stack(mode, {
            TimeScale.RUN: run,
            TimeScale.EPOCH: epoch,
            TimeScale.TRIAL: trial,
            TimeScale.CYCLE: cycle,
        })
        self.stacks[mode] = stack
        return stack

    def stack(self, mode: Mode) -> Stack:
        if mode not in self.stacks:
            raise ConfigurationError(f"No stack configured for mode {mode}")
        return self.stacks[mode]

    def loop(self, mode: Mode, scale: TimeScale) -> Loop:
        return self.stack(mode).loop(scale)

    def add_on_start_to_all(self, name: str, func: ModeScaleFunc) -> None:
        """Register ``func(ctx, mode, scale)`` as ``on_start`` of every loop."""
        self._add_to_all("on_start", name, func)

    def add_on_end_to_all(self, name: str, func: ModeScaleFunc) -> None:
        """Register ``func(ctx, mode, scale)`` as ``on_end`` of every loop."""
        self._add_to_all("on_end", name, func)

    def _add_to_all(self, registry: str, name: str, func: ModeScaleFunc) -> None:
        for mode, stack in self.stacks.items():
            for loop in stack.loops:
                bound = partial(_call_with_mode_scale, func, mode, loop.scale)
                loop.register(registry, name, bound)

    def freeze(self) -> None:
        """Validate every stack and close registration."""
        if self._frozen:
            return
        for stack in self.stacks.values():
            stack.validate()
        for stack in self.stacks.values():
            stack.freeze()
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def reset_counters(self, mode: Optional[Mode] = None) -> None:
        """Reset counters of one stack, or of all stacks when mode is None."""
        if mode is not None:
            self.stack(mode).reset_counters()
            self._interrupted = {
                parent: nested for parent, nested in self._interrupted.items()
                if mode not in (parent, nested)
            }
            return
        for stack in self.stacks.values():
            stack.reset_counters()
        self._interrupted.clear()

    def init(self, mode: Mode, ctx: Any = None) -> None:
        """Reset ``mode``'s counters and fire its ``on_init`` callbacks."""
        self.reset_counters(mode)
        self.stack(mode).on_init.run(ctx)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, mode: Mode, ctx: Any = None) -> bool:
        """Run (or resume) ``mode``'s stack.

        When called from inside a running stack's callback this is a nested
        mode switch; ``ctx`` defaults to the active run's context.

        Returns:
            True if the stack completed, False if it stopped early

        Raises:
            ModeNestingError: Beyond one level of nesting, or if ``mode`` is
                already running
            ConfigurationError: If no stack exists for ``mode`` or the stacks
                fail validation
        """
        stack = self.stack(mode)
        nested = bool(self._frames)
        if len(self._frames) > self.MAX_NESTING:
            raise ModeNestingError(
                f"Cannot run {mode} inside {' -> '.join(map(str, self._frames))}: "
                f"mode switches nest at most {self.MAX_NESTING} level deep"
            )
        if mode in self._frames:
            raise ModeNestingError(f"{mode} is already running; it cannot be re-entered")

        self.freeze()
        if nested:
            if ctx is None:
                ctx = self._active_ctx
            logger.info(f"Switching mode {self.mode} -> {mode}")
        else:
            self._stop_requested = False
            self._active_ctx = ctx

        prior_mode = self.mode
        self.mode = mode
        self._frames.append(mode)
        try:
            complete = nested or self._resume_interrupted(mode, ctx)
            if complete:
                complete = self._runner.run_stack(stack, ctx)
        finally:
            self._frames.pop()
            self.mode = prior_mode
            if not nested:
                self._active_ctx = None

        if nested:
            logger.info(f"Returned to mode {prior_mode} from {mode}")
            if not complete:
                self._interrupted[prior_mode] = mode
        if not complete and not nested and self._step is None:
            logger.warning(f"{mode} run stopped at {stack.counters_snapshot()}")
        return complete

    def reset_and_run(self, mode: Mode, ctx: Any = None) -> bool:
        """Reset ``mode``'s counters, then run it from the beginning."""
        self.reset_counters(mode)
        return self.run(mode, ctx)

    def _resume_interrupted(self, mode: Mode, ctx: Any) -> bool:
        """Finish a nested run that a stop left open inside ``mode``'s current tick."""
        nested_mode = self._interrupted.pop(mode, None)
        if nested_mode is None:
            return True
        logger.info(f"Resuming interrupted {nested_mode} run inside {mode}")
        self.mode = nested_mode
        self._frames.append(nested_mode)
        try:
            complete = self._runner.run_stack(self.stack(nested_mode), ctx)
        finally:
            self._frames.pop()
            self.mode = mode
        if not complete:
            self._interrupted[mode] = nested_mode
        return complete

    def step(self, mode: Mode, scale: TimeScale, ctx: Any = None, n: int = 1) -> bool:
        """Run ``mode`` until ``n`` ticks of ``scale`` have completed.

        Leaves a resumable state: the next ``run()`` or ``step()`` continues
        exactly where this one stopped.

        Returns:
            True if the whole stack completed during the step
        """
        if n < 1:
            raise ConfigurationError(f"step count must be >= 1, got {n}")
        if self._frames:
            raise ModeNestingError("step() may only be called when no run is active")
        self._step = _StepTarget(mode=mode, scale=scale, n=n)
        try:
            return self.run(mode, ctx)
        finally:
            self._step = None

    def stop(self) -> None:
        """Request a cooperative stop; takes effect before the next tick opens."""
        self._stop_requested = True

    # ------------------------------------------------------------------
    # RunControl protocol
    # ------------------------------------------------------------------

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def tick_closed(self, mode: Mode, scale: TimeScale) -> None:
        step = self._step
        if step is None or step.mode != mode or step.scale != scale:
            return
        step.count += 1
        if step.count >= step.n:
            self._stop_requested = True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def depth(self) -> int:
        """Number of active mode frames (0 when idle, 2 inside a nested run)."""
        return len(self._frames)

    @property
    def is_running(self) -> bool:
        return bool(self._frames)

    def counters_snapshot(self, mode: Optional[Mode] = None) -> Dict[str, int]:
        return self.stack(mode or self.mode).counters_snapshot()


def _call_with_mode_scale(func: ModeScaleFunc, mode: Mode, scale: TimeScale, ctx: Any) -> Any:
    return func(ctx, mode, scale)
