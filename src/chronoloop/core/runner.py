"""
Recursive-descent runner for a Stack.

For each tick of the outermost loop, every finer loop runs to completion.
The order of one tick of a loop is fixed:

    1. events whose position equals counter.cur
    2. on_start
    3. main
    4. the next finer loop, run to completion
    5. on_end
    6. is_done predicates (first true predicate ends this loop early)
    7. counter reset (loop complete) or counter.advance()

Cooperative cancellation: before any new tick opens, the runner checks the
control's stop flag. When it is set, ``run_level`` returns ``False`` all the
way up without firing the ``on_end`` of enclosing loops, whose ticks stay
open. A later run resumes those open ticks without re-firing their
``on_start`` or events.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from chronoloop.core.loop import Loop
from chronoloop.core.stack import Stack
from chronoloop.core.time_scales import Mode, TimeScale

logger = logging.getLogger(__name__)


class RunControl(Protocol):
    """What the runner needs from its owner (normally :class:`Stacks`)."""

    @property
    def stop_requested(self) -> bool:
        ...

    def tick_closed(self, mode: Mode, scale: TimeScale) -> None:
        ...


class Runner:
    """Executes a Stack's loop hierarchy in strict lexicographic order."""

    def __init__(self, control: RunControl):
        self.control = control

    def run_stack(self, stack: Stack, ctx: Any) -> bool:
        """Run (or resume) ``stack``.

        Returns:
            True if the stack ran to completion, False if it was stopped
        """
        if stack.done:
            logger.debug(f"{stack.mode} stack already complete; reset counters to run again")
            return True
        complete = self._run_level(stack, 0, ctx)
        if complete:
            stack.done = True
        return complete

    def _run_level(self, stack: Stack, level: int, ctx: Any) -> bool:
        loops = stack.loops
        if level >= len(loops):
            return True
        loop = loops[level]
        if loop.counter.max == 0:
            return self._run_scope(loop, ctx)

        counter = loop.counter
        finest = level == len(loops) - 1
        while True:
            if not loop.tick_open:
                if self.control.stop_requested:
                    return False
                self._open_tick(loop, ctx)

            if not finest and not self._run_level(stack, level + 1, ctx):
                return False

            loop.on_end.run(ctx)
            loop.tick_open = False
            self.control.tick_closed(loop.mode, loop.scale)

            stopped_by = loop.is_done.any_true(ctx)
            if stopped_by is not None:
                logger.debug(f"{loop.label} done after tick {counter.cur} ({stopped_by})")
                counter.reset()
                return True
            if counter.is_last():
                logger.debug(f"{loop.label} complete ({counter.max} ticks)")
                counter.reset()
                return True
            counter.advance()

    def _open_tick(self, loop: Loop, ctx: Any) -> None:
        loop.tick_open = True
        for event in loop.events_at(loop.counter.cur):
            event.on_event.run(ctx)
        loop.on_start.run(ctx)
        loop.main.run(ctx)

    def _run_scope(self, loop: Loop, ctx: Any) -> bool:
        """Single-shot scope (max == 0): start, body and end once, no ticks."""
        if not loop.tick_open:
            if self.control.stop_requested:
                return False
            loop.tick_open = True
            loop.on_start.run(ctx)
            loop.main.run(ctx)
        loop.on_end.run(ctx)
        loop.tick_open = False
        self.control.tick_closed(loop.mode, loop.scale)
        return True
