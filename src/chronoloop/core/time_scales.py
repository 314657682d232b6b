"""
Time scales and execution modes.

The simulation is organized as a strict hierarchy of time scales, coarsest
first: one Run holds many Epochs, one Epoch holds many Trials, one Trial holds
many Cycles. A finer scale completes its full range once per tick of the next
coarser scale.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import List, Optional


class TimeScale(IntEnum):
    """Ordered time scales, coarsest (RUN) to finest (CYCLE).

    The integer value is the nesting depth, so ``TimeScale.RUN < TimeScale.CYCLE``.
    """

    RUN = 0
    EPOCH = 1
    TRIAL = 2
    CYCLE = 3

    @property
    def label(self) -> str:
        """Capitalized name used for stats keys and log tables ("Run", "Epoch", ...)."""
        return self.name.capitalize()

    def finer(self) -> Optional["TimeScale"]:
        """Next finer scale, or None for CYCLE."""
        if self is TimeScale.CYCLE:
            return None
        return TimeScale(self.value + 1)

    def coarser(self) -> Optional["TimeScale"]:
        """Next coarser scale, or None for RUN."""
        if self is TimeScale.RUN:
            return None
        return TimeScale(self.value - 1)

    @classmethod
    def ordered(cls) -> List["TimeScale"]:
        """All scales, coarsest first."""
        return sorted(cls)


class Mode(Enum):
    """Execution context, each with its own Stack and counters."""

    TRAIN = "Train"
    TEST = "Test"

    def __str__(self) -> str:
        return self.value
