"""Bounded tick counter, the atomic unit of progress at one time scale."""

from __future__ import annotations

from typing import Optional

from chronoloop.errors import CounterOverflowError, validate_counter_max


class Counter:
    """Integer counter with a current value and a maximum.

    ``cur`` stays below ``max`` while the owning loop is active: the runner
    checks :meth:`is_last` and resets instead of advancing on the last tick.

    A maximum of 0 marks a single-shot scope; ``None`` means unbounded.
    """

    __slots__ = ("name", "cur", "max")

    def __init__(self, max: Optional[int] = 1, name: str = ""):
        validate_counter_max(max, name=f"{name or 'counter'}.max")
        self.name = name
        self.cur = 0
        self.max = max

    def init(self, max_override: Optional[int] = None) -> None:
        """Reset to zero, optionally replacing the maximum."""
        if max_override is not None:
            validate_counter_max(max_override, name=f"{self.name or 'counter'}.max")
            self.max = max_override
        self.cur = 0

    def reset(self) -> None:
        self.cur = 0

    @property
    def unbounded(self) -> bool:
        return self.max is None

    def is_last(self) -> bool:
        """True when the current tick is the final one of the range."""
        if self.max is None:
            return False
        return self.cur >= self.max - 1

    def advance(self) -> int:
        """Increment by one tick.

        Raises:
            CounterOverflowError: If called on the last tick without a reset
        """
        if self.is_last():
            raise CounterOverflowError(self.name, self.cur, self.max)
        self.cur += 1
        return self.cur

    def __repr__(self) -> str:
        return f"Counter({self.name!r}, cur={self.cur}, max={self.max})"
