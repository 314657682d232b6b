"""
Loop: one time scale of the control hierarchy.

A Loop owns a Counter plus its callback registries:

- ``on_start``: fired when a tick opens
- ``main``: the scale's own body for each tick (for the finest scale this is
  the terminal action, e.g. one network settling step)
- ``on_end``: fired when a tick closes
- ``events``: named sub-boundary events fired when the counter reaches a
  given position (e.g. "MinusPhase:End" at cycle 75)
- ``is_done``: termination predicates, OR-ed after every tick of this scale

The execution algorithm lives in :mod:`chronoloop.core.runner`; a Loop only
holds configuration and the open/closed state of its current tick.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from chronoloop.core.counter import Counter
from chronoloop.core.registry import CallbackRegistry, FuncKind, NamedFunc
from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.errors import ConfigurationError, validate_name


class LoopEvent:
    """Named event fired at a fixed counter position within a loop.

    The event has its own ordered registry so several subsystems can hook the
    same boundary in a deterministic order.
    """

    def __init__(self, name: str, at_counter: int, label_prefix: str = ""):
        validate_name(name, what="event")
        if isinstance(at_counter, bool) or not isinstance(at_counter, int) or at_counter < 0:
            raise ConfigurationError(f"Event '{name}' position must be a non-negative int, got {at_counter!r}")
        self.name = name
        self.at_counter = at_counter
        self.on_event = CallbackRegistry(f"{label_prefix}Event[{name}]")

    def __repr__(self) -> str:
        return f"LoopEvent({self.name!r}, at={self.at_counter}, {self.on_event.names()})"


class Loop:
    """One scale of a Stack: counter, callback registries and stop predicates."""

    REGISTRIES = ("on_start", "main", "on_end", "is_done")

    def __init__(self, mode: Mode, scale: TimeScale, max_ticks: Optional[int]):
        self.mode = mode
        self.scale = scale
        label = f"{mode}.{scale.label}"
        self.counter = Counter(max_ticks, name=label)

        self.on_start = CallbackRegistry(f"{label}.OnStart")
        self.main = CallbackRegistry(f"{label}.Main")
        self.on_end = CallbackRegistry(f"{label}.OnEnd")
        self.is_done = CallbackRegistry(f"{label}.IsDone", kind=FuncKind.PREDICATE)
        self.events: List[LoopEvent] = []

        # Runner state: True between OnStart and OnEnd of the current tick
        self.tick_open = False

    @property
    def label(self) -> str:
        return f"{self.mode}.{self.scale.label}"

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_max(self, max_ticks: Optional[int]) -> None:
        """Re-initialize the counter with a new maximum (counter ``Init``)."""
        self.counter.init(max_ticks)
        self.tick_open = False

    def register(
        self,
        registry: str,
        name: str,
        func: Callable[[Any], Any],
        *,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> NamedFunc:
        """Register a callback on one of this loop's registries by name.

        Args:
            registry: One of "on_start", "main", "on_end", "is_done"
            name: Unique callback name within that registry
            func: ``fn(ctx)``; predicates return bool
            before: Anchor name to insert before
            after: Anchor name to insert after
        """
        if registry not in self.REGISTRIES:
            raise ConfigurationError(
                f"Unknown registry '{registry}' on {self.label}; choose from {self.REGISTRIES}"
            )
        return getattr(self, registry).add(name, func, before=before, after=after)

    def add_event(self, name: str, at_counter: int) -> LoopEvent:
        """Add a named event fired when the counter reaches ``at_counter``."""
        if self.on_start.frozen:
            raise ConfigurationError(
                f"Cannot add event '{name}' to {self.label}: registration is closed once a run has begun"
            )
        if any(ev.name == name for ev in self.events):
            raise ConfigurationError(f"{self.label} already has an event named '{name}'")
        event = LoopEvent(name, at_counter, label_prefix=f"{self.label}.")
        self.events.append(event)
        return event

    def event_by_name(self, name: str) -> LoopEvent:
        for event in self.events:
            if event.name == name:
                return event
        raise ConfigurationError(
            f"{self.label} has no event named '{name}'; events: {[e.name for e in self.events]}"
        )

    def events_at(self, position: int) -> List[LoopEvent]:
        return [event for event in self.events if event.at_counter == position]

    def validate(self) -> None:
        """Check event positions against the counter range."""
        max_ticks = self.counter.max
        if max_ticks is None:
            return
        for event in self.events:
            if max_ticks == 0 or event.at_counter >= max_ticks:
                raise ConfigurationError(
                    f"Event '{event.name}' at {event.at_counter} lies outside "
                    f"{self.label} range [0, {max_ticks})"
                )

    def freeze(self) -> None:
        for registry_name in self.REGISTRIES:
            getattr(self, registry_name).freeze()
        for event in self.events:
            event.on_event.freeze()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def describe(self) -> Dict[str, Any]:
        """Registry contents in firing order (useful for debugging ordering)."""
        return {
            "scale": self.scale.label,
            "max": self.counter.max,
            "on_start": self.on_start.names(),
            "main": self.main.names(),
            "on_end": self.on_end.names(),
            "is_done": self.is_done.names(),
            "events": {ev.name: (ev.at_counter, ev.on_event.names()) for ev in self.events},
        }

    def __repr__(self) -> str:
        return f"Loop({self.label}, {self.counter!r})"
