"""
Ordered, named callback registries.

Independent subsystems (statistics, reward injection, view refresh, the
network driver) register side effects at loop boundaries without knowing
about each other. Each registry is an ordered list of ``NamedFunc`` entries:

    trial.on_start.add("ApplyInputs", apply_inputs)
    cycle_event.on_event.insert_before("MinusPhase:End", "ApplyReward", apply_reward)

Rules:
- Names are unique within a registry; a duplicate is a ConfigurationError,
  never a silent overwrite.
- ``before``/``after`` placement is resolved when the callback is added, so
  the order is fixed once the stack is configured.
- Once frozen (when a run begins) no further registration is accepted.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

from chronoloop.errors import ConfigurationError, validate_name


class FuncKind(Enum):
    """Tag for the callback signature held by a registry."""

    ACTION = "action"        # fn(ctx) -> None
    PREDICATE = "predicate"  # fn(ctx) -> bool


@dataclass(frozen=True)
class NamedFunc:
    """A callback and the stable name it was registered under."""

    name: str
    func: Callable[[Any], Any]
    kind: FuncKind = FuncKind.ACTION

    def __call__(self, ctx: Any) -> Any:
        return self.func(ctx)


class CallbackRegistry:
    """Ordered list of uniquely named callbacks of a single kind."""

    def __init__(self, label: str, kind: FuncKind = FuncKind.ACTION):
        self.label = label
        self.kind = kind
        self._funcs: List[NamedFunc] = []
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add(
        self,
        name: str,
        func: Callable[[Any], Any],
        *,
        before: Optional[str] = None,
        after: Optional[str] = None,
    ) -> NamedFunc:
        """Register ``func`` under ``name``.

        Appends to the tail unless ``before`` or ``after`` names an existing
        entry to anchor against.

        Raises:
            ConfigurationError: On duplicate name, missing anchor, both anchors
                given, non-callable func, or a frozen registry
        """
        self._check_writable(name)
        validate_name(name, what=f"{self.label} callback")
        if not callable(func):
            raise ConfigurationError(f"{self.label} callback '{name}' is not callable: {func!r}")
        if name in self:
            raise ConfigurationError(
                f"{self.label} already has a callback named '{name}'; "
                f"registered names: {self.names()}"
            )
        if before is not None and after is not None:
            raise ConfigurationError(f"{self.label} callback '{name}': give either before= or after=, not both")

        entry = NamedFunc(name=name, func=func, kind=self.kind)
        if before is not None:
            self._funcs.insert(self._index_of(before), entry)
        elif after is not None:
            self._funcs.insert(self._index_of(after) + 1, entry)
        else:
            self._funcs.append(entry)
        return entry

    def insert_before(self, anchor: str, name: str, func: Callable[[Any], Any]) -> NamedFunc:
        return self.add(name, func, before=anchor)

    def insert_after(self, anchor: str, name: str, func: Callable[[Any], Any]) -> NamedFunc:
        return self.add(name, func, after=anchor)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, ctx: Any) -> None:
        """Call every callback in registration order."""
        for entry in self._funcs:
            entry.func(ctx)

    def any_true(self, ctx: Any) -> Optional[str]:
        """Evaluate predicates in order; return the name of the first true one.

        Later predicates are not evaluated once one returns true.
        """
        for entry in self._funcs:
            if entry.func(ctx):
                return entry.name
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def names(self) -> List[str]:
        return [entry.name for entry in self._funcs]

    def get(self, name: str) -> NamedFunc:
        return self._funcs[self._index_of(name)]

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._funcs)

    def __len__(self) -> int:
        return len(self._funcs)

    def __iter__(self) -> Iterator[NamedFunc]:
        return iter(list(self._funcs))

    def __repr__(self) -> str:
        return f"CallbackRegistry({self.label!r}, {self.names()})"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_of(self, name: str) -> int:
        for i, entry in enumerate(self._funcs):
            if entry.name == name:
                return i
        raise ConfigurationError(
            f"{self.label} has no callback named '{name}' to anchor against; "
            f"registered names: {self.names()}"
        )

    def _check_writable(self, name: str) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Cannot register '{name}' on {self.label}: registration is closed once a run has begun"
            )
