"""
Action schedules for the Store-Ignore-Recall environment.

A schedule decides the next action from the environment's current memory
state. Two strategies share the same ``next_action(env)`` interface:

- CyclicSchedule: a fixed sequence, repeated
- RandomSchedule: seeded uniform draws among the currently valid actions

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, Sequence, Union

import torch

from chronoloop.errors import ConfigurationError
from chronoloop.tasks.actions import Action

if TYPE_CHECKING:
    from chronoloop.tasks.store_ignore_recall import SIREnv


class ActionSchedule(Protocol):
    def next_action(self, env: "SIREnv") -> Action:
        ...

    def reset(self, run: int = 0) -> None:
        ...


class CyclicSchedule:
    """Repeat a fixed action sequence; the first entry must be a store."""

    def __init__(self, sequence: Sequence[Union[Action, str]]):
        actions = [a if isinstance(a, Action) else Action.parse(a) for a in sequence]
        if not actions:
            raise ConfigurationError("Cyclic schedule needs at least one action")
        if not actions[0].is_store:
            raise ConfigurationError(
                f"Cyclic schedule must start with a store action, got {actions[0].label}"
            )
        self.sequence: List[Action] = actions
        self._pos = 0

    def reset(self, run: int = 0) -> None:
        self._pos = 0

    def next_action(self, env: "SIREnv") -> Action:
        action = self.sequence[self._pos]
        self._pos = (self._pos + 1) % len(self.sequence)
        return action


class RandomSchedule:
    """Uniform draw among valid actions.

    The first action of a run is always a store. ``Recall{n}`` is only valid
    once slot n has been stored in the current run.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.generator = torch.Generator()
        self.reset(0)

    def reset(self, run: int = 0) -> None:
        if self.seed is None:
            self.generator.seed()
        else:
            self.generator.manual_seed(self.seed + run)

    def valid_actions(self, env: "SIREnv") -> List[Action]:
        if env.n_steps == 0:
            return [Action.STORE1, Action.STORE2]
        valid = [Action.STORE1, Action.STORE2, Action.IGNORE]
        if env.has_stored(0):
            valid.append(Action.RECALL1)
        if env.has_stored(1):
            valid.append(Action.RECALL2)
        return valid

    def next_action(self, env: "SIREnv") -> Action:
        valid = self.valid_actions(env)
        idx = int(torch.randint(len(valid), (1,), generator=self.generator).item())
        return valid[idx]
