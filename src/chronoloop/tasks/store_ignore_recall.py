"""
Store-Ignore-Recall (SIR) working memory task.

Each trial presents a stimulus together with an instruction:

- Store1 / Store2: write the stimulus into memory slot 1 / 2
- Ignore: a distractor that must not change memory
- Recall1 / Recall2: report the stimulus held in slot 1 / 2

Slots persist across trials within a run: they are overwritten by later
stores and are not cleared by a recall. Recalling a slot that was never
stored always scores as incorrect.

State patterns (all float32 tensors):
    Input:     one-hot stimulus on store/ignore trials, blank on recall
    CtrlInput: one-hot action
    Output:    target (current stimulus, or the recalled slot's content)
    Rew:       [reward] once set_reward() has been called this trial

The environment has no terminal condition; the enclosing Epoch loop owns
termination via :func:`nzero_stop_predicate`.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import torch

from chronoloop.errors import ConfigurationError
from chronoloop.tasks.actions import N_SLOTS, Action
from chronoloop.tasks.schedules import ActionSchedule, CyclicSchedule, RandomSchedule

logger = logging.getLogger(__name__)

NZERO_DEFAULT_THRESHOLD = 2


class SIREnv:
    """Store-Ignore-Recall environment for one mode.

    Args:
        name: Environment name (normally the mode label, "Train" or "Test")
        n_stim: Number of distinct stimuli
        rew_val: Reward for a correct recall
        no_rew_val: Reward for an incorrect recall
        schedule: Action strategy; defaults to a seeded RandomSchedule
        seed: Base seed for stimulus draws (reseeded per run as seed + run)
    """

    def __init__(
        self,
        name: str,
        n_stim: int = 4,
        rew_val: float = 1.0,
        no_rew_val: float = 0.0,
        schedule: Optional[ActionSchedule] = None,
        seed: Optional[int] = None,
    ):
        if n_stim < 1:
            raise ConfigurationError(f"n_stim must be >= 1, got {n_stim}")
        self.name = name
        self.n_stim = n_stim
        self.rew_val = rew_val
        self.no_rew_val = no_rew_val
        self.schedule: ActionSchedule = schedule if schedule is not None else RandomSchedule(seed)
        self.seed = seed
        self.generator = torch.Generator()

        self.slots: List[Optional[int]] = [None] * N_SLOTS
        self.action: Optional[Action] = None
        self.stimulus: int = 0
        self.last_reward: Optional[float] = None
        self.n_steps = 0
        self.run = 0
        self.init(0)

    @classmethod
    def from_config(cls, name: str, config: Any, seed_offset: int = 0) -> "SIREnv":
        """Build from an :class:`SIRTaskConfig`."""
        seed = None if config.seed is None else config.seed + seed_offset
        if config.random_schedule:
            schedule: ActionSchedule = RandomSchedule(seed)
        else:
            schedule = CyclicSchedule(config.schedule)
        return cls(
            name,
            n_stim=config.n_stim,
            rew_val=config.rew_val,
            no_rew_val=config.no_rew_val,
            schedule=schedule,
            seed=seed,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def init(self, run: int = 0) -> None:
        """Start a new run: empty slots, zero trials, reseeded draws."""
        self.run = run
        self.slots = [None] * N_SLOTS
        self.action = None
        self.stimulus = 0
        self.last_reward = None
        self.n_steps = 0
        if self.seed is None:
            self.generator.seed()
        else:
            self.generator.manual_seed(self.seed + run)
        self.schedule.reset(run)

    def step(self) -> Action:
        """Advance to the next trial and update memory on store actions."""
        action = self.schedule.next_action(self)
        if action.is_recall and self.n_steps == 0:
            raise ConfigurationError(f"{self.name}: first action of a run must be a store, got {action}")
        self.action = action
        self.stimulus = int(torch.randint(self.n_stim, (1,), generator=self.generator).item())
        self.last_reward = None
        if action.is_store:
            self.slots[action.slot] = self.stimulus
        self.n_steps += 1
        return action

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_stored(self, slot: int) -> bool:
        return self.slots[slot] is not None

    @property
    def is_recall(self) -> bool:
        return self.action is not None and self.action.is_recall

    @property
    def expected_index(self) -> Optional[int]:
        """Correct answer on recall trials (-1 for an empty slot), else None."""
        if not self.is_recall:
            return None
        stored = self.slots[self.action.slot]
        return -1 if stored is None else stored

    @property
    def target_index(self) -> int:
        """Correct Output unit for any trial (-1 when recalling an empty slot)."""
        if self.action is None:
            return -1
        if self.action.is_recall:
            return self.expected_index
        return self.stimulus

    @property
    def trial_name(self) -> str:
        if self.action is None:
            return ""
        return f"{self.action.label}:{self.stimulus}"

    def __str__(self) -> str:
        return self.trial_name

    def state(self, element: str) -> Optional[torch.Tensor]:
        """Pattern for a layer, or None if this environment has none for it."""
        builders: Dict[str, Callable[[], Optional[torch.Tensor]]] = {
            "Input": self._input_pattern,
            "CtrlInput": self._ctrl_pattern,
            "Output": self._output_pattern,
            "Rew": self._reward_pattern,
        }
        builder = builders.get(element)
        if builder is None:
            return None
        return builder()

    def _one_hot(self, index: Optional[int], size: int) -> torch.Tensor:
        pattern = torch.zeros(size, dtype=torch.float32)
        if index is not None and index >= 0:
            pattern[index] = 1.0
        return pattern

    def _input_pattern(self) -> torch.Tensor:
        if self.action is None or self.action.is_recall:
            return self._one_hot(None, self.n_stim)
        return self._one_hot(self.stimulus, self.n_stim)

    def _ctrl_pattern(self) -> torch.Tensor:
        return self._one_hot(None if self.action is None else int(self.action), len(Action))

    def _output_pattern(self) -> torch.Tensor:
        if self.action is None:
            return self._one_hot(None, self.n_stim)
        if self.action.is_recall:
            return self._one_hot(self.slots[self.action.slot], self.n_stim)
        return self._one_hot(self.stimulus, self.n_stim)

    def _reward_pattern(self) -> Optional[torch.Tensor]:
        if self.last_reward is None:
            return None
        return torch.tensor([self.last_reward], dtype=torch.float32)

    # ------------------------------------------------------------------
    # Reward
    # ------------------------------------------------------------------

    def set_reward(self, net_out_index: int) -> bool:
        """Score the network's answer on a recall trial.

        Returns:
            True if the answer matched the recalled slot

        Raises:
            ConfigurationError: If the current action is not a recall
        """
        if not self.is_recall:
            raise ConfigurationError(
                f"{self.name}: set_reward called on {self.action} trial; reward applies to recall only"
            )
        correct = net_out_index == self.expected_index
        self.last_reward = self.rew_val if correct else self.no_rew_val
        logger.debug(f"{self.name} {self.trial_name}: answer {net_out_index}, reward {self.last_reward}")
        return correct


def nzero_stop_predicate(n_zero: int) -> Callable[[Any], bool]:
    """Epoch ``is_done`` predicate: stop after ``n_zero`` zero-error epochs in a row.

    Reads the "NZero" streak from ``ctx.stats``; values <= 0 mean 2.
    """
    threshold = n_zero if n_zero > 0 else NZERO_DEFAULT_THRESHOLD

    def nzero_stop(ctx: Any) -> bool:
        return ctx.stats.read_int("NZero") >= threshold

    return nzero_stop
