"""Store-Ignore-Recall task: actions, schedules, environment and stop predicate."""

from chronoloop.tasks.actions import N_SLOTS, Action
from chronoloop.tasks.schedules import ActionSchedule, CyclicSchedule, RandomSchedule
from chronoloop.tasks.store_ignore_recall import NZERO_DEFAULT_THRESHOLD, SIREnv, nzero_stop_predicate

__all__ = [
    "Action",
    "ActionSchedule",
    "CyclicSchedule",
    "N_SLOTS",
    "NZERO_DEFAULT_THRESHOLD",
    "RandomSchedule",
    "SIREnv",
    "nzero_stop_predicate",
]
