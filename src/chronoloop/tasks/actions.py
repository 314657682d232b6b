"""Actions of the Store-Ignore-Recall task."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from chronoloop.errors import ConfigurationError

N_SLOTS = 2


class Action(IntEnum):
    """Per-trial instruction; the value is the CtrlInput unit index."""

    STORE1 = 0
    STORE2 = 1
    IGNORE = 2
    RECALL1 = 3
    RECALL2 = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def is_store(self) -> bool:
        return self in (Action.STORE1, Action.STORE2)

    @property
    def is_recall(self) -> bool:
        return self in (Action.RECALL1, Action.RECALL2)

    @property
    def slot(self) -> Optional[int]:
        """Memory slot addressed by this action (None for Ignore)."""
        if self in (Action.STORE1, Action.RECALL1):
            return 0
        if self in (Action.STORE2, Action.RECALL2):
            return 1
        return None

    @classmethod
    def parse(cls, name: str) -> "Action":
        """Parse "Store1", "STORE1" or "store1"."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            valid = [a.label for a in cls]
            raise ConfigurationError(f"Unknown action '{name}'. Valid actions: {valid}") from None

    def __str__(self) -> str:
        return self.label
