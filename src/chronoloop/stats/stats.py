"""
Key-value statistics store shared by loop callbacks.

Values are written by one callback and read by later ones in the same tick
(or by ``is_done`` predicates). Every key a predicate reads must be set at
run start; reading a key that was never set raises MissingStatError
instead of falling back to a default.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import Dict, Iterable, Union

from chronoloop.errors import MissingStatError

Number = Union[int, float]


class Stats:
    """Float, int and string statistics keyed by name."""

    def __init__(self) -> None:
        self.floats: Dict[str, float] = {}
        self.ints: Dict[str, int] = {}
        self.strings: Dict[str, str] = {}

    def set_scalar(self, key: str, value: Number) -> None:
        self.floats[key] = float(value)

    def set_int(self, key: str, value: int) -> None:
        self.ints[key] = int(value)

    def set_string(self, key: str, value: str) -> None:
        self.strings[key] = str(value)

    def read_scalar(self, key: str) -> float:
        """Float value of ``key``; int stats are returned as float."""
        if key in self.floats:
            return self.floats[key]
        if key in self.ints:
            return float(self.ints[key])
        raise MissingStatError(key)

    def read_int(self, key: str) -> int:
        if key in self.ints:
            return self.ints[key]
        if key in self.floats:
            return int(self.floats[key])
        raise MissingStatError(key)

    def read_string(self, key: str) -> str:
        if key not in self.strings:
            raise MissingStatError(key)
        return self.strings[key]

    def has(self, key: str) -> bool:
        return key in self.floats or key in self.ints or key in self.strings

    def clear(self) -> None:
        self.floats.clear()
        self.ints.clear()
        self.strings.clear()

    def print_keys(self, keys: Iterable[str]) -> str:
        """One-line "Key: value" summary of ``keys`` (missing keys are skipped)."""
        parts = []
        for key in keys:
            if key in self.strings:
                parts.append(f"{key}: {self.strings[key]}")
            elif key in self.ints:
                parts.append(f"{key}: {self.ints[key]}")
            elif key in self.floats:
                parts.append(f"{key}: {self.floats[key]:.4g}")
        return "\t".join(parts)

    def __repr__(self) -> str:
        return f"Stats(floats={len(self.floats)}, ints={len(self.ints)}, strings={len(self.strings)})"
