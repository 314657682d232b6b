"""
Selector-based parameter sheets.

A sheet is an ordered list of rules; each rule selects targets and assigns
parameter values to them. Rules apply in order, so later rules override
earlier ones for the same target.

Selectors:
- ``#Name``: the target whose ``name`` matches
- ``.Class``: targets listing ``Class`` among their ``classes``
- ``Type``: targets whose ``type_name`` matches

Usage:
======
    sheets = ParamSets({
        "Base": ParamSheet([
            ParamRule("Layer", {"gain": 1.0}),
            ParamRule(".pfc", {"gain": 6.0}, desc="sharper maintenance"),
            ParamRule("#Output", {"gain": 2.0}),
        ]),
        "PD": ParamSheet([ParamRule(".matrix", {"burst_da_gain": 0.5})]),
    })
    net.apply_params(sheets.sheet("PD"))  # Base first, then PD

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from chronoloop.errors import ConfigurationError

BASE_SHEET = "Base"


class ParamTarget(Protocol):
    """Anything a sheet can be applied to."""

    name: str
    classes: Sequence[str]
    type_name: str

    def set_param(self, key: str, value: Any) -> None:
        ...


@dataclass(frozen=True)
class ParamRule:
    """One selector plus the parameters it assigns."""

    sel: str
    params: Mapping[str, Any]
    desc: str = ""

    def __post_init__(self) -> None:
        if not self.sel or self.sel in ("#", "."):
            raise ConfigurationError(f"Invalid param selector: {self.sel!r}")

    def matches(self, target: ParamTarget) -> bool:
        if self.sel.startswith("#"):
            return target.name == self.sel[1:]
        if self.sel.startswith("."):
            return self.sel[1:] in target.classes
        return target.type_name == self.sel


@dataclass
class ParamSheet:
    """Ordered rules applied to a collection of targets."""

    rules: List[ParamRule] = field(default_factory=list)

    def apply(self, targets: Iterable[ParamTarget]) -> List[Tuple[str, str, Any]]:
        """Apply every rule to every matching target.

        Returns:
            (target name, key, value) for each assignment, in order
        """
        targets = list(targets)
        applied = []
        for rule in self.rules:
            for target in targets:
                if not rule.matches(target):
                    continue
                for key, value in rule.params.items():
                    target.set_param(key, value)
                    applied.append((target.name, key, value))
        return applied


class ParamSets:
    """Named sheets; "Base" is always applied before any extra sheet."""

    def __init__(self, sheets: Mapping[str, ParamSheet]):
        if BASE_SHEET not in sheets:
            raise ConfigurationError(f"Param sets must define a '{BASE_SHEET}' sheet")
        self.sheets: Dict[str, ParamSheet] = dict(sheets)

    def sheet(self, extra: Optional[str] = None) -> ParamSheet:
        """Combined sheet: Base rules followed by ``extra``'s rules."""
        rules = list(self.sheets[BASE_SHEET].rules)
        if extra and extra != BASE_SHEET:
            if extra not in self.sheets:
                raise ConfigurationError(
                    f"Unknown param sheet '{extra}'. Available: {sorted(self.sheets)}"
                )
            rules.extend(self.sheets[extra].rules)
        return ParamSheet(rules)
