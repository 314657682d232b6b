"""
Per-(mode, scale) log tables with hierarchical aggregation.

Rows are committed at the end of each loop tick:

- Trial rows copy the current values of declared items from the stats
- Epoch rows average the trial rows committed since the epoch began
- Run rows average the epoch rows committed since the run began

Error items (TrlErr) additionally produce PctErr/PctCor at the Epoch scale
and, for Train epochs, the zero-error streak bookkeeping read by the epoch
stop predicate:

    NZero:     consecutive epochs whose summed TrlErr is 0
    FirstZero: first epoch with zero errors (-1 if none yet)
    LastZero:  most recent epoch with zero errors (-1 if none yet)

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from chronoloop.core.protocols import StatsProtocol
from chronoloop.core.stacks import Stacks
from chronoloop.core.time_scales import Mode, TimeScale

logger = logging.getLogger(__name__)

ERR_ITEM = "TrlErr"
STREAK_KEYS = ("NZero", "FirstZero", "LastZero")
AGG_SCALES: Tuple[TimeScale, ...] = (TimeScale.RUN, TimeScale.EPOCH, TimeScale.TRIAL)

Row = Dict[str, Any]


@dataclass(frozen=True)
class LogItem:
    name: str
    scales: Tuple[TimeScale, ...]
    agg: bool = True
    is_string: bool = False


class LogTables:
    """Row tables for every (mode, scale) plus the error-streak state."""

    def __init__(self) -> None:
        self.items: Dict[str, LogItem] = {}
        self.tables: Dict[Tuple[Mode, TimeScale], List[Row]] = {}
        self.test_errors: List[Row] = []
        self._has_err_items = False

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def add_item(self, name: str, scales: Sequence[TimeScale] = AGG_SCALES, agg: bool = True) -> LogItem:
        """Declare a numeric item logged at ``scales``.

        With ``agg`` the Epoch/Run values are means over child rows;
        otherwise each scale copies the current stat value.
        """
        item = LogItem(name, tuple(scales), agg=agg)
        self.items[name] = item
        return item

    def add_string_item(self, name: str, scales: Sequence[TimeScale] = (TimeScale.TRIAL,)) -> LogItem:
        item = LogItem(name, tuple(scales), agg=False, is_string=True)
        self.items[name] = item
        return item

    def add_err_items(self, scales: Sequence[TimeScale] = AGG_SCALES) -> None:
        """Declare TrlErr with PctErr/PctCor and streak aggregation."""
        self.add_item(ERR_ITEM, scales)
        self._has_err_items = True

    def init_err_stats(self, stats: StatsProtocol) -> None:
        """Reset the error stat and streak counters at the start of a run."""
        stats.set_scalar(ERR_ITEM, 0.0)
        stats.set_int("NZero", 0)
        stats.set_int("FirstZero", -1)
        stats.set_int("LastZero", -1)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def table(self, mode: Mode, scale: TimeScale) -> List[Row]:
        return self.tables.setdefault((mode, scale), [])

    def column(self, mode: Mode, scale: TimeScale, name: str) -> np.ndarray:
        """Values of ``name`` in a table (rows lacking it are skipped)."""
        return np.asarray([row[name] for row in self.table(mode, scale) if name in row], dtype=float)

    def reset(self, mode: Mode, scale: TimeScale) -> None:
        self.tables[(mode, scale)] = []

    def reset_all(self) -> None:
        self.tables.clear()
        self.test_errors = []

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def commit_row(self, mode: Mode, scale: TimeScale, stats: StatsProtocol) -> Optional[Row]:
        """Append a row for ``(mode, scale)`` built from ``stats``.

        Scales without any declared items (normally Cycle) are not logged.

        Returns:
            The committed row, or None if nothing was logged
        """
        items = [item for item in self.items.values() if scale in item.scales]
        if not items:
            return None

        row: Row = {"Mode": str(mode)}
        for s in TimeScale.ordered():
            if stats.has(s.label):
                row[s.label] = stats.read_int(s.label)

        child_scale = scale.finer()
        children = self.table(mode, child_scale) if child_scale is not None else []
        for item in items:
            if item.is_string:
                row[item.name] = stats.read_string(item.name)
            elif item.agg and scale is not TimeScale.TRIAL and children:
                values = [r[item.name] for r in children if item.name in r]
                row[item.name] = float(np.mean(values)) if values else float("nan")
            else:
                row[item.name] = stats.read_scalar(item.name)

        if self._has_err_items and ERR_ITEM in row and scale is not TimeScale.TRIAL:
            row["PctErr"] = row[ERR_ITEM]
            row["PctCor"] = 1.0 - row[ERR_ITEM]
            if scale is TimeScale.EPOCH:
                errs = [r[ERR_ITEM] for r in children if ERR_ITEM in r]
                row["SumErr"] = float(np.sum(errs)) if errs else 0.0
                if mode is Mode.TRAIN:
                    self._update_streak(row, stats)

        self.table(mode, scale).append(row)
        return row

    def _update_streak(self, row: Row, stats: StatsProtocol) -> None:
        epoch = row.get(TimeScale.EPOCH.label, len(self.table(Mode.TRAIN, TimeScale.EPOCH)))
        nzero = stats.read_int("NZero")
        first = stats.read_int("FirstZero")
        last = stats.read_int("LastZero")
        if row["SumErr"] == 0:
            nzero += 1
            if first < 0:
                first = epoch
            last = epoch
        else:
            nzero = 0
        stats.set_int("NZero", nzero)
        stats.set_int("FirstZero", first)
        stats.set_int("LastZero", last)
        row.update({"NZero": nzero, "FirstZero": first, "LastZero": last})
        logger.debug(f"Train epoch {epoch}: SumErr {row['SumErr']:g}, NZero {nzero}")

    def run_stats(self, *names: str, mode: Mode = Mode.TRAIN) -> Row:
        """Copy the final epoch values of ``names`` into the current run row."""
        epochs = self.table(mode, TimeScale.EPOCH)
        runs = self.table(mode, TimeScale.RUN)
        if not runs:
            runs.append({"Mode": str(mode)})
        target = runs[-1]
        if epochs:
            last = epochs[-1]
            for name in names:
                if name in last:
                    target[name] = last[name]
        return target

    def log_test_errors(self, mode: Mode = Mode.TEST) -> List[Row]:
        """Collect the trials of the last test epoch that had errors."""
        self.test_errors = [
            dict(r) for r in self.table(mode, TimeScale.TRIAL) if r.get(ERR_ITEM, 0.0) > 0
        ]
        return self.test_errors


def configure_reset_log_below(stacks: Stacks, logs: LogTables) -> None:
    """Clear the next-finer scale's table at the start of every loop tick."""
    for mode, stack in stacks.stacks.items():
        for loop in stack.loops:
            finer = loop.scale.finer()
            if finer is None:
                continue
            loop.on_start.add(
                "ResetLogBelow",
                lambda ctx, m=mode, s=finer: logs.reset(m, s),
            )
