"""Run-level logging for simulations.

Records run start/end, epoch summaries and test sub-runs, with optional
JSON snapshots per run.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LogLevel(Enum):
    """Logging levels for simulation runs."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class RunLog:
    """Log data for a single run."""

    run: int
    start_time: float
    end_time: Optional[float] = None
    config: Optional[Dict[str, Any]] = None
    epochs: List[Dict[str, Any]] = field(default_factory=list)
    tests: List[Dict[str, Any]] = field(default_factory=list)
    run_stats: Dict[str, Any] = field(default_factory=dict)

    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time


class SimLogger:
    """Logging for simulation runs.

    **Attributes**:
        log_dir: Directory for log files
        log_level: Minimum logging level
        console_output: Whether to print to console
        file_output: Whether to write log and JSON files
        run_logs: Dictionary mapping run index to RunLog
    """

    def __init__(
        self,
        log_dir: str = "logs/sir",
        log_level: LogLevel = LogLevel.INFO,
        console_output: bool = True,
        file_output: bool = False,
        name: str = "chronoloop.SimLogger",
    ):
        self.log_dir = Path(log_dir)
        self.log_level = log_level
        self.console_output = console_output
        self.file_output = file_output

        if file_output:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.value))

        # Handlers are per logger name; don't stack duplicates on re-creation
        if not self.logger.handlers:
            formatter = logging.Formatter(FORMAT)
            if console_output:
                console_handler = logging.StreamHandler()
                console_handler.setLevel(getattr(logging, log_level.value))
                console_handler.setFormatter(formatter)
                self.logger.addHandler(console_handler)
            if file_output:
                file_handler = logging.FileHandler(self.log_dir / "sim.log")
                file_handler.setLevel(getattr(logging, log_level.value))
                file_handler.setFormatter(formatter)
                self.logger.addHandler(file_handler)

        self.current_run: Optional[int] = None
        self.run_logs: Dict[int, RunLog] = {}
        self.session_start_time = time.time()

    def log_run_start(self, run: int, config: Optional[Dict[str, Any]] = None) -> None:
        self.current_run = run
        self.run_logs[run] = RunLog(run=run, start_time=time.time(), config=config)
        self.logger.info(f"[Run {run} Start]")

    def log_epoch(self, run: int, row: Dict[str, Any]) -> None:
        """Record an epoch summary row."""
        run_log = self._run_log(run)
        run_log.epochs.append(dict(row))
        self.logger.info(
            f"[Run {run} Epoch {row.get('Epoch', len(run_log.epochs) - 1)}] "
            f"PctErr={row.get('PctErr', float('nan')):.3f} NZero={row.get('NZero', '-')}"
        )

    def log_test(self, run: int, row: Dict[str, Any], n_errors: int = 0) -> None:
        """Record a test sub-run's epoch row."""
        run_log = self._run_log(run)
        entry = dict(row)
        entry["n_errors"] = n_errors
        run_log.tests.append(entry)
        self.logger.info(
            f"[Run {run} Test] PctCor={row.get('PctCor', float('nan')):.3f} errors={n_errors}"
        )

    def log_run_end(self, run: int, run_stats: Optional[Dict[str, Any]] = None) -> None:
        if run not in self.run_logs:
            self.logger.warning(f"Run {run} not found in logs")
            return
        run_log = self.run_logs[run]
        run_log.end_time = time.time()
        run_log.run_stats = dict(run_stats or {})
        stats_text = ", ".join(f"{k}={v}" for k, v in run_log.run_stats.items())
        self.logger.info(
            f"[Run {run} End] {len(run_log.epochs)} epochs in {run_log.duration_seconds():.1f}s"
            + (f" ({stats_text})" if stats_text else "")
        )
        if self.file_output:
            self._write_run_json(run)

    def get_summary(self) -> Dict[str, Any]:
        return {
            "n_runs": len(self.run_logs),
            "session_seconds": time.time() - self.session_start_time,
            "runs": {
                run: {"epochs": len(log.epochs), "tests": len(log.tests), **log.run_stats}
                for run, log in self.run_logs.items()
            },
        }

    def _run_log(self, run: int) -> RunLog:
        if run not in self.run_logs:
            self.run_logs[run] = RunLog(run=run, start_time=time.time())
        return self.run_logs[run]

    def _write_run_json(self, run: int) -> None:
        path = self.log_dir / f"run_{run}.json"
        with open(path, "w") as f:
            json.dump(asdict(self.run_logs[run]), f, indent=2, default=str)
