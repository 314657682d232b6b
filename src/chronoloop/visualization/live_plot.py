"""
Live plot view for simulations.

Optional GUI collaborator: receives counter snapshots at Trial and Epoch
ends and plots epoch-level log items. It never writes simulation state.
When hidden, ``is_visible()`` is False and the loop wiring skips refreshes
entirely.

Usage:
    plot = LivePlot(logs, items=("PctErr", "AbsDA", "RewPred"))
    sim = SIRSimulation(config, gui=plot)
    sim.run()
    plot.show(save_path="outputs/sir_epochs.png")

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Mapping, Optional, Sequence

import matplotlib.pyplot as plt

from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.stats.logs import LogTables

ALPHA_GRID = 0.3


class LivePlot:
    """Counter text plus per-epoch plots of selected log items."""

    def __init__(
        self,
        logs: Optional[LogTables] = None,
        items: Sequence[str] = ("PctErr", "AbsDA", "RewPred"),
        mode: Mode = Mode.TRAIN,
        history_size: int = 1000,
        visible: bool = True,
        figsize: tuple = (10, 6),
    ):
        self.logs = logs
        self.items = tuple(items)
        self.mode = mode
        self.visible = visible
        self.figsize = figsize
        self.history: Deque[Dict[str, Any]] = deque(maxlen=history_size)
        self.text = ""
        self.n_refresh = 0

    def is_visible(self) -> bool:
        return self.visible

    def refresh(self, counters: Mapping[str, Any]) -> None:
        snapshot = dict(counters)
        self.history.append(snapshot)
        self.text = "\t".join(f"{k}: {v}" for k, v in snapshot.items())
        self.n_refresh += 1

    def show(self, save_path: Optional[str] = None) -> None:
        """Plot the epoch table of ``mode``; save instead of showing if a path is given."""
        fig, ax = plt.subplots(figsize=self.figsize)
        rows = self.logs.table(self.mode, TimeScale.EPOCH) if self.logs is not None else []
        if not rows:
            ax.text(0.5, 0.5, 'No data yet', ha='center', va='center')
            ax.axis('off')
        else:
            epochs = list(range(len(rows)))
            for item in self.items:
                values = [row.get(item, float("nan")) for row in rows]
                ax.plot(epochs, values, linewidth=2, marker='o', markersize=3, label=item, alpha=0.8)
            ax.set_xlabel('Epoch')
            ax.set_title(f'{self.mode} Epoch Plot', fontweight='bold')
            ax.legend(loc='upper right', fontsize=9)
            ax.grid(True, alpha=ALPHA_GRID)

        if self.text:
            fig.suptitle(self.text, fontsize=9)
        fig.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            plt.close(fig)
        else:
            plt.show()
