"""Statistics store and per-(mode, scale) log tables."""

from chronoloop.stats.logs import ERR_ITEM, LogItem, LogTables, configure_reset_log_below
from chronoloop.stats.stats import Stats

__all__ = [
    "ERR_ITEM",
    "LogItem",
    "LogTables",
    "Stats",
    "configure_reset_log_below",
]
