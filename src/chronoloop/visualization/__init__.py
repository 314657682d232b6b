"""Optional view collaborators."""

from chronoloop.visualization.live_plot import LivePlot

__all__ = ["LivePlot"]
