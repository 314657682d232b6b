"""Simulation assembly and run logging."""

from chronoloop.training.logger import LogLevel, RunLog, SimLogger
from chronoloop.training.sir_simulation import SIRSimulation, configure_sir_network, default_param_sets

__all__ = [
    "LogLevel",
    "RunLog",
    "SIRSimulation",
    "SimLogger",
    "configure_sir_network",
    "default_param_sets",
]
