"""
CHRONOLOOP - Hierarchical control loops for trial-based neural simulations

Nested Run / Epoch / Trial / Cycle loops with named, ordered callbacks,
synchronous Train/Test mode switching and cooperative cancellation, plus a
Store-Ignore-Recall simulation built on top.

Quick Start:
============

    from chronoloop import SIRSimulation, SimConfig

    config = SimConfig.from_dict({"run": {"n_runs": 1, "n_epochs": 10}})
    sim = SIRSimulation(config)
    sim.run()

Building your own loops:
========================

    from chronoloop import Mode, Stacks, TimeScale

    loops = Stacks()
    loops.add_stack(Mode.TRAIN, run=1, epoch=5, trial=10, cycle=100)
    loops.loop(Mode.TRAIN, TimeScale.TRIAL).on_start.add("ApplyInputs", apply_inputs)
    loops.run(Mode.TRAIN, ctx)
"""

__version__ = "0.1.0"

from chronoloop.config import LearningRateConfig, RunConfig, SIRTaskConfig, SimConfig
from chronoloop.core import (
    CallbackRegistry,
    Counter,
    Loop,
    LoopEvent,
    Mode,
    SimContext,
    Stack,
    Stacks,
    TimeScale,
)
from chronoloop.errors import (
    ChronoloopError,
    ConfigurationError,
    CounterOverflowError,
    LayerNotFoundError,
    MissingStatError,
    ModeNestingError,
)
from chronoloop.neuromodulation import LearningRateController, PopulationSumEntropy, ShannonEntropy
from chronoloop.network import ReferenceNetwork
from chronoloop.stats import LogTables, Stats
from chronoloop.tasks import Action, CyclicSchedule, RandomSchedule, SIREnv
from chronoloop.training import SIRSimulation, SimLogger

__all__ = [
    "__version__",
    # Config
    "LearningRateConfig",
    "RunConfig",
    "SIRTaskConfig",
    "SimConfig",
    # Core
    "CallbackRegistry",
    "Counter",
    "Loop",
    "LoopEvent",
    "Mode",
    "SimContext",
    "Stack",
    "Stacks",
    "TimeScale",
    # Errors
    "ChronoloopError",
    "ConfigurationError",
    "CounterOverflowError",
    "LayerNotFoundError",
    "MissingStatError",
    "ModeNestingError",
    # Collaborators
    "Action",
    "CyclicSchedule",
    "LearningRateController",
    "LogTables",
    "PopulationSumEntropy",
    "RandomSchedule",
    "ReferenceNetwork",
    "SIREnv",
    "SIRSimulation",
    "ShannonEntropy",
    "SimLogger",
    "Stats",
]
