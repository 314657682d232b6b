"""
Store-Ignore-Recall simulation.

Assembles the loop stacks, environments, network, statistics, reward
controller and optional view into a runnable experiment.

Loop structure:
===============
    Train: Run(n_runs) / Epoch(n_epochs) / Trial(n_trials) / Cycle(n_cycles)
    Test:  Run(1) / Epoch(1) / Trial(test_trials) / Cycle(n_cycles)

Registrations (per tick, in order):
    Train Run     on_start  NewRun, ResetLogBelow
                  on_end    RunDone, Log, RunStats
    Train Epoch   on_start  TestAtInterval, ResetLogBelow
                  is_done   NZeroStop
                  on_end    Log, UpdateView
    Trial         on_start  NewState, ApplyInputs, ResetLogBelow
                  on_end    PlusPhase, Learn (Train only), Log, UpdateView
    Cycle         main      Cycle
                  event 75  RecordAnswer, ApplyReward (Train only), MinusPhase:End
    Test Epoch    on_end    LogTestErrors, Log, UpdateView

Usage:
======
    config = SimConfig.from_dict({"run": {"n_runs": 1, "n_epochs": 20, "test_interval": 5}})
    sim = SIRSimulation(config)
    sim.run()
    epochs = sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import torch

from chronoloop.config.param_sets import ParamRule, ParamSets, ParamSheet
from chronoloop.config.sim_config import SimConfig
from chronoloop.core.context import SimContext
from chronoloop.core.phases import (
    MINUS_PHASE_END,
    configure_cycle_and_learn,
    configure_standard_phases,
    configure_view_updates,
)
from chronoloop.core.protocols import GuiProtocol, NetworkProtocol
from chronoloop.core.stacks import Stacks
from chronoloop.core.time_scales import Mode, TimeScale
from chronoloop.network.reference import ReferenceNetwork
from chronoloop.neuromodulation.learning_rate import LearningRateController
from chronoloop.stats.logs import LogTables, configure_reset_log_below
from chronoloop.stats.stats import Stats
from chronoloop.tasks.actions import Action
from chronoloop.tasks.store_ignore_recall import SIREnv, nzero_stop_predicate
from chronoloop.training.logger import SimLogger
from chronoloop.utils.rng import RunSeeds

logger = logging.getLogger(__name__)

TRIAL_FLOAT_STATS = ("SSE", "AvgSSE", "DA", "AbsDA", "RewPred")
VIEW_KEYS = ("Run", "Epoch", "Trial", "TrialName", "Cycle", "SSE", "TrlErr")


def default_param_sets() -> ParamSets:
    """Base settling parameters for the reference network."""
    return ParamSets({
        "Base": ParamSheet([
            ParamRule("Layer", {"gain": 4.0, "thr": 0.5}, desc="all layers"),
            ParamRule(".pfc", {"gain": 6.0}, desc="sharper maintenance"),
            ParamRule(".matrix", {"lrate": 0.04}),
            ParamRule("#Output", {"thr": 0.4}),
        ]),
        "LowLearn": ParamSheet([ParamRule(".matrix", {"lrate": 0.01})]),
    })


def configure_sir_network(net: NetworkProtocol, n_stim: int = 4) -> None:
    """Add the SIR layer set and projections, then build the network."""
    net.add_layer("Rew", (1, 1), "input")
    net.add_layer("RWPred", (1, 1), "rw")
    net.add_layer("SNc", (1, 1), "da")
    net.add_layer("Input", (1, n_stim), "input")
    net.add_layer("CtrlInput", (1, len(Action)), "input")
    net.add_layer("Output", (1, n_stim), "target")
    net.add_layer("Hidden", (7, 7), "hidden")
    net.add_layer("MatrixGo", (4, 4), "matrix")
    net.add_layer("MatrixNoGo", (4, 4), "matrix")
    net.add_layer("GPeNoGo", (1, 4), "gp")
    net.add_layer("GPiThal", (1, 4), "gp")
    net.add_layer("PFCMnt", (2, n_stim), "pfc")
    net.add_layer("PFCMntD", (2, n_stim), "pfc")
    net.add_layer("PFCOut", (2, n_stim), "pfc")
    net.add_layer("PFCOutD", (2, n_stim), "pfc")

    for src in ("CtrlInput", "PFCMntD", "PFCOutD"):
        net.connect(src, "RWPred", "full", "rw")
    net.connect("Rew", "SNc", "one_to_one", "forward")
    net.connect("RWPred", "SNc", "one_to_one", "forward")
    net.connect("CtrlInput", "MatrixGo", "one_to_one", "matrix")
    net.connect("CtrlInput", "MatrixNoGo", "one_to_one", "matrix")
    net.connect("MatrixNoGo", "GPeNoGo", "one_to_one", "forward")
    net.connect("MatrixGo", "GPiThal", "one_to_one", "forward")
    net.connect("GPeNoGo", "GPiThal", "one_to_one", "forward")
    net.connect("GPiThal", "PFCMnt", "one_to_one", "forward")
    net.connect("GPiThal", "PFCOut", "one_to_one", "forward")
    net.connect("Input", "PFCMnt", "one_to_one", "forward")
    net.connect("PFCMnt", "PFCMntD", "one_to_one", "forward")
    net.connect("PFCMntD", "PFCOut", "one_to_one", "forward")
    net.connect("PFCOut", "PFCOutD", "one_to_one", "forward")
    net.connect("Input", "Hidden", "full", "forward")
    net.connect("CtrlInput", "Hidden", "full", "forward")
    net.connect("Hidden", "Output", "full", "forward")
    net.connect("Output", "Hidden", "full", "back")
    net.connect("PFCOutD", "Hidden", "full", "forward")
    net.connect("PFCOutD", "Output", "full", "forward")
    net.connect("Input", "Output", "full", "forward")
    net.build()


class SIRSimulation:
    """Store-Ignore-Recall experiment driven by the loop stacks.

    Args:
        config: Simulation configuration (validated on construction)
        net: Network collaborator; defaults to a :class:`ReferenceNetwork`
        gui: Optional view collaborator
        sim_logger: Optional run logger
        param_sets: Param sheets applied to a reference network
        param_sheet: Extra sheet layered over "Base"
    """

    def __init__(
        self,
        config: Optional[SimConfig] = None,
        net: Optional[NetworkProtocol] = None,
        gui: Optional[GuiProtocol] = None,
        sim_logger: Optional[SimLogger] = None,
        param_sets: Optional[ParamSets] = None,
        param_sheet: Optional[str] = None,
    ):
        self.config = config if config is not None else SimConfig()
        self.config.validate()

        self.seeds = RunSeeds(base_seed=self.config.run.seed)
        self.net: NetworkProtocol = net if net is not None else ReferenceNetwork(seed=self.seeds.seed_for(0))
        self.stats = Stats()
        self.logs = LogTables()
        self.lr_control = LearningRateController.from_config(self.config.learning)
        self.gui = gui
        self.sim_logger = sim_logger
        self.param_sets = param_sets if param_sets is not None else default_param_sets()
        self.param_sheet = param_sheet

        self.loops = Stacks()
        self.envs: Dict[Mode, SIREnv] = {}
        self.answers: Dict[Mode, int] = {Mode.TRAIN: -1, Mode.TEST: -1}
        self.ctx = SimContext(
            loops=self.loops,
            net=self.net,
            stats=self.stats,
            logs=self.logs,
            envs=self.envs,
            lr_control=self.lr_control,
            gui=gui,
        )

        self.config_env()
        self.config_net()
        self.config_logs()
        self.config_loops()
        self.init()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def config_env(self) -> None:
        task = self.config.task
        self.envs[Mode.TRAIN] = SIREnv.from_config(str(Mode.TRAIN), task)
        self.envs[Mode.TEST] = SIREnv.from_config(str(Mode.TEST), task, seed_offset=1)

    def config_net(self) -> None:
        configure_sir_network(self.net, self.config.task.n_stim)
        self.apply_params()
        self.net.init_weights()

    def apply_params(self) -> None:
        """Apply counter maxima, param sheets and dopamine gains."""
        if self.loops.stacks:
            run = self.config.run
            self.loops.stack(Mode.TRAIN).set_max(TimeScale.RUN, run.n_runs)
            self.loops.stack(Mode.TRAIN).set_max(TimeScale.EPOCH, run.n_epochs)
        if isinstance(self.net, ReferenceNetwork):
            self.net.apply_params(self.param_sets.sheet(self.param_sheet))
        self.lr_control.apply_gains(self.net)

    def config_logs(self) -> None:
        logs = self.logs
        logs.add_string_item("RunName", (TimeScale.RUN, TimeScale.EPOCH, TimeScale.TRIAL))
        logs.add_string_item("TrialName", (TimeScale.TRIAL,))
        logs.add_item("Expt", (TimeScale.RUN, TimeScale.EPOCH, TimeScale.TRIAL), agg=False)
        for name in TRIAL_FLOAT_STATS:
            logs.add_item(name)
        logs.add_err_items()
        for layer in self.lr_control.target_layers:
            logs.add_item(f"{layer}LRate")

    def config_loops(self) -> None:
        ls = self.loops
        run = self.config.run
        ls.add_stack(Mode.TRAIN, run=run.n_runs, epoch=run.n_epochs, trial=run.n_trials, cycle=run.n_cycles)
        ls.add_stack(Mode.TEST, run=1, epoch=1, trial=run.test_trials, cycle=run.n_cycles)

        configure_standard_phases(ls, self.net, run.minus_phase_end, run.plus_phase_end)
        configure_cycle_and_learn(ls, self.net)

        ls.stack(Mode.TRAIN).on_init.add("Init", lambda ctx: self.init_state())

        for mode, stack in ls.stacks.items():
            stack.loop(TimeScale.TRIAL).on_start.add("ApplyInputs", lambda ctx: self.apply_inputs(ctx.mode))
            minus_end = stack.loop(TimeScale.CYCLE).event_by_name(MINUS_PHASE_END)
            minus_end.on_event.insert_before(
                MINUS_PHASE_END, "RecordAnswer", lambda ctx, m=mode: self.record_answer(m)
            )

        ls.loop(Mode.TRAIN, TimeScale.RUN).on_start.add("NewRun", lambda ctx: self.new_run())
        ls.loop(Mode.TRAIN, TimeScale.RUN).on_end.add("RunDone", lambda ctx: self.run_done())

        ls.loop(Mode.TRAIN, TimeScale.CYCLE).event_by_name(MINUS_PHASE_END).on_event.insert_before(
            MINUS_PHASE_END, "ApplyReward", lambda ctx: self.apply_reward(train=True)
        )

        train_epoch = ls.loop(Mode.TRAIN, TimeScale.EPOCH)
        train_epoch.is_done.add("NZeroStop", nzero_stop_predicate(run.n_zero))
        train_epoch.on_start.add("TestAtInterval", lambda ctx: self.test_at_interval())

        ls.loop(Mode.TEST, TimeScale.EPOCH).on_end.add("LogTestErrors", lambda ctx: self.logs.log_test_errors())
        ls.add_on_end_to_all("Log", lambda ctx, mode, scale: self.log(mode, scale))
        configure_reset_log_below(ls, self.logs)
        ls.loop(Mode.TRAIN, TimeScale.RUN).on_end.add("RunStats", lambda ctx: self.run_stats())

        configure_view_updates(ls, self.gui, lambda ctx, scale: self.net_view_counters(scale))

    # ------------------------------------------------------------------
    # Init
    # ------------------------------------------------------------------

    def init(self) -> None:
        """Restart from run 0: counters, seeds, params and a fresh run."""
        self.loops.reset_counters()
        self.loops.init(Mode.TRAIN, self.ctx)

    def init_state(self) -> None:
        self.stats.set_string("RunName", self.run_name)
        if not self.stats.has("Expt"):
            self.stats.set_int("Expt", 0)
        self.seeds.set(0)
        self.logs.reset_all()
        self.apply_params()
        self.new_run()

    @property
    def run_name(self) -> str:
        learning = self.config.learning
        return f"burst: {learning.burst_da_gain:g}, dip: {learning.dip_da_gain:g}"

    def new_run(self) -> None:
        """Initialize a new run: seeds, environments, weights, stats and logs."""
        run = self.loops.loop(Mode.TRAIN, TimeScale.RUN).counter.cur
        seed = self.seeds.set(run)
        if isinstance(self.net, ReferenceNetwork):
            self.net.set_seed(seed)
        for env in self.envs.values():
            env.init(run)
        self.net.init_weights()
        self.init_stats()
        self.stat_counters(Mode.TRAIN)
        self.logs.reset(Mode.TRAIN, TimeScale.EPOCH)
        self.logs.reset(Mode.TEST, TimeScale.EPOCH)
        if self.sim_logger is not None:
            self.sim_logger.log_run_start(run, self.config.to_dict())

    def init_stats(self) -> None:
        for name in TRIAL_FLOAT_STATS:
            self.stats.set_scalar(name, 0.0)
        self.stats.set_scalar("Reward", 0.0)
        self.stats.set_scalar("LRateMult", 1.0)
        for layer in self.lr_control.target_layers:
            self.stats.set_scalar(f"{layer}LRate", 0.0)
        self.stats.set_string("TrialName", "")
        self.logs.init_err_stats(self.stats)

    # ------------------------------------------------------------------
    # Trial callbacks
    # ------------------------------------------------------------------

    def apply_inputs(self, mode: Mode) -> None:
        """Step the mode's environment and clamp its patterns onto the network."""
        env = self.envs[mode]
        env.step()
        self.net.init_external()
        self.stats.set_string("TrialName", env.trial_name)
        for name in self.net.layers_by_role("input", "target"):
            if name == "Rew":
                continue
            pattern = env.state(name)
            if pattern is not None:
                self.net.apply_external_input(name, pattern)

    def record_answer(self, mode: Mode) -> None:
        self.answers[mode] = self.net.read_arg_max_output_index("Output")

    def apply_reward(self, train: bool = True) -> Optional[float]:
        env = self.envs[Mode.TRAIN if train else Mode.TEST]
        return self.lr_control.apply_reward(self.ctx, env)

    def trial_stats(self, mode: Mode) -> None:
        """Score the minus-phase answer against the trial's target."""
        env = self.envs[mode]
        answer = self.answers[mode]
        target = env.target_index
        n_out = self.config.task.n_stim

        guess = torch.zeros(n_out)
        if 0 <= answer < n_out:
            guess[answer] = 1.0
        sse = float(((guess - env.state("Output")) ** 2).sum().item())
        self.stats.set_scalar("SSE", sse)
        self.stats.set_scalar("AvgSSE", sse / n_out)
        self.stats.set_scalar("TrlErr", 0.0 if answer == target else 1.0)

        da = float(self.net.read_activation("SNc").reshape(-1)[0].item())
        self.stats.set_scalar("DA", da)
        self.stats.set_scalar("AbsDA", abs(da))
        self.stats.set_scalar("RewPred", float(self.net.read_activation("RWPred").reshape(-1)[0].item()))

    def stat_counters(self, mode: Mode) -> None:
        """Write counters of ``mode`` to stats; Run and Epoch always report the Train counters."""
        self.loops.stack(mode).counters_to_stats(self.stats)
        for scale in (TimeScale.RUN, TimeScale.EPOCH):
            self.stats.set_int(scale.label, self.loops.loop(Mode.TRAIN, scale).counter.cur)

    def net_view_counters(self, scale: TimeScale) -> Mapping[str, Any]:
        mode = self.loops.mode
        if scale is TimeScale.TRIAL:
            self.trial_stats(mode)
        self.stat_counters(mode)
        snapshot: Dict[str, Any] = dict(self.loops.counters_snapshot(mode))
        snapshot["Mode"] = str(mode)
        snapshot["Text"] = self.stats.print_keys(VIEW_KEYS)
        return snapshot

    # ------------------------------------------------------------------
    # Epoch / Run callbacks
    # ------------------------------------------------------------------

    def test_at_interval(self) -> None:
        interval = self.config.run.test_interval
        epoch = self.loops.loop(Mode.TRAIN, TimeScale.EPOCH).counter.cur
        # +1 so testing never happens before the first epoch of training
        if interval > 0 and (epoch + 1) % interval == 0:
            self.test_all()

    def test_all(self) -> bool:
        """Run the full Test stack from the beginning."""
        self.envs[Mode.TEST].init(0)
        return self.loops.reset_and_run(Mode.TEST, self.ctx)

    def log(self, mode: Mode, scale: TimeScale) -> None:
        if scale is TimeScale.CYCLE:
            return
        if scale is TimeScale.TRIAL:
            self.trial_stats(mode)
        self.stat_counters(mode)
        row = self.logs.commit_row(mode, scale, self.stats)
        if row is None or self.sim_logger is None or scale is not TimeScale.EPOCH:
            return
        run = self.loops.loop(Mode.TRAIN, TimeScale.RUN).counter.cur
        if mode is Mode.TRAIN:
            self.sim_logger.log_epoch(run, row)
        else:
            self.sim_logger.log_test(run, row, len(self.logs.test_errors))

    def run_done(self) -> None:
        if self.stats.read_int("Run") >= self.config.run.n_runs - 1:
            self.stats.set_int("Expt", self.stats.read_int("Expt") + 1)

    def run_stats(self) -> None:
        row = self.logs.run_stats("PctCor", "FirstZero", "LastZero")
        if self.sim_logger is not None:
            run = self.loops.loop(Mode.TRAIN, TimeScale.RUN).counter.cur
            self.sim_logger.log_run_end(run, {k: row.get(k) for k in ("PctCor", "FirstZero", "LastZero")})

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def run(self) -> bool:
        """Run (or resume) training; True when every run has completed."""
        return self.loops.run(Mode.TRAIN, self.ctx)

    def stop(self) -> None:
        self.loops.stop()

    def step(self, scale: TimeScale, n: int = 1, mode: Mode = Mode.TRAIN) -> bool:
        return self.loops.step(mode, scale, self.ctx, n)
