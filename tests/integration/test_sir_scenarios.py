"""
End-to-end Store-Ignore-Recall runs through the full loop wiring.

Most scenarios use the recording network fixture so that the
exact callback traffic can be checked; the last one drives the torch
reference network.

Author: Chronoloop Project
Date: October 2026
"""

import pytest

from chronoloop import SimConfig, SIRSimulation
from chronoloop.core import Mode, TimeScale
from chronoloop.network import ReferenceNetwork
from chronoloop.training.logger import SimLogger


class ScriptedErrorSimulation(SIRSimulation):
    """Overrides trial errors: ``err_fn(epoch)`` gives each trial's TrlErr."""

    def __init__(self, config, err_fn, **kwargs):
        self.err_fn = err_fn
        super().__init__(config, **kwargs)

    def trial_stats(self, mode):
        super().trial_stats(mode)
        epoch = self.loops.loop(Mode.TRAIN, TimeScale.EPOCH).counter.cur
        self.stats.set_scalar("TrlErr", self.err_fn(epoch))


def make_config(run=None, task=None, learning=None):
    return SimConfig.from_dict({"run": run or {}, "task": task or {}, "learning": learning or {}})


class TestEpochTermination:
    """Test epoch counts under the zero-error stop rule."""

    def test_alternating_errors_run_all_epochs(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 3, "n_trials": 4, "n_zero": 2,
                                  "test_interval": -1, "seed": 1})
        net = recording_net
        sim = ScriptedErrorSimulation(config, lambda epoch: 1.0 if epoch % 2 == 0 else 0.0, net=net)

        assert sim.run() is True
        epochs = sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)
        assert len(epochs) == 3
        assert [row["NZero"] for row in epochs] == [0, 1, 0]
        assert [row["PctErr"] for row in epochs] == [1.0, 0.0, 1.0]
        assert sim.logs.table(Mode.TEST, TimeScale.TRIAL) == []
        assert net.n_cycles == 3 * 4 * 100
        assert net.n_learn == 3 * 4

    def test_zero_errors_stop_after_n_zero_epochs(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 10, "n_trials": 4, "n_zero": 2, "seed": 1})
        net = recording_net
        sim = ScriptedErrorSimulation(config, lambda epoch: 0.0, net=net)

        sim.run()
        epochs = sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)
        assert len(epochs) == 2
        assert epochs[-1]["FirstZero"] == 0
        assert epochs[-1]["LastZero"] == 1
        assert net.n_cycles == 2 * 4 * 100

        run_row = sim.logs.table(Mode.TRAIN, TimeScale.RUN)[-1]
        assert run_row["FirstZero"] == 0
        assert run_row["LastZero"] == 1

    def test_each_run_restarts_streak(self, recording_net):
        config = make_config(run={"n_runs": 2, "n_epochs": 10, "n_trials": 2, "n_zero": 2, "seed": 1})
        net = recording_net
        sim = ScriptedErrorSimulation(config, lambda epoch: 0.0, net=net)

        sim.run()
        assert net.n_cycles == 2 * 2 * 2 * 100
        assert sim.stats.read_int("Expt") == 1


class TestRewardTrace:
    """Test reward delivery on a fixed schedule."""

    def test_recall_every_third_trial_rewarded(self, recording_net):
        config = make_config(
            run={"n_runs": 1, "n_epochs": 1, "n_trials": 30, "seed": 2},
            task={"n_stim": 1, "random_schedule": False, "schedule": ["Store1", "Ignore", "Recall1"]},
            learning={"mod_learn_rate": True, "entropy_measure": "shannon"},
        )
        net = recording_net
        sim = SIRSimulation(config, net=net)
        sim.run()

        assert net.rewards() == [1.0] * 10
        assert len(net.lrate_calls) == 10 * 3
        for _, mult in net.lrate_calls:
            assert 0.25 <= mult <= 4.0
        assert sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)[0]["PctErr"] == 0.0

    def test_wrong_answers_not_rewarded(self, recording_net):
        config = make_config(
            run={"n_runs": 1, "n_epochs": 1, "n_trials": 6, "seed": 2},
            task={"n_stim": 2, "random_schedule": False, "schedule": ["Store1", "Recall1"], "seed": 0},
        )
        recording_net.answer = 5
        net = recording_net
        sim = SIRSimulation(config, net=net)
        sim.run()

        assert net.rewards() == [0.0] * 3
        epoch = sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)[0]
        assert epoch["PctErr"] == 1.0
        assert epoch["SumErr"] == 6.0

    def test_gains_pushed_to_matrix_layers(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 1, "n_trials": 1},
                             learning={"burst_da_gain": 0.5, "dip_da_gain": 1.5})
        net = recording_net
        SIRSimulation(config, net=net)
        assert net.gains["MatrixGo"] == (0.5, 1.5)
        assert net.gains["MatrixNoGo"] == (0.5, 1.5)


class TestPeriodicTesting:
    """Test Test sub-runs nested in training epochs."""

    def test_test_runs_at_interval(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 4, "n_trials": 4, "test_interval": 2,
                                  "n_test_trials": 3, "seed": 3})
        net = recording_net
        sim_logger = SimLogger(console_output=False, name="chronoloop.test.interval")
        sim = SIRSimulation(config, net=net, sim_logger=sim_logger)

        assert sim.run() is True
        assert net.n_cycles == (4 * 4 + 2 * 3) * 100
        assert net.n_learn == 4 * 4
        assert len(sim_logger.run_logs[0].tests) == 2
        assert len(sim_logger.run_logs[0].epochs) == 4
        assert len(sim.logs.table(Mode.TEST, TimeScale.TRIAL)) == 3
        assert sim.loops.mode is Mode.TRAIN

    def test_test_rows_report_train_run(self, recording_net):
        config = make_config(run={"n_runs": 2, "n_epochs": 1, "n_trials": 2, "test_interval": 1, "seed": 3})
        sim_logger = SimLogger(console_output=False, name="chronoloop.test.test_run")
        sim = SIRSimulation(config, net=recording_net, sim_logger=sim_logger)
        sim.run()

        for run in (0, 1):
            assert [row["Run"] for row in sim_logger.run_logs[run].tests] == [run]
        assert sim.logs.table(Mode.TEST, TimeScale.EPOCH)[-1]["Run"] == 1

    def test_test_epoch_reports_train_epoch(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 3, "n_trials": 2, "test_interval": 3, "seed": 3})
        sim = SIRSimulation(config, net=recording_net)
        sim.run()
        test_epochs = sim.logs.table(Mode.TEST, TimeScale.EPOCH)
        assert [row["Epoch"] for row in test_epochs] == [2]


class TestControl:
    """Test stepping and stopping the simulation."""

    def test_step_then_resume(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 2, "n_trials": 3, "seed": 4})
        net = recording_net
        sim = SIRSimulation(config, net=net)

        assert sim.step(TimeScale.TRIAL, n=2) is False
        assert net.n_learn == 2
        assert sim.run() is True
        assert net.n_learn == 2 * 3

    def test_stop_in_test_run_then_resume(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 2, "n_trials": 2, "test_interval": 1,
                                  "n_test_trials": 3, "seed": 4})
        net = recording_net
        sim_logger = SimLogger(console_output=False, name="chronoloop.test.resume")
        sim = SIRSimulation(config, net=net, sim_logger=sim_logger)
        stopped = {"done": False}

        def stop_once(ctx):
            if not stopped["done"]:
                stopped["done"] = True
                sim.stop()

        sim.loops.loop(Mode.TEST, TimeScale.TRIAL).on_end.add("Stop", stop_once)

        assert sim.run() is False
        assert net.n_cycles == 100
        assert sim.run() is True
        assert net.n_cycles == (2 * 2 + 2 * 3) * 100
        assert len(sim_logger.run_logs[0].tests) == 2

    def test_init_restarts_run(self, recording_net):
        config = make_config(run={"n_runs": 1, "n_epochs": 1, "n_trials": 2, "seed": 4})
        net = recording_net
        sim = SIRSimulation(config, net=net)
        sim.run()
        sim.init()
        assert sim.loops.counters_snapshot(Mode.TRAIN)["Trial"] == 0
        assert sim.run() is True
        assert net.n_cycles == 2 * 2 * 100


@pytest.mark.slow
class TestReferenceNetworkRun:
    """Smoke run on the torch reference network."""

    def test_small_run_completes(self):
        config = make_config(
            run={"n_runs": 1, "n_epochs": 2, "n_trials": 5, "n_cycles": 20,
                 "minus_phase_end": 15, "plus_phase_end": 19, "test_interval": 1, "seed": 5},
            learning={"mod_learn_rate": True, "entropy_measure": "population_sum"},
        )
        sim = SIRSimulation(config, param_sheet="LowLearn")

        assert isinstance(sim.net, ReferenceNetwork)
        assert sim.run() is True
        epochs = sim.logs.table(Mode.TRAIN, TimeScale.EPOCH)
        assert len(epochs) == 2
        for row in epochs:
            assert 0.0 <= row["PctErr"] <= 1.0
        assert sim.net.n_learn == 2 * 5
        assert sim.net.layer("MatrixGo").lrate_base == pytest.approx(0.01)
        for value in sim.net.learn_log[-1].values():
            assert value >= 0.0
