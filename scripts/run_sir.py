"""
Run the Store-Ignore-Recall simulation from the command line.

Usage:
    python scripts/run_sir.py --runs 1 --epochs 20 --test-interval 5
    python scripts/run_sir.py --mod-lrate --entropy population_sum --plot outputs/sir.png
"""

import argparse
import json
import logging

from chronoloop import SimConfig, SIRSimulation
from chronoloop.training.logger import LogLevel, SimLogger
from chronoloop.visualization import LivePlot


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Store-Ignore-Recall simulation")
    parser.add_argument("--config", type=str, default=None, help="JSON config file ({run, task, learning})")
    parser.add_argument("--runs", type=int, default=None, help="Number of runs")
    parser.add_argument("--epochs", type=int, default=None, help="Epochs per run")
    parser.add_argument("--trials", type=int, default=None, help="Trials per epoch")
    parser.add_argument("--nzero", type=int, default=None, help="Zero-error epochs before stopping")
    parser.add_argument("--test-interval", type=int, default=None, help="Test every N epochs (<=0 disables)")
    parser.add_argument("--seed", type=int, default=None, help="Base random seed")
    parser.add_argument("--burst", type=float, default=None, help="Dopamine burst gain")
    parser.add_argument("--dip", type=float, default=None, help="Dopamine dip gain")
    parser.add_argument("--mod-lrate", action="store_true", help="Modulate learning rate by entropy")
    parser.add_argument("--entropy", choices=["shannon", "population_sum"], default=None)
    parser.add_argument("--params", type=str, default=None, help="Extra param sheet layered over Base")
    parser.add_argument("--log-dir", type=str, default=None, help="Write logs and run JSON here")
    parser.add_argument("--plot", type=str, default=None, help="Save the train epoch plot to this path")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args()


def build_config(args: argparse.Namespace) -> SimConfig:
    data = {}
    if args.config:
        with open(args.config) as f:
            data = json.load(f)
    run = dict(data.get("run", {}))
    task = dict(data.get("task", {}))
    learning = dict(data.get("learning", {}))

    overrides = {
        (run, "n_runs"): args.runs,
        (run, "n_epochs"): args.epochs,
        (run, "n_trials"): args.trials,
        (run, "n_zero"): args.nzero,
        (run, "test_interval"): args.test_interval,
        (run, "seed"): args.seed,
        (learning, "burst_da_gain"): args.burst,
        (learning, "dip_da_gain"): args.dip,
        (learning, "entropy_measure"): args.entropy,
    }
    for (section, key), value in overrides.items():
        if value is not None:
            section[key] = value
    if args.mod_lrate:
        learning["mod_learn_rate"] = True
    if args.seed is not None:
        task.setdefault("seed", args.seed)

    return SimConfig.from_dict({"run": run, "task": task, "learning": learning})


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = build_config(args)
    sim_logger = SimLogger(
        log_dir=args.log_dir or "logs/sir",
        log_level=LogLevel.DEBUG if args.verbose else LogLevel.INFO,
        file_output=args.log_dir is not None,
    )
    plot = LivePlot(visible=args.plot is not None)
    sim = SIRSimulation(config, gui=plot, sim_logger=sim_logger, param_sheet=args.params)
    plot.logs = sim.logs

    sim.run()

    print(json.dumps(sim_logger.get_summary(), indent=2, default=str))
    if args.plot:
        plot.show(save_path=args.plot)


if __name__ == "__main__":
    main()
