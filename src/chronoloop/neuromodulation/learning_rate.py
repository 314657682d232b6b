"""
Reward computation and entropy-modulated learning rates.

At the minus/plus phase boundary of a recall trial the controller:

1. Reads the arg-max unit of the Output layer
2. Scores it against the environment's expected answer (binary reward)
3. Applies the reward pattern to the Rew input layer
4. Computes the entropy multiplier (fixed at 1.0 when modulation is off)
5. Scales the learning rate of each target layer by the multiplier
6. Records Reward, LRateMult and <layer>LRate in the stats

Store and Ignore trials skip all of the above, including the stats writes.

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence, Tuple

from chronoloop.core.protocols import NetworkProtocol
from chronoloop.neuromodulation.entropy import EntropyMeasure, make_entropy_measure

if TYPE_CHECKING:
    from chronoloop.config.sim_config import LearningRateConfig
    from chronoloop.tasks.store_ignore_recall import SIREnv

logger = logging.getLogger(__name__)

OUTPUT_LAYER = "Output"
REWARD_LAYER = "Rew"
MATRIX_LAYERS: Tuple[str, ...] = ("MatrixGo", "MatrixNoGo")


@dataclass
class RewardEntropyState:
    """Dopamine gains and the most recent learning-rate multiplier.

    The multiplier persists between recall events; it only changes when a
    recall trial is scored.
    """

    burst_da_gain: float = 1.0
    dip_da_gain: float = 1.0
    mod_learn_rate: bool = False
    learning_rate_multiplier: float = 1.0
    last_reward: Optional[float] = None


class LearningRateController:
    """Applies reward and entropy-scaled learning rates to the network.

    Args:
        target_layers: Layers whose learning rate receives the multiplier
        measure: Entropy strategy (Shannon on GPiThal by default)
        mod_learn_rate: Use the entropy multiplier; otherwise it is 1.0
        burst_da_gain: Dopamine burst gain for the Matrix layers
        dip_da_gain: Dopamine dip gain for the Matrix layers
    """

    def __init__(
        self,
        target_layers: Sequence[str] = ("MatrixGo", "MatrixNoGo", "RWPred"),
        measure: Optional[EntropyMeasure] = None,
        mod_learn_rate: bool = False,
        burst_da_gain: float = 1.0,
        dip_da_gain: float = 1.0,
    ):
        self.target_layers = tuple(target_layers)
        self.measure = measure if measure is not None else make_entropy_measure("shannon")
        self.state = RewardEntropyState(
            burst_da_gain=burst_da_gain,
            dip_da_gain=dip_da_gain,
            mod_learn_rate=mod_learn_rate,
        )

    @classmethod
    def from_config(cls, config: "LearningRateConfig") -> "LearningRateController":
        return cls(
            target_layers=config.target_layers,
            measure=make_entropy_measure(config.entropy_measure, config.min_multiplier, config.max_multiplier),
            mod_learn_rate=config.mod_learn_rate,
            burst_da_gain=config.burst_da_gain,
            dip_da_gain=config.dip_da_gain,
        )

    def compute_multiplier(self, net: NetworkProtocol) -> float:
        if not self.state.mod_learn_rate:
            return 1.0
        return self.measure.compute(net)

    def apply_reward(self, ctx: Any, env: Optional["SIREnv"] = None) -> Optional[float]:
        """Score the current trial and modulate learning rates.

        Args:
            ctx: Simulation context (uses ``net`` and ``stats``)
            env: Environment to score; defaults to the active mode's

        Returns:
            The reward, or None on non-recall trials
        """
        env = env if env is not None else ctx.env()
        if not env.is_recall:
            return None

        net = ctx.net
        answer = net.read_arg_max_output_index(OUTPUT_LAYER)
        env.set_reward(answer)
        net.apply_external_input(REWARD_LAYER, env.state(REWARD_LAYER))

        mult = self.compute_multiplier(net)
        self.state.learning_rate_multiplier = mult
        self.state.last_reward = env.last_reward
        for layer in self.target_layers:
            net.adjust_learning_rate(layer, mult)

        stats = ctx.stats
        stats.set_scalar("Reward", env.last_reward)
        stats.set_scalar("LRateMult", mult)
        for layer in self.target_layers:
            stats.set_scalar(f"{layer}LRate", net.read_learning_rate(layer))

        logger.debug(f"{env.trial_name}: reward {env.last_reward}, lrate mult {mult:.3f}")
        return env.last_reward

    def apply_gains(self, net: NetworkProtocol, layers: Sequence[str] = MATRIX_LAYERS) -> None:
        """Push the burst/dip dopamine gains to the Matrix layers."""
        for layer in layers:
            net.set_dopamine_gains(layer, self.state.burst_da_gain, self.state.dip_da_gain)
