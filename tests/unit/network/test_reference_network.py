"""
Tests for the torch reference network engine.

Author: Chronoloop Project
Date: October 2026
"""

import pytest
import torch

from chronoloop.config import ParamRule, ParamSheet
from chronoloop.errors import ConfigurationError, LayerNotFoundError
from chronoloop.network import ReferenceNetwork


@pytest.fixture
def tiny_net():
    net = ReferenceNetwork(seed=1)
    net.add_layer("Input", (1, 4), role="input")
    net.add_layer("Hidden", (2, 3), role="hidden")
    net.add_layer("Output", (1, 4), role="target")
    net.connect("Input", "Hidden")
    net.bidir_connect("Hidden", "Output")
    net.build()
    net.init_weights()
    return net


class TestTopology:
    """Test layer and projection construction."""

    def test_layers_and_roles(self, tiny_net):
        assert tiny_net.layer("Hidden").n_units == 6
        assert tiny_net.layers_by_role("input", "target") == ["Input", "Output"]
        assert tiny_net.layer("Hidden").classes == ["hidden"]
        assert len(tiny_net.projections) == 3

    def test_unknown_layer(self, tiny_net):
        with pytest.raises(LayerNotFoundError):
            tiny_net.read_activation("Nope")
        with pytest.raises(KeyError):
            tiny_net.layer("Nope")

    def test_duplicate_layer_rejected(self):
        net = ReferenceNetwork(seed=0)
        net.add_layer("A", (2,), role="hidden")
        with pytest.raises(ConfigurationError):
            net.add_layer("A", (2,), role="hidden")

    def test_changes_after_build_rejected(self, tiny_net):
        with pytest.raises(ConfigurationError):
            tiny_net.add_layer("Late", (1,), role="hidden")
        with pytest.raises(ConfigurationError):
            tiny_net.connect("Input", "Output")
        with pytest.raises(ConfigurationError):
            tiny_net.build()

    def test_unknown_pattern_rejected(self):
        net = ReferenceNetwork(seed=0)
        net.add_layer("A", (2,), role="hidden")
        net.add_layer("B", (2,), role="hidden")
        with pytest.raises(ConfigurationError):
            net.connect("A", "B", pattern="sparse")

    def test_one_to_one_weights(self):
        net = ReferenceNetwork(seed=0)
        net.add_layer("A", (3,), role="input")
        net.add_layer("B", (3,), role="hidden")
        proj = net.connect("A", "B", pattern="one_to_one")
        net.build()
        net.init_weights()
        assert torch.equal(proj.weights, torch.eye(3))

    def test_use_before_build_rejected(self):
        net = ReferenceNetwork(seed=0)
        net.add_layer("A", (2,), role="hidden")
        with pytest.raises(ConfigurationError):
            net.step_one_processing_unit()


class TestSettling:
    """Test clamping, phases and readout."""

    def test_input_clamped_to_external(self, tiny_net):
        tiny_net.init_external()
        pattern = torch.tensor([0.0, 1.0, 0.0, 0.0])
        tiny_net.apply_external_input("Input", pattern)
        tiny_net.new_state()
        tiny_net.step_one_processing_unit()
        assert torch.equal(tiny_net.layer("Input").act, pattern)

    def test_input_pattern_size_checked(self, tiny_net):
        with pytest.raises(ConfigurationError):
            tiny_net.apply_external_input("Input", torch.ones(3))

    def test_target_clamped_only_in_plus_phase(self, tiny_net):
        target = torch.tensor([0.0, 0.0, 1.0, 0.0])
        tiny_net.apply_external_input("Output", target)
        tiny_net.new_state()
        for _ in range(5):
            tiny_net.step_one_processing_unit()
        tiny_net.end_phase(plus=False)
        assert tiny_net.plus_phase
        assert not torch.equal(tiny_net.layer("Output").act_m, target)

        tiny_net.step_one_processing_unit()
        assert torch.equal(tiny_net.layer("Output").act, target)
        assert tiny_net.read_arg_max_output_index("Output") == 2
        tiny_net.end_phase(plus=True)
        assert torch.equal(tiny_net.layer("Output").act_p, target)
        assert not tiny_net.plus_phase

    def test_running_average_tracks_activity(self, tiny_net):
        tiny_net.apply_external_input("Input", torch.ones(4))
        tiny_net.new_state()
        tiny_net.step_one_processing_unit()
        avg = tiny_net.read_activation("Input")
        assert torch.allclose(avg, torch.full((4,), 0.1))

    def test_custom_dynamics(self):
        net = ReferenceNetwork(seed=0, dynamics=lambda net_input, layer: torch.full_like(net_input, 0.7))
        net.add_layer("H", (3,), role="hidden")
        net.build()
        net.init_weights()
        net.step_one_processing_unit()
        assert torch.allclose(net.layer("H").act, torch.full((3,), 0.7))

    def test_output_sse_uses_minus_phase(self, tiny_net):
        tiny_net.apply_external_input("Output", torch.tensor([1.0, 0.0, 0.0, 0.0]))
        tiny_net.layer("Output").act_m = torch.tensor([0.0, 0.0, 0.0, 0.0])
        assert tiny_net.output_sse("Output") == pytest.approx(1.0)


class TestModulation:
    """Test learning rates, gains and param sheets."""

    def test_learning_rate_multiplier_recorded_by_learn(self, tiny_net):
        tiny_net.adjust_learning_rate("Hidden", 0.5)
        tiny_net.learn()
        assert tiny_net.n_learn == 1
        assert tiny_net.learn_log[-1]["Hidden"] == pytest.approx(0.02)
        assert tiny_net.learn_log[-1]["Output"] == pytest.approx(0.04)

    def test_read_learning_rate_is_effective_rate(self, tiny_net):
        tiny_net.adjust_learning_rate("Hidden", 0.25)
        assert tiny_net.read_learning_rate("Hidden") == pytest.approx(0.01)
        assert tiny_net.read_learning_rate("Output") == pytest.approx(0.04)

    def test_init_weights_resets_multipliers(self, tiny_net):
        tiny_net.adjust_learning_rate("Hidden", 3.0)
        tiny_net.init_weights()
        assert tiny_net.layer("Hidden").lrate_mult == 1.0

    def test_dopamine_gains(self, tiny_net):
        tiny_net.set_dopamine_gains("Hidden", 0.5, 2.0)
        layer = tiny_net.layer("Hidden")
        assert (layer.burst_da_gain, layer.dip_da_gain) == (0.5, 2.0)

    def test_apply_params(self, tiny_net):
        applied = tiny_net.apply_params(ParamSheet([
            ParamRule("Layer", {"gain": 2.0}),
            ParamRule(".hidden", {"lrate": 0.1}),
            ParamRule("#Output", {"thr": 0.4}),
        ]))
        assert tiny_net.layer("Input").params["gain"] == 2.0
        assert tiny_net.layer("Hidden").lrate == pytest.approx(0.1)
        assert tiny_net.layer("Output").params["thr"] == 0.4
        assert len(applied) == 5

    def test_same_seed_same_weights(self):
        def weights(seed):
            net = ReferenceNetwork(seed=seed)
            net.add_layer("A", (4,), role="input")
            net.add_layer("B", (4,), role="hidden")
            net.connect("A", "B")
            net.build()
            net.init_weights()
            return net.projections[0].weights

        assert torch.equal(weights(3), weights(3))
        assert not torch.equal(weights(3), weights(4))
