"""
Tests for selector-based parameter sheets.

Author: Chronoloop Project
Date: October 2026
"""

import pytest

from chronoloop.config import BASE_SHEET, ParamRule, ParamSets, ParamSheet
from chronoloop.errors import ConfigurationError


class Target:
    type_name = "Layer"

    def __init__(self, name, classes=()):
        self.name = name
        self.classes = list(classes)
        self.params = {}

    def set_param(self, key, value):
        self.params[key] = value


@pytest.fixture
def targets():
    return [Target("PFCmnt", ["pfc"]), Target("MatrixGo", ["matrix"]), Target("Output", ["target"])]


class TestParamRule:
    """Test selector matching."""

    def test_selectors(self, targets):
        pfc, matrix, output = targets
        assert ParamRule("#Output", {}).matches(output)
        assert not ParamRule("#Output", {}).matches(pfc)
        assert ParamRule(".matrix", {}).matches(matrix)
        assert ParamRule("Layer", {}).matches(pfc)
        assert not ParamRule("Prjn", {}).matches(pfc)

    @pytest.mark.parametrize("sel", ["", "#", "."])
    def test_empty_selector_rejected(self, sel):
        with pytest.raises(ConfigurationError):
            ParamRule(sel, {})


class TestParamSheet:
    """Test ordered application."""

    def test_later_rules_override(self, targets):
        sheet = ParamSheet([
            ParamRule("Layer", {"gain": 4.0}),
            ParamRule(".pfc", {"gain": 6.0}),
        ])
        applied = sheet.apply(targets)
        assert targets[0].params["gain"] == 6.0
        assert targets[1].params["gain"] == 4.0
        assert ("PFCmnt", "gain", 6.0) in applied
        assert len(applied) == 4


class TestParamSets:
    """Test Base layering and sheet lookup."""

    def test_base_required(self):
        with pytest.raises(ConfigurationError):
            ParamSets({"LowLearn": ParamSheet()})

    def test_extra_sheet_layered_over_base(self, targets):
        sets = ParamSets({
            BASE_SHEET: ParamSheet([ParamRule(".matrix", {"lrate": 0.04})]),
            "LowLearn": ParamSheet([ParamRule(".matrix", {"lrate": 0.01})]),
        })
        sets.sheet("LowLearn").apply(targets)
        assert targets[1].params["lrate"] == 0.01

        assert len(sets.sheet().rules) == 1
        assert len(sets.sheet(BASE_SHEET).rules) == 1

    def test_unknown_sheet_rejected(self):
        sets = ParamSets({BASE_SHEET: ParamSheet()})
        with pytest.raises(ConfigurationError):
            sets.sheet("Missing")
