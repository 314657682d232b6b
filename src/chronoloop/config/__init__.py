"""Configuration: typed run/task/learning configs, validation and param sheets."""

from chronoloop.config.param_sets import BASE_SHEET, ParamRule, ParamSets, ParamSheet
from chronoloop.config.sim_config import LearningRateConfig, RunConfig, SIRTaskConfig, SimConfig
from chronoloop.config.validation import ConfigValidationError, ValidatedConfig, ValidatorRegistry

__all__ = [
    "BASE_SHEET",
    "ConfigValidationError",
    "LearningRateConfig",
    "ParamRule",
    "ParamSets",
    "ParamSheet",
    "RunConfig",
    "SIRTaskConfig",
    "SimConfig",
    "ValidatedConfig",
    "ValidatorRegistry",
]
