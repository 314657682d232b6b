"""
Custom exception classes and validation utilities for Chronoloop.

This module provides:
1. Hierarchical exception classes for the failure categories of a run
2. Small validation helpers shared by counters, loops and configs
3. Consistent error message formatting

Exception Hierarchy:
====================
ChronoloopError (base)
├── ConfigurationError - Invalid setup (counters, callbacks, anchors, configs)
├── CounterOverflowError - Counter advanced past its last tick
├── ModeNestingError - Mode switch nested deeper than one level
├── LayerNotFoundError - Network lookup of an unknown layer
└── MissingStatError - Statistics key read before it was set

Usage Examples:
===============
    # Reject a duplicate callback name
    raise ConfigurationError("OnStart already has a callback named 'Log'")

    # Validate a counter maximum
    validate_counter_max(n_epochs, name="n_epochs")

Design Philosophy:
==================
- Configuration errors surface before a run starts
- Lookup errors (layers, stats) are fatal, never defaulted
- Cooperative cancellation is not an error and never raises

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

from typing import Optional


# =============================================================================
# Exception Hierarchy
# =============================================================================

class ChronoloopError(Exception):
    """Base exception for all Chronoloop-specific errors.

    All custom exceptions in Chronoloop inherit from this class, enabling
    code to catch Chronoloop errors specifically:

        try:
            sim.run()
        except ChronoloopError as e:
            logger.error(f"Simulation aborted: {e}")
    """


class ConfigurationError(ChronoloopError):
    """Invalid configuration of the loop hierarchy or a component.

    Raised at setup time: invalid counter maxima, duplicate callback names,
    missing insertion anchors, registration after a run has begun, or config
    values outside their valid range.

    Example:
        raise ConfigurationError("Counter max must be >= 0, got -3")
    """


class CounterOverflowError(ChronoloopError):
    """Counter advanced when already at its last tick.

    Callers must check for termination (``Counter.is_last()``) before calling
    ``Counter.advance()``.
    """

    def __init__(self, name: str, cur: int, max_value: Optional[int]):
        super().__init__(
            f"Counter '{name}' cannot advance past its last tick "
            f"(cur={cur}, max={max_value}); reset it first"
        )
        self.counter_name = name
        self.cur = cur
        self.max = max_value


class ModeNestingError(ChronoloopError):
    """Mode switch requested beyond the supported nesting depth.

    Only one nested mode run is supported (e.g. Test inside Train). The
    counters of the interrupted mode are not saved beyond the single active
    frame, so deeper nesting is rejected.
    """


class LayerNotFoundError(ChronoloopError, KeyError):
    """Network lookup for a layer name that does not exist.

    Treated as a fatal topology/configuration error: no retry is attempted.
    """

    def __init__(self, layer_name: str, available: Optional[list] = None):
        msg = f"No layer named '{layer_name}' in network"
        if available:
            msg += f" (available: {', '.join(available)})"
        super().__init__(msg)
        self.layer_name = layer_name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class MissingStatError(ChronoloopError, KeyError):
    """Statistics key read before it was ever set.

    All keys read by predicates or callbacks must be initialized when a run
    starts (see ``SIRSimulation.init_stats``).
    """

    def __init__(self, key: str):
        super().__init__(f"Statistic '{key}' was read before being set; initialize it at run start")
        self.key = key

    def __str__(self) -> str:
        return str(self.args[0])


# =============================================================================
# Validation Utilities
# =============================================================================

def validate_counter_max(value: Optional[int], name: str = "max", allow_unbounded: bool = True) -> None:
    """Validate a counter maximum.

    Args:
        value: Maximum tick count; 0 means a single-shot scope, None means unbounded
        name: Name for error messages
        allow_unbounded: Whether None is acceptable

    Raises:
        ConfigurationError: If value is negative, non-integer, or None when not allowed
    """
    if value is None:
        if not allow_unbounded:
            raise ConfigurationError(f"{name} must be set (unbounded counters not allowed here)")
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ConfigurationError(f"{name} must be >= 0, got {value}")


def validate_name(name: str, what: str = "callback") -> None:
    """Validate a registry name (non-empty string)."""
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"{what} name must be a non-empty string, got {name!r}")
