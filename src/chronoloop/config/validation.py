"""
Configuration validation for Chronoloop.

Declarative validation rules checked before any stack is built, so a bad
value can never leave the loop hierarchy partially configured.

Validation Features:
- Declarative rules via the ValidatedConfig mixin
- Predefined validators (positive_integer, range, one_of, ...)
- Every failure collected into a single ConfigValidationError

Author: Chronoloop Project
Date: October 2026
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Tuple

from chronoloop.errors import ConfigurationError


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""


# =============================================================================
# DECLARATIVE VALIDATION FRAMEWORK
# =============================================================================


class ValidatorRegistry:
    """Registry of predefined validation rules.

    Usage:
        validator = ValidatorRegistry.get_validator('positive_integer')
        validator(10, 'n_epochs')  # Passes
        validator(0, 'n_epochs')   # Raises ConfigValidationError
    """

    _validators: Dict[str, Callable[[Any, str], None]] = {}

    @classmethod
    def register(cls, name: str, validator: Callable[[Any, str], None]) -> None:
        """Register a validation function."""
        cls._validators[name] = validator

    @classmethod
    def get_validator(cls, rule: str) -> Callable[[Any, str], None]:
        """Get validator by name or parse compound rule."""
        if rule.startswith('range('):
            return cls._parse_range_rule(rule)
        if rule.startswith('one_of('):
            return cls._parse_one_of_rule(rule)

        if rule in cls._validators:
            return cls._validators[rule]

        raise ValueError(f"Unknown validation rule: {rule}")

    @classmethod
    def _parse_range_rule(cls, rule: str) -> Callable[[Any, str], None]:
        """Parse range(min, max) rules."""
        inner = rule[6:-1]
        parts = [p.strip() for p in inner.split(',')]

        if len(parts) != 2:
            raise ValueError(f"Invalid range rule format: {rule}")

        min_val = float(parts[0])
        max_val = float(parts[1])

        def range_validator(value: Any, name: str) -> None:
            _require_number(value, name)
            if not (min_val <= value <= max_val):
                raise ConfigValidationError(
                    f"{name}={value} outside valid range [{min_val}, {max_val}]"
                )

        return range_validator

    @classmethod
    def _parse_one_of_rule(cls, rule: str) -> Callable[[Any, str], None]:
        """Parse one_of(a, b, c) rules."""
        choices = tuple(p.strip() for p in rule[7:-1].split(',') if p.strip())

        def one_of_validator(value: Any, name: str) -> None:
            if value not in choices:
                raise ConfigValidationError(f"{name}={value!r} must be one of {choices}")

        return one_of_validator


def _require_number(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(f"{name} must be numeric, got {type(value).__name__}")


def _register_builtin_validators() -> None:
    """Register standard validation rules."""

    def positive(value: Any, name: str) -> None:
        """Value must be > 0."""
        _require_number(value, name)
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive")

    def finite(value: Any, name: str) -> None:
        """Value must be finite (not inf or nan)."""
        _require_number(value, name)
        if not math.isfinite(value):
            raise ConfigValidationError(f"{name}={value} must be finite (not inf/nan)")

    def integer(value: Any, name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigValidationError(f"{name} must be integer, got {type(value).__name__}")

    def positive_integer(value: Any, name: str) -> None:
        """Value must be a positive integer."""
        integer(value, name)
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive integer")

    def optional_positive_integer(value: Any, name: str) -> None:
        if value is not None:
            positive_integer(value, name)

    def non_empty_string(value: Any, name: str) -> None:
        """Value must be a non-empty string."""
        if not isinstance(value, str):
            raise ConfigValidationError(f"{name} must be string, got {type(value).__name__}")
        if not value.strip():
            raise ConfigValidationError(f"{name} must be non-empty string")

    ValidatorRegistry.register('positive', positive)
    ValidatorRegistry.register('finite', finite)
    ValidatorRegistry.register('integer', integer)
    ValidatorRegistry.register('positive_integer', positive_integer)
    ValidatorRegistry.register('optional_positive_integer', optional_positive_integer)
    ValidatorRegistry.register('non_empty_string', non_empty_string)


_register_builtin_validators()


class ValidatedConfig:
    """Mixin for declarative config validation.

    Usage:
        @dataclass
        class RunConfig(ValidatedConfig):
            n_epochs: int = 200

            _validation_rules = {
                'n_epochs': ('positive_integer',),
            }

        RunConfig(n_epochs=0).validate()  # Raises ConfigValidationError
    """

    _validation_rules: Dict[str, Tuple[str, ...]] = {}

    def validate_config(self) -> None:
        """Validate configuration based on _validation_rules.

        Raises:
            ConfigValidationError: If any validation fails
        """
        errors: List[str] = []

        for field_name, rules in self._validation_rules.items():
            if not hasattr(self, field_name):
                errors.append(f"Validation rule for non-existent field: {field_name}")
                continue

            value = getattr(self, field_name)
            for rule in rules:
                try:
                    validator = ValidatorRegistry.get_validator(rule)
                    validator(value, field_name)
                except ConfigValidationError as e:
                    errors.append(str(e))

        errors.extend(self.extra_errors())

        if errors:
            error_msg = (
                f"{self.__class__.__name__} validation failed:\n" +
                "\n".join(f"  • {e}" for e in errors)
            )
            raise ConfigValidationError(error_msg)

    def extra_errors(self) -> List[str]:
        """Cross-field checks; override in subclasses."""
        return []
