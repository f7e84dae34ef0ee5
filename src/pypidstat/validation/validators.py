"""
Input validation functions for configuration values and CLI arguments.
"""

import math
import re
from typing import Any, List, Optional

from .exceptions import ValidationError


def validate_positive_integer(
    value: Any,
    min_value: int = 1,
    max_value: Optional[int] = None,
    field_name: str = "value"
) -> int:
    """
    Validate that a value is an integer within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated integer value

    Raises:
        ValidationError: If validation fails
    """
    if isinstance(value, bool):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid integer, got {value}",
            field_name=field_name,
            value=value
        )
    if int_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and int_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {int_value}",
            field_name=field_name,
            value=value
        )
    return int_value


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within bounds.

    Args:
        value: Value to validate
        min_value: Minimum allowed value (inclusive)
        max_value: Maximum allowed value (inclusive), None for no limit
        field_name: Name of the field being validated

    Returns:
        Validated float value

    Raises:
        ValidationError: If validation fails
    """
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if not math.isfinite(float_value):
        raise ValidationError(
            f"{field_name} must be a finite number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ValidationError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ValidationError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_enum_choice(
    value: Any,
    valid_choices: List[str],
    field_name: str = "value"
) -> str:
    """
    Validate that a value is one of the allowed choices.

    Raises:
        ValidationError: If the value is not a valid choice
    """
    if value not in valid_choices:
        raise ValidationError(
            f"{field_name} must be one of {valid_choices}, got '{value}'",
            field_name=field_name,
            value=value
        )
    return value


def validate_regex_pattern(pattern: str, field_name: str = "pattern") -> str:
    """Validate that a string compiles as a regular expression."""
    if not isinstance(pattern, str) or not pattern:
        raise ValidationError(
            f"{field_name} must be a non-empty string",
            field_name=field_name,
            value=pattern
        )
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValidationError(
            f"{field_name} is not a valid regular expression: {e}",
            field_name=field_name,
            value=pattern
        )
    return pattern


def validate_pid_list(value: str, field_name: str = "pid list") -> List[int]:
    """
    Parse a comma-separated list of process ids.

    Duplicates are removed and the result is sorted ascending, which is the
    order targets are reported in.

    Raises:
        ValidationError: If any entry is not a positive integer
    """
    if not value or not value.strip():
        raise ValidationError(
            f"{field_name} cannot be empty",
            field_name=field_name,
            value=value
        )
    pids = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            raise ValidationError(
                f"{field_name} contains an empty entry: '{value}'",
                field_name=field_name,
                value=value
            )
        pids.add(validate_positive_integer(part, min_value=1, field_name=field_name))
    return sorted(pids)
