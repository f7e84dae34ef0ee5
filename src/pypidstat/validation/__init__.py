"""
Validation and error handling for the pypidstat package.
"""

from .exceptions import (
    ErrorSeverity,
    InternalInconsistencyError,
    NoSuchTargetError,
    PidstatError,
    UnimplementedError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
)
from .strategies import simple_retry
from .validators import (
    validate_enum_choice,
    validate_pid_list,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
)

__all__ = [
    "ErrorSeverity",
    "ValidationError",
    "PidstatError",
    "NoSuchTargetError",
    "UnimplementedError",
    "InternalInconsistencyError",
    "handle_error",
    "handle_config_error",
    "handle_cli_error",
    "simple_retry",
    "validate_enum_choice",
    "validate_pid_list",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_regex_pattern",
]
