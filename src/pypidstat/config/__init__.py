"""
Configuration management for the pypidstat package.

This module provides a clean interface for loading, validating, and accessing
configuration data from a TOML file with singleton pattern management.
"""

from .manager import (
    DEFAULT_CONFIG_PATH,
    clear_config_cache,
    get_config,
    get_config_path,
    is_config_loaded,
    set_config_path,
)
from .loader import load_main_config, load_toml_file
from .validators import (
    validate_app_config,
    validate_collection_config,
    validate_general_config,
    validate_report_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "get_config",
    "get_config_path",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "load_toml_file",
    "load_main_config",
    "validate_app_config",
    "validate_general_config",
    "validate_collection_config",
    "validate_report_config",
]
