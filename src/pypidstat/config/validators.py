"""
Configuration validation utilities.

Turns the raw [pidstat] table into validated configuration dataclasses.
Missing keys take their defaults; present keys must be valid.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from ..models import AppConfig, CollectionConfig, GeneralConfig, MetricGroup, ReportConfig
from ..validation import (
    ValidationError,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
COLOR_MODES = ["auto", "always", "never"]


def validate_general_config(general_settings: Dict[str, Any]) -> GeneralConfig:
    defaults = GeneralConfig()
    log_level = general_settings.get("log_level", defaults.log_level)
    if isinstance(log_level, str):
        log_level = log_level.upper()
    return GeneralConfig(
        log_level=validate_enum_choice(
            log_level, LOG_LEVELS, field_name="pidstat.general.log_level"
        ),
        color=validate_enum_choice(
            general_settings.get("color", defaults.color),
            COLOR_MODES,
            field_name="pidstat.general.color",
        ),
    )


def validate_collection_config(collection_settings: Dict[str, Any]) -> CollectionConfig:
    defaults = CollectionConfig()

    proc_root = collection_settings.get("proc_root", str(defaults.proc_root))
    if not isinstance(proc_root, str) or not proc_root.strip():
        raise ValidationError(
            "pidstat.collection.proc_root must be a non-empty string",
            field_name="pidstat.collection.proc_root",
            value=proc_root,
        )

    return CollectionConfig(
        interval_seconds=validate_positive_float(
            collection_settings.get("interval_seconds", defaults.interval_seconds),
            min_value=0.01,
            max_value=86400.0,
            field_name="pidstat.collection.interval_seconds",
        ),
        proc_root=Path(proc_root),
        retry_attempts=validate_positive_integer(
            collection_settings.get("retry_attempts", defaults.retry_attempts),
            min_value=1,
            max_value=10,
            field_name="pidstat.collection.retry_attempts",
        ),
        retry_delay_seconds=validate_positive_float(
            collection_settings.get("retry_delay_seconds", defaults.retry_delay_seconds),
            min_value=0.0,
            max_value=10.0,
            field_name="pidstat.collection.retry_delay_seconds",
        ),
        max_workers=validate_positive_integer(
            collection_settings.get("max_workers", defaults.max_workers),
            min_value=1,
            max_value=64,
            field_name="pidstat.collection.max_workers",
        ),
    )


def validate_report_config(report_settings: Dict[str, Any]) -> ReportConfig:
    groups = report_settings.get("default_groups", ReportConfig().default_groups)
    if not isinstance(groups, list) or not groups:
        raise ValidationError(
            "pidstat.report.default_groups must be a non-empty list",
            field_name="pidstat.report.default_groups",
            value=groups,
        )
    valid = [g.value for g in MetricGroup]
    for group in groups:
        validate_enum_choice(group, valid, field_name="pidstat.report.default_groups")
    return ReportConfig(default_groups=list(groups))


def validate_app_config(pidstat_data: Dict[str, Any]) -> AppConfig:
    """
    Validate and create an AppConfig from the raw [pidstat] table.

    Raises:
        ValidationError: If validation fails
    """
    config = AppConfig(
        general=validate_general_config(pidstat_data.get("general", {})),
        collection=validate_collection_config(pidstat_data.get("collection", {})),
        report=validate_report_config(pidstat_data.get("report", {})),
    )
    logger.debug(f"Validated configuration: {config}")
    return config
