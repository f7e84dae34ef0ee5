"""
Configuration data models, loaded from `config.toml`.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass
class GeneralConfig:
    """[pidstat.general]"""

    # Root logger level name (e.g. "WARNING", "DEBUG").
    log_level: str = "WARNING"
    # "auto" colors only when stdout is a terminal.
    color: str = "auto"


@dataclass
class CollectionConfig:
    """[pidstat.collection]"""

    # Default interval between reports when none is given on the command line.
    interval_seconds: float = 1.0
    # Where per-process records are read from.
    proc_root: Path = Path("/proc")
    # 1 drops a vanished target immediately; more attempts retry the read.
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.0
    # Targets are polled concurrently when greater than 1.
    max_workers: int = 1


@dataclass
class ReportConfig:
    """[pidstat.report]"""

    # Metric groups reported when no group flag is given.
    default_groups: List[str] = field(default_factory=lambda: ["cpu"])


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    general: GeneralConfig = field(default_factory=GeneralConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
