"""
pypidstat: per-process and per-thread statistics reporter for Linux.

The package samples kernel per-task counters at a fixed interval and prints
rate-based reports in the style of sysstat's pidstat.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Snapshot records and configuration data structures
- validation: Error taxonomy, input validation and retry helpers
- collectors: Platform-specific snapshot collection (procfs on Linux)
- formatting: Colorized fixed-width value rendering
- report: Per-group report headers and rows
- sampling: The interval loop holding previous snapshots
- system: Process discovery by pid or command name
- cli: Command-line interface

Usage:
    From command line:
        pypidstat -p 1234 -u -r 1 5

    Programmatically:
        from pypidstat import Sampler, ReportRenderer, create_collector
        collector = create_collector()
        sampler = Sampler(collector, MetricSelection(cpu=True), ReportRenderer(ANSI_PALETTE))
        sampler.run([1234], interval=1.0, count=5)
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .cli import main_cli
from .collectors import create_collector
from .report import ReportRenderer, TidDisplay
from .sampling import CycleReport, Sampler
from .formatting import ANSI_PALETTE, PLAIN_PALETTE, select_palette

# Model classes for external use
from .models import (
    AppConfig,
    Identity,
    MetricGroup,
    MetricSelection,
    Snapshot,
    TargetId,
    TaskGroupSnapshot,
)

# Error taxonomy
from .validation import (
    InternalInconsistencyError,
    NoSuchTargetError,
    PidstatError,
    UnimplementedError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "main_cli",
    "create_collector",
    "ReportRenderer",
    "TidDisplay",
    "CycleReport",
    "Sampler",
    "ANSI_PALETTE",
    "PLAIN_PALETTE",
    "select_palette",
    # Models
    "AppConfig",
    "Identity",
    "MetricGroup",
    "MetricSelection",
    "Snapshot",
    "TargetId",
    "TaskGroupSnapshot",
    # Errors
    "InternalInconsistencyError",
    "NoSuchTargetError",
    "PidstatError",
    "UnimplementedError",
    "ValidationError",
]
