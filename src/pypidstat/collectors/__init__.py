"""
Snapshot collectors.

This package provides the collector interface, the Linux procfs
implementation and the stub used on every other platform.
"""

import logging
import sys
from typing import Optional

from .base import AbstractSnapshotCollector
from .procfs import ProcfsSnapshotCollector
from .unsupported import UnsupportedSnapshotCollector

logger = logging.getLogger(__name__)


def create_collector(platform: Optional[str] = None, **kwargs) -> AbstractSnapshotCollector:
    """
    Create the collector for a platform.

    Args:
        platform: A ``sys.platform`` value; defaults to the running platform.
        **kwargs: Passed to the collector constructor (e.g. ``proc_root``).

    Returns:
        A procfs collector on Linux, otherwise a collector that raises
        UnimplementedError from every entry point.
    """
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return ProcfsSnapshotCollector(**kwargs)
    logger.warning(f"No snapshot collector for platform '{platform}'")
    return UnsupportedSnapshotCollector(platform=platform)


__all__ = [
    "AbstractSnapshotCollector",
    "ProcfsSnapshotCollector",
    "UnsupportedSnapshotCollector",
    "create_collector",
]
