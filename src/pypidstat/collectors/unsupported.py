"""
Collector for platforms without a counter reader.
"""

import sys
from typing import List, Optional

from ..models import MetricSelection, Snapshot, TargetId, TaskGroupSnapshot
from ..validation.exceptions import UnimplementedError
from .base import AbstractSnapshotCollector


class UnsupportedSnapshotCollector(AbstractSnapshotCollector):
    """Raises UnimplementedError from every entry point."""

    def __init__(self, platform: Optional[str] = None, **kwargs):
        super().__init__(**kwargs)
        self.platform_name = platform or sys.platform

    def _unimplemented(self, what: str) -> UnimplementedError:
        return UnimplementedError(f"{what} is not implemented on platform '{self.platform_name}'")

    def collect(self, target: TargetId, selection: MetricSelection) -> Snapshot:
        raise self._unimplemented("Per-process counter collection")

    def list_threads(self, pid: int) -> List[int]:
        raise self._unimplemented("Thread listing")

    def collect_task_group(
        self,
        pid: int,
        selection: MetricSelection,
        include_threads: bool = False,
    ) -> TaskGroupSnapshot:
        raise self._unimplemented("Task group collection")
