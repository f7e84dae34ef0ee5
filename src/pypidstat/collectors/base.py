"""
Defines the abstract interface for snapshot collectors.

This module provides:
- AbstractSnapshotCollector: the interface every platform implementation
  adheres to, plus the generic task-group assembly built on top of it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List

from ..models import MetricSelection, Snapshot, TargetId, TaskGroupSnapshot
from ..validation.exceptions import NoSuchTargetError

logger = logging.getLogger(__name__)


class AbstractSnapshotCollector(ABC):
    """
    Abstract base class for snapshot collectors.

    A collector turns the counters the operating system exposes for one
    process or thread into an immutable Snapshot. Implementations are
    stateless apart from their construction parameters, so a single instance
    may be shared between worker threads.
    """

    #: Short platform label used in log messages.
    platform_name: str = "unknown"

    def __init__(self, **kwargs):
        """
        Args:
            **kwargs: Implementation specific options, kept for introspection.
        """
        self.collector_kwargs = kwargs
        logger.debug(
            f"Initializing {self.__class__.__name__} for platform "
            f"'{self.platform_name}', extra_args: {kwargs}"
        )

    @abstractmethod
    def collect(self, target: TargetId, selection: MetricSelection) -> Snapshot:
        """
        Take one snapshot of the selected metric groups for a target.

        Raises:
            NoSuchTargetError: If the target's records cannot be opened.
            UnimplementedError: If the platform does not support collection.
            InternalInconsistencyError: If a record is structurally malformed.
        """

    @abstractmethod
    def list_threads(self, pid: int) -> List[int]:
        """
        Return the ids of the threads currently alive in a process, ascending.

        Raises:
            NoSuchTargetError: If the process does not exist.
            UnimplementedError: If the platform does not support it.
        """

    def collect_task_group(
        self,
        pid: int,
        selection: MetricSelection,
        include_threads: bool = False,
    ) -> TaskGroupSnapshot:
        """
        Snapshot a process and, optionally, each of its threads.

        Threads that exit between being listed and being read are left out of
        the thread map; the process itself exiting raises NoSuchTargetError.
        """
        process = self.collect(TargetId(pid), selection)
        threads: Dict[int, Snapshot] = {}
        if include_threads:
            for tid in self.list_threads(pid):
                try:
                    threads[tid] = self.collect(TargetId(pid, tid), selection)
                except NoSuchTargetError as e:
                    logger.debug(f"Thread vanished while sampling: {e}")
        return TaskGroupSnapshot(process=process, threads=threads)
