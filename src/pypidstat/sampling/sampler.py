"""
The sampling loop.

The Sampler owns the only mutable state of the pipeline: the previous task
group snapshot of every tracked target. Each cycle collects a fresh snapshot
per target, renders it against the stored one, and replaces the stored one.
Targets that vanish are dropped together with their baseline, and so are
targets whose records turn out inconsistent.
"""

import logging
import sys
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from ..collectors.base import AbstractSnapshotCollector
from ..models import MetricSelection, TaskGroupSnapshot
from ..report import ReportRenderer
from ..validation import InternalInconsistencyError, NoSuchTargetError, handle_error, simple_retry

logger = logging.getLogger(__name__)


@dataclass
class CycleReport:
    """Outcome of one sampling cycle."""

    # Rendered report text, empty when no target had a baseline yet
    text: str = ""
    # Pids rendered this cycle, ascending
    reported: List[int] = field(default_factory=list)
    # Pids seen for the first time; rendered from the next cycle on
    baselined: List[int] = field(default_factory=list)
    # Pids that vanished and are no longer tracked
    dropped: List[int] = field(default_factory=list)
    # Pids whose records were inconsistent, with the error; no longer tracked
    failed: Dict[int, InternalInconsistencyError] = field(default_factory=dict)

    def still_tracked(self, pids: Iterable[int]) -> List[int]:
        return [pid for pid in pids if pid not in self.dropped and pid not in self.failed]


class Sampler:
    """
    Drives collection and rendering for a set of target processes.

    Targets are always reported in ascending pid order, whether they are
    polled one after another or fanned out on a thread pool.
    """

    def __init__(
        self,
        collector: AbstractSnapshotCollector,
        selection: MetricSelection,
        renderer: ReportRenderer,
        include_threads: bool = False,
        retry_attempts: int = 1,
        retry_delay: float = 0.0,
        max_workers: int = 1,
    ):
        """
        Args:
            collector: Source of snapshots.
            selection: Metric groups to collect and render.
            renderer: Turns snapshot pairs into report text.
            include_threads: Also report every thread of each process.
            retry_attempts: Reads per target and cycle before it is dropped;
                1 drops a vanished target immediately.
            retry_delay: Seconds between attempts.
            max_workers: Poll targets concurrently when greater than 1.
        """
        if selection.is_empty:
            raise ValueError("At least one metric group must be selected")
        if retry_attempts < 1:
            raise ValueError(f"retry_attempts must be >= 1, got {retry_attempts}")
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.collector = collector
        self.selection = selection
        self.renderer = renderer
        self.include_threads = include_threads
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.max_workers = max_workers
        self._previous: Dict[int, TaskGroupSnapshot] = {}
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def tracked_pids(self) -> List[int]:
        """Pids that currently have a stored baseline."""
        return sorted(self._previous)

    def forget(self, pid: int) -> None:
        self._previous.pop(pid, None)

    def _collect_one(self, pid: int) -> TaskGroupSnapshot:
        return simple_retry(
            lambda: self.collector.collect_task_group(pid, self.selection, self.include_threads),
            max_attempts=self.retry_attempts,
            delay=self.retry_delay,
            context=f"sampling pid {pid}",
            retry_on=(NoSuchTargetError,),
        )

    def _submit_all(self, pids: List[int]) -> Dict[int, Future]:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="SamplerWorker",
            )
            logger.debug(f"Started sampler thread pool with {self.max_workers} workers")
        return {pid: self._executor.submit(self._collect_one, pid) for pid in pids}

    def sample_cycle(self, targets: Iterable[int]) -> CycleReport:
        """
        Run one cycle over the given targets.

        A target whose record or rate is inconsistent loses its baseline and
        is listed in ``failed``; the other targets are still rendered.

        Raises:
            UnimplementedError: If the platform cannot collect snapshots.
        """
        pids = sorted(set(targets))
        futures = self._submit_all(pids) if self.max_workers > 1 and len(pids) > 1 else {}
        report = CycleReport()
        parts: List[str] = []

        for pid in pids:
            try:
                current = futures[pid].result() if futures else self._collect_one(pid)
                previous = self._previous.get(pid)
                text = self.renderer.render_task_group(previous, current) if previous is not None else None
            except NoSuchTargetError as e:
                logger.info(f"Dropping target {pid}: {e}")
                self.forget(pid)
                report.dropped.append(pid)
                continue
            except InternalInconsistencyError as e:
                handle_error(e, context=f"sampling pid {pid}", reraise=False, logger=logger)
                self.forget(pid)
                report.failed[pid] = e
                continue
            except Exception:
                self.forget(pid)
                raise

            self._previous[pid] = current
            if text is None:
                report.baselined.append(pid)
                continue
            parts.append(text)
            report.reported.append(pid)

        report.text = "\n".join(parts)
        return report

    def run(
        self,
        targets: Iterable[int],
        interval: float,
        count: Optional[int] = None,
        stream: Optional[TextIO] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> List[int]:
        """
        Sample until ``count`` reports were printed or no target is left.

        The first cycle only records baselines. Returns the pids still
        tracked when the loop ends.

        Raises:
            UnimplementedError: If the platform cannot collect snapshots.
            InternalInconsistencyError: If the last remaining target failed;
                the most recent failure is raised.
        """
        stream = stream or sys.stdout
        remaining = sorted(set(targets))
        last_failure: Optional[InternalInconsistencyError] = None

        cycle = self.sample_cycle(remaining)
        remaining = cycle.still_tracked(remaining)
        if cycle.failed:
            last_failure = list(cycle.failed.values())[-1]

        reports = 0
        while remaining and (count is None or reports < count):
            sleep(interval)
            cycle = self.sample_cycle(remaining)
            remaining = cycle.still_tracked(remaining)
            if cycle.failed:
                last_failure = list(cycle.failed.values())[-1]
            if cycle.text:
                stream.write(cycle.text + "\n")
                stream.flush()
            reports += 1

        if not remaining:
            if last_failure is not None:
                raise last_failure
            logger.warning("No target left to monitor")
        return remaining

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
