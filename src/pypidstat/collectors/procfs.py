"""
Snapshot collector for Linux, reading the /proc filesystem.

This module provides the ProcfsSnapshotCollector class, which reads the stat,
status, io, schedstat and smaps records of a process or thread plus the
system-wide meminfo record, and converts them into the typed counters of a
Snapshot. Only the records needed by the selected metric groups are read.
"""

import logging
import os
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from ..models import (
    CpuCounters,
    CtxSwitchCounters,
    GroupCounters,
    Identity,
    IoCounters,
    MemCounters,
    MetricGroup,
    MetricSelection,
    Snapshot,
    StackCounters,
    TargetId,
)
from ..validation.exceptions import InternalInconsistencyError, NoSuchTargetError
from .base import AbstractSnapshotCollector
from .procfs_records import (
    parse_io,
    parse_meminfo_total,
    parse_schedstat,
    parse_smaps_stack,
    parse_stat,
    parse_status,
)

logger = logging.getLogger(__name__)

NANOSECONDS_PER_SECOND = 1_000_000_000


class ProcfsSnapshotCollector(AbstractSnapshotCollector):
    """
    Collects snapshots from a procfs tree.

    Attributes:
        proc_root: Root of the proc filesystem (``/proc`` on a live system).
        ticks_per_second: Clock tick rate used for all CPU quantities.
        page_size: Page size in bytes, used to convert RSS pages to kB.
    """

    platform_name = "linux"

    def __init__(
        self,
        proc_root: Union[str, Path] = "/proc",
        ticks_per_second: Optional[int] = None,
        page_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
        **kwargs,
    ):
        """
        Args:
            proc_root: Directory holding per-process records and meminfo.
            ticks_per_second: Overrides ``sysconf(SC_CLK_TCK)``.
            page_size: Overrides ``sysconf(SC_PAGE_SIZE)``.
            clock: Monotonic clock used to timestamp snapshots.
        """
        super().__init__(**kwargs)
        self.proc_root = Path(proc_root)
        self.ticks_per_second = ticks_per_second or os.sysconf("SC_CLK_TCK")
        self.page_size = page_size or os.sysconf("SC_PAGE_SIZE")
        self._clock = clock

    def task_dir(self, target: TargetId) -> Path:
        """Directory holding the records of a process or one of its threads."""
        pid_dir = self.proc_root / str(target.pid)
        if target.tid is None:
            return pid_dir
        return pid_dir / "task" / str(target.tid)

    def _read_record(self, target: TargetId, section: str) -> str:
        path = self.task_dir(target) / section
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                return f.read()
        except OSError as e:
            # The task exited (or was never there) between listing and reading.
            raise NoSuchTargetError(target, str(path)) from e

    def _read_total_memory_kb(self) -> int:
        path = self.proc_root / "meminfo"
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise InternalInconsistencyError(f"Cannot read system memory summary {path}: {e}") from e
        return parse_meminfo_total(text)

    def list_threads(self, pid: int) -> List[int]:
        task_root = self.proc_root / str(pid) / "task"
        try:
            entries = os.listdir(task_root)
        except OSError as e:
            raise NoSuchTargetError(TargetId(pid), str(task_root)) from e
        return sorted(int(name) for name in entries if name.isdigit())

    def collect(self, target: TargetId, selection: MetricSelection) -> Snapshot:
        now = self._clock()
        stat = parse_stat(self._read_record(target, "stat"))
        status = parse_status(self._read_record(target, "status"))
        identity = Identity(uid=status.uid, target=target, command=stat.command)

        counters: Dict[MetricGroup, GroupCounters] = {}
        if selection.cpu:
            schedstat = parse_schedstat(self._read_record(target, "schedstat"))
            guest_ticks = stat.guest_time or 0
            counters[MetricGroup.CPU] = CpuCounters(
                user_ticks=max(stat.utime - guest_ticks, 0),
                system_ticks=stat.stime,
                guest_ticks=guest_ticks,
                wait_ticks=self.ticks_per_second * schedstat.wait_time_ns // NANOSECONDS_PER_SECOND,
                processor=stat.processor,
                ticks_per_second=self.ticks_per_second,
            )
        if selection.mem:
            counters[MetricGroup.MEM] = MemCounters(
                minor_faults=stat.minflt,
                major_faults=stat.majflt,
                vsz_kb=stat.vsize // 1024,
                rss_kb=stat.rss * self.page_size // 1024,
                total_memory_kb=self._read_total_memory_kb(),
            )
        if selection.io:
            proc_io = parse_io(self._read_record(target, "io"))
            counters[MetricGroup.IO] = IoCounters(
                read_bytes=proc_io.read_bytes,
                write_bytes=proc_io.write_bytes,
                cancelled_write_bytes=proc_io.cancelled_write_bytes,
                blkio_delay_ticks=stat.delayacct_blkio_ticks or 0,
            )
        if selection.ctx_switch:
            if status.voluntary_ctxt_switches is None or status.nonvoluntary_ctxt_switches is None:
                raise InternalInconsistencyError(
                    f"status record of {target} has no context switch counters"
                )
            counters[MetricGroup.CTX_SWITCH] = CtxSwitchCounters(
                voluntary=status.voluntary_ctxt_switches,
                involuntary=status.nonvoluntary_ctxt_switches,
            )
        if selection.stack:
            stack = parse_smaps_stack(self._read_record(target, "smaps"))
            counters[MetricGroup.STACK] = StackCounters(
                size_kb=stack.size_kb,
                referenced_kb=stack.referenced_kb,
            )

        return Snapshot.build(identity, selection, counters, taken_at=now)
