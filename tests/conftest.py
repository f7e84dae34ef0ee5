"""
Pytest configuration and shared fixtures for the pypidstat test suite.

This module provides a fake procfs tree, a controllable clock and snapshot
factories used across the unit and integration tests.
"""

import shutil
import sys
from pathlib import Path
from typing import Dict, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pypidstat.collectors.procfs_records import STAT_FIELDS  # noqa: E402
from pypidstat.models import (  # noqa: E402
    CpuCounters,
    CtxSwitchCounters,
    Identity,
    IoCounters,
    MemCounters,
    MetricGroup,
    Snapshot,
    StackCounters,
    TargetId,
    TaskGroupSnapshot,
)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Fake procfs
# ============================================================================


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProcTree:
    """
    Writes per-task records under a temporary directory laid out like /proc.

    Every counter defaults to zero; tests only set what they assert on.
    """

    def __init__(self, root: Path, mem_total_kb: int = 16384000):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / "meminfo").write_text(
            f"MemTotal:       {mem_total_kb} kB\nMemFree:         1024000 kB\n"
        )

    def task_dir(self, pid: int, tid: Optional[int] = None) -> Path:
        if tid is None:
            return self.root / str(pid)
        return self.root / str(pid) / "task" / str(tid)

    @staticmethod
    def stat_line(pid: int, comm: str, **fields) -> str:
        values = {name: 0 for name, _ in STAT_FIELDS}
        values.update(num_threads=1, priority=20, tpgid=-1, processor=3)
        values.update(fields)
        return f"{pid} ({comm}) S " + " ".join(str(values[name]) for name, _ in STAT_FIELDS) + "\n"

    def write_task(
        self,
        pid: int,
        tid: Optional[int] = None,
        comm: str = "worker",
        uid: int = 1000,
        wait_ns: int = 0,
        read_bytes: int = 0,
        write_bytes: int = 0,
        cancelled_write_bytes: int = 0,
        voluntary: int = 0,
        involuntary: int = 0,
        stack_kb: int = 132,
        stack_referenced_kb: int = 16,
        **stat_fields,
    ) -> Path:
        """Create or overwrite the records of a process or thread."""
        directory = self.task_dir(pid, tid)
        directory.mkdir(parents=True, exist_ok=True)
        if tid is None:
            (directory / "task").mkdir(exist_ok=True)
        (directory / "stat").write_text(self.stat_line(tid or pid, comm, **stat_fields))
        (directory / "status").write_text(
            f"Name:\t{comm}\n"
            f"State:\tS (sleeping)\n"
            f"Tgid:\t{pid}\n"
            f"Pid:\t{tid or pid}\n"
            f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}\n"
            f"Threads:\t1\n"
            f"voluntary_ctxt_switches:\t{voluntary}\n"
            f"nonvoluntary_ctxt_switches:\t{involuntary}\n"
        )
        (directory / "io").write_text(
            f"rchar: 0\nwchar: 0\nsyscr: 0\nsyscw: 0\n"
            f"read_bytes: {read_bytes}\n"
            f"write_bytes: {write_bytes}\n"
            f"cancelled_write_bytes: {cancelled_write_bytes}\n"
        )
        (directory / "schedstat").write_text(f"123456789 {wait_ns} 42\n")
        (directory / "smaps").write_text(
            "55d4c0a00000-55d4c0a21000 r-xp 00000000 08:01 1234 /usr/bin/worker\n"
            "Size:                132 kB\n"
            "Referenced:          100 kB\n"
            "7ffc9a1e0000-7ffc9a201000 rw-p 00000000 00:00 0                          [stack]\n"
            f"Size:             {stack_kb} kB\n"
            f"Rss:                16 kB\n"
            f"Referenced:        {stack_referenced_kb} kB\n"
        )
        return directory

    def remove_task(self, pid: int, tid: Optional[int] = None) -> None:
        shutil.rmtree(self.task_dir(pid, tid), ignore_errors=True)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def proc_tree(tmp_path):
    """An empty fake /proc with a meminfo record."""
    return FakeProcTree(tmp_path / "proc")


# ============================================================================
# Snapshot factories
# ============================================================================


class TestUtils:
    """Utility functions for building snapshots by hand."""

    @staticmethod
    def cpu(user=0, system=0, guest=0, wait=0, processor=3, hz=100) -> CpuCounters:
        return CpuCounters(
            user_ticks=user,
            system_ticks=system,
            guest_ticks=guest,
            wait_ticks=wait,
            processor=processor,
            ticks_per_second=hz,
        )

    @staticmethod
    def mem(minflt=0, majflt=0, vsz_kb=0, rss_kb=0, total_kb=1000000) -> MemCounters:
        return MemCounters(
            minor_faults=minflt,
            major_faults=majflt,
            vsz_kb=vsz_kb,
            rss_kb=rss_kb,
            total_memory_kb=total_kb,
        )

    @staticmethod
    def io(read=0, write=0, cancelled=0, delay=0) -> IoCounters:
        return IoCounters(
            read_bytes=read,
            write_bytes=write,
            cancelled_write_bytes=cancelled,
            blkio_delay_ticks=delay,
        )

    @staticmethod
    def ctx(voluntary=0, involuntary=0) -> CtxSwitchCounters:
        return CtxSwitchCounters(voluntary=voluntary, involuntary=involuntary)

    @staticmethod
    def stack(size_kb=0, referenced_kb=0) -> StackCounters:
        return StackCounters(size_kb=size_kb, referenced_kb=referenced_kb)

    @staticmethod
    def snapshot(
        pid: int,
        taken_at: float,
        counters: Dict[MetricGroup, object],
        tid: Optional[int] = None,
        uid: int = 1000,
        command: str = "worker",
    ) -> Snapshot:
        identity = Identity(uid=uid, target=TargetId(pid, tid), command=command)
        return Snapshot(identity=identity, counters=counters, taken_at=taken_at)

    @staticmethod
    def task_group(process: Snapshot, *threads: Snapshot) -> TaskGroupSnapshot:
        return TaskGroupSnapshot(
            process=process,
            threads={t.target.tid: t for t in threads},
        )


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically reset the configuration singleton after each test."""
    yield

    from pypidstat.config import DEFAULT_CONFIG_PATH, clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(DEFAULT_CONFIG_PATH)
