"""
Per-second rate calculations between two snapshots.

Python integers do not overflow, so counter differences are exact whichever
order the counters are in; a negative rate (a counter that went backwards) is
returned as is unless the metric is known to be non-negative, in which case
it is reported as an internal inconsistency rather than clamped.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Union

from .models import CpuCounters, CtxSwitchCounters, IoCounters, MemCounters
from .validation.exceptions import InternalInconsistencyError

Elapsed = Union[float, int, timedelta]


def elapsed_seconds(elapsed: Elapsed) -> float:
    """
    Normalize an elapsed duration to positive seconds.

    Raises:
        InternalInconsistencyError: If the duration is not strictly positive.
    """
    if isinstance(elapsed, timedelta):
        seconds = elapsed.total_seconds()
    else:
        seconds = float(elapsed)
    if not math.isfinite(seconds) or seconds <= 0:
        raise InternalInconsistencyError(f"Elapsed time must be positive, got {seconds}")
    return seconds


def rate_per_second(prev: int, curr: int, elapsed: Elapsed) -> float:
    """
    Return ``(curr - prev) / elapsed`` in units per second.

    Raises:
        InternalInconsistencyError: If elapsed is not positive or the result
            is not finite.
    """
    seconds = elapsed_seconds(elapsed)
    try:
        rate = (int(curr) - int(prev)) / seconds
    except OverflowError:
        raise InternalInconsistencyError(
            f"Rate between {prev} and {curr} over {seconds}s is not finite"
        ) from None
    if not math.isfinite(rate):
        raise InternalInconsistencyError(
            f"Rate between {prev} and {curr} over {seconds}s is not finite"
        )
    return rate


def require_non_negative(value: float, name: str) -> float:
    """
    Raises:
        InternalInconsistencyError: If a metric that cannot go backwards did.
    """
    if value < 0:
        raise InternalInconsistencyError(f"{name} went backwards: {value}")
    return value


@dataclass(frozen=True)
class CpuRates:
    """CPU usage over an interval, in percent of one processor."""

    user: float
    system: float
    guest: float
    wait: float
    total: float
    processor: Optional[int]


@dataclass(frozen=True)
class MemRates:
    minor_faults: float
    major_faults: float
    vsz_kb: int
    rss_kb: int
    mem_percent: float


@dataclass(frozen=True)
class IoRates:
    read_bytes: float
    write_bytes: float
    cancelled_write_bytes: float
    # Delta in clock ticks, not a rate
    blkio_delay_ticks: int


@dataclass(frozen=True)
class CtxSwitchRates:
    voluntary: float
    involuntary: float


def _tick_percent(prev: int, curr: int, elapsed: Elapsed, ticks_per_second: int, name: str) -> float:
    ticks = rate_per_second(prev, curr, elapsed)
    return require_non_negative(ticks / ticks_per_second * 100.0, name)


def cpu_rates(prev: CpuCounters, curr: CpuCounters, elapsed: Elapsed) -> CpuRates:
    """Derive %usr, %system, %guest, %wait and %CPU from two CPU samples."""
    hz = curr.ticks_per_second
    if hz <= 0:
        raise InternalInconsistencyError(f"Invalid clock tick rate: {hz}")
    prev_total = prev.user_ticks + prev.system_ticks + prev.wait_ticks
    curr_total = curr.user_ticks + curr.system_ticks + curr.wait_ticks
    return CpuRates(
        user=_tick_percent(prev.user_ticks, curr.user_ticks, elapsed, hz, "%usr"),
        system=_tick_percent(prev.system_ticks, curr.system_ticks, elapsed, hz, "%system"),
        guest=_tick_percent(prev.guest_ticks, curr.guest_ticks, elapsed, hz, "%guest"),
        wait=_tick_percent(prev.wait_ticks, curr.wait_ticks, elapsed, hz, "%wait"),
        total=_tick_percent(prev_total, curr_total, elapsed, hz, "%CPU"),
        processor=curr.processor,
    )


def mem_rates(prev: MemCounters, curr: MemCounters, elapsed: Elapsed) -> MemRates:
    """Derive fault rates and the current memory share."""
    if curr.total_memory_kb <= 0:
        raise InternalInconsistencyError(f"Invalid total memory: {curr.total_memory_kb} kB")
    mem_percent = require_non_negative(curr.rss_kb / curr.total_memory_kb * 100.0, "%MEM")
    return MemRates(
        minor_faults=require_non_negative(
            rate_per_second(prev.minor_faults, curr.minor_faults, elapsed), "minflt/s"
        ),
        major_faults=require_non_negative(
            rate_per_second(prev.major_faults, curr.major_faults, elapsed), "majflt/s"
        ),
        vsz_kb=curr.vsz_kb,
        rss_kb=curr.rss_kb,
        mem_percent=mem_percent,
    )


def io_rates(prev: IoCounters, curr: IoCounters, elapsed: Elapsed) -> IoRates:
    """Derive byte rates and the block I/O delay over the interval."""
    return IoRates(
        read_bytes=require_non_negative(
            rate_per_second(prev.read_bytes, curr.read_bytes, elapsed), "read bytes/s"
        ),
        write_bytes=require_non_negative(
            rate_per_second(prev.write_bytes, curr.write_bytes, elapsed), "write bytes/s"
        ),
        cancelled_write_bytes=require_non_negative(
            rate_per_second(prev.cancelled_write_bytes, curr.cancelled_write_bytes, elapsed),
            "cancelled write bytes/s",
        ),
        blkio_delay_ticks=curr.blkio_delay_ticks - prev.blkio_delay_ticks,
    )


def ctx_switch_rates(prev: CtxSwitchCounters, curr: CtxSwitchCounters, elapsed: Elapsed) -> CtxSwitchRates:
    return CtxSwitchRates(
        voluntary=rate_per_second(prev.voluntary, curr.voluntary, elapsed),
        involuntary=rate_per_second(prev.involuntary, curr.involuntary, elapsed),
    )
