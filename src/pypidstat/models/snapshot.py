"""
Snapshot data models.

A snapshot is one point-in-time reading of a process or thread. Which metric
groups it carries is decided once, when the snapshot is built, and checked
against the MetricSelection that was used to collect it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

from ..validation.exceptions import InternalInconsistencyError


class MetricGroup(Enum):
    """Independently selectable groups of counters."""

    CPU = "cpu"
    MEM = "mem"
    STACK = "stack"
    IO = "io"
    CTX_SWITCH = "ctx_switch"

    @classmethod
    def report_order(cls) -> List["MetricGroup"]:
        """Order in which groups are rendered in a report."""
        return [cls.CPU, cls.MEM, cls.STACK, cls.IO, cls.CTX_SWITCH]


@dataclass(frozen=True)
class TargetId:
    """
    Identifies a sampling target.

    Attributes:
        pid: Process id, or thread-group id when ``tid`` is set.
        tid: Thread id within ``pid``; None targets the whole process.
    """

    pid: int
    tid: Optional[int] = None

    @property
    def is_thread(self) -> bool:
        return self.tid is not None

    def __str__(self) -> str:
        if self.tid is None:
            return f"pid {self.pid}"
        return f"pid {self.pid} tid {self.tid}"


@dataclass(frozen=True)
class MetricSelection:
    """Set of metric groups to collect and render."""

    cpu: bool = False
    mem: bool = False
    io: bool = False
    ctx_switch: bool = False
    stack: bool = False

    @classmethod
    def from_groups(cls, groups: Iterable[Union[MetricGroup, str]]) -> "MetricSelection":
        flags = {}
        for group in groups:
            group = MetricGroup(group)
            flags[group.value] = True
        return cls(**flags)

    @property
    def groups(self) -> FrozenSet[MetricGroup]:
        return frozenset(g for g in MetricGroup if getattr(self, g.value))

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def __contains__(self, group: MetricGroup) -> bool:
        return bool(getattr(self, MetricGroup(group).value))


@dataclass(frozen=True)
class Identity:
    """Who a snapshot belongs to."""

    uid: int
    target: TargetId
    # Display command name (the comm field, without parentheses)
    command: str


@dataclass(frozen=True)
class CpuCounters:
    """CPU time counters, all in clock ticks."""

    # Excludes guest time
    user_ticks: int
    system_ticks: int
    guest_ticks: int
    # Converted from the scheduler's nanosecond run-queue wait counter
    wait_ticks: int
    # Processor last executed on, when the kernel reports it
    processor: Optional[int]
    ticks_per_second: int


@dataclass(frozen=True)
class MemCounters:
    """Page fault counters and memory sizes."""

    minor_faults: int
    major_faults: int
    vsz_kb: int
    rss_kb: int
    # System-wide, only used for %MEM
    total_memory_kb: int


@dataclass(frozen=True)
class IoCounters:
    """Cumulative I/O accounting counters."""

    read_bytes: int
    write_bytes: int
    cancelled_write_bytes: int
    blkio_delay_ticks: int


@dataclass(frozen=True)
class CtxSwitchCounters:
    voluntary: int
    involuntary: int


@dataclass(frozen=True)
class StackCounters:
    """Point-in-time stack sizes; never diffed."""

    size_kb: int
    referenced_kb: int


GroupCounters = Union[CpuCounters, MemCounters, IoCounters, CtxSwitchCounters, StackCounters]

COUNTER_TYPES: Mapping[MetricGroup, type] = MappingProxyType({
    MetricGroup.CPU: CpuCounters,
    MetricGroup.MEM: MemCounters,
    MetricGroup.IO: IoCounters,
    MetricGroup.CTX_SWITCH: CtxSwitchCounters,
    MetricGroup.STACK: StackCounters,
})


@dataclass(frozen=True)
class Snapshot:
    """
    One reading of the selected metric groups for a target.

    Attributes:
        identity: Owner uid, target id and command name.
        counters: Counters keyed by metric group; only present groups appear.
        taken_at: Monotonic clock reading (seconds) when the sample was taken.
    """

    identity: Identity
    counters: Mapping[MetricGroup, GroupCounters]
    taken_at: float

    def __post_init__(self):
        for group, value in self.counters.items():
            expected = COUNTER_TYPES[MetricGroup(group)]
            if not isinstance(value, expected):
                raise InternalInconsistencyError(
                    f"{group} counters must be {expected.__name__}, got {type(value).__name__}"
                )
        object.__setattr__(self, "counters", MappingProxyType(dict(self.counters)))

    @classmethod
    def build(
        cls,
        identity: Identity,
        selection: MetricSelection,
        counters: Mapping[MetricGroup, GroupCounters],
        taken_at: float,
    ) -> "Snapshot":
        """
        Build a snapshot, checking that exactly the selected groups are present.

        Raises:
            InternalInconsistencyError: If the counters do not match the selection.
        """
        present = frozenset(counters)
        if present != selection.groups:
            missing = sorted(g.value for g in selection.groups - present)
            extra = sorted(g.value for g in present - selection.groups)
            raise InternalInconsistencyError(
                f"Snapshot for {identity.target} does not match selection "
                f"(missing: {missing}, unexpected: {extra})"
            )
        return cls(identity=identity, counters=counters, taken_at=taken_at)

    @property
    def target(self) -> TargetId:
        return self.identity.target

    @property
    def groups(self) -> FrozenSet[MetricGroup]:
        return frozenset(self.counters)

    def has(self, group: MetricGroup) -> bool:
        return group in self.counters

    def counters_for(self, group: MetricGroup) -> GroupCounters:
        """
        Return the counters of one group.

        Raises:
            InternalInconsistencyError: If the group was not collected.
        """
        try:
            return self.counters[group]
        except KeyError:
            raise InternalInconsistencyError(
                f"{group.value} counters were not collected for {self.target}"
            ) from None


@dataclass(frozen=True)
class TaskGroupSnapshot:
    """A process snapshot plus the snapshots of its threads, keyed by tid."""

    process: Snapshot
    threads: Mapping[int, Snapshot] = field(default_factory=dict)

    def __post_init__(self):
        ordered: Dict[int, Snapshot] = {tid: self.threads[tid] for tid in sorted(self.threads)}
        object.__setattr__(self, "threads", MappingProxyType(ordered))

    @property
    def pid(self) -> int:
        return self.process.target.pid

    @property
    def has_threads(self) -> bool:
        return bool(self.threads)
