"""
Parsers for the per-process text records exposed under /proc.

Each parser takes the full text of one record and returns a typed record.
The kernel interface is assumed well-formed once a file could be opened, so
any structural problem raises InternalInconsistencyError.

Ref: proc(5), https://docs.kernel.org/scheduler/sched-stats.html
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..validation.exceptions import InternalInconsistencyError

# Kinds of positional fields in the stat record:
#   required - must be present and an integer (may be negative)
#   optional - None when missing in older kernel formats
#   address  - optional, and a zero value also means "not available"
_REQUIRED = "required"
_OPTIONAL = "optional"
_ADDRESS = "address"

# Fields after "pid (comm) state", in kernel order.
STAT_FIELDS: List[Tuple[str, str]] = [
    ("ppid", _REQUIRED),
    ("pgrp", _REQUIRED),
    ("session", _REQUIRED),
    ("tty_nr", _REQUIRED),
    ("tpgid", _REQUIRED),
    ("flags", _REQUIRED),
    ("minflt", _REQUIRED),
    ("cminflt", _REQUIRED),
    ("majflt", _REQUIRED),
    ("cmajflt", _REQUIRED),
    ("utime", _REQUIRED),
    ("stime", _REQUIRED),
    ("cutime", _REQUIRED),
    ("cstime", _REQUIRED),
    ("priority", _REQUIRED),
    ("nice", _REQUIRED),
    ("num_threads", _REQUIRED),
    ("itrealvalue", _REQUIRED),
    ("starttime", _REQUIRED),
    ("vsize", _REQUIRED),
    ("rss", _REQUIRED),
    ("rsslim", _REQUIRED),
    ("startcode", _ADDRESS),
    ("endcode", _ADDRESS),
    ("startstack", _ADDRESS),
    ("kstkesp", _ADDRESS),
    ("kstkeip", _ADDRESS),
    ("signal", _OPTIONAL),
    ("blocked", _OPTIONAL),
    ("sigignore", _OPTIONAL),
    ("sigcatch", _OPTIONAL),
    ("wchan", _ADDRESS),
    ("nswap", _OPTIONAL),
    ("cnswap", _OPTIONAL),
    ("exit_signal", _OPTIONAL),
    ("processor", _OPTIONAL),
    ("rt_priority", _OPTIONAL),
    ("policy", _OPTIONAL),
    ("delayacct_blkio_ticks", _OPTIONAL),
    ("guest_time", _OPTIONAL),
    ("cguest_time", _OPTIONAL),
    ("start_data", _ADDRESS),
    ("end_data", _ADDRESS),
    ("start_brk", _ADDRESS),
    ("arg_start", _ADDRESS),
    ("arg_end", _ADDRESS),
    ("env_start", _ADDRESS),
    ("env_end", _ADDRESS),
    ("exit_code", _OPTIONAL),
]


@dataclass(frozen=True)
class ProcStat:
    """
    The combined stat line of a process or thread.

    Times are in clock ticks, ``vsize`` is in bytes and ``rss`` in pages.
    """

    pid: int
    command: str
    state: str
    ppid: int
    pgrp: int
    session: int
    tty_nr: int
    # -1 when there is no controlling terminal
    tpgid: int
    flags: int
    minflt: int
    cminflt: int
    majflt: int
    cmajflt: int
    # Includes guest_time
    utime: int
    stime: int
    cutime: int
    cstime: int
    priority: int
    nice: int
    num_threads: int
    itrealvalue: int
    starttime: int
    vsize: int
    rss: int
    rsslim: int
    startcode: Optional[int] = None
    endcode: Optional[int] = None
    startstack: Optional[int] = None
    kstkesp: Optional[int] = None
    kstkeip: Optional[int] = None
    signal: Optional[int] = None
    blocked: Optional[int] = None
    sigignore: Optional[int] = None
    sigcatch: Optional[int] = None
    wchan: Optional[int] = None
    nswap: Optional[int] = None
    cnswap: Optional[int] = None
    exit_signal: Optional[int] = None
    processor: Optional[int] = None
    rt_priority: Optional[int] = None
    policy: Optional[int] = None
    delayacct_blkio_ticks: Optional[int] = None
    guest_time: Optional[int] = None
    cguest_time: Optional[int] = None
    start_data: Optional[int] = None
    end_data: Optional[int] = None
    start_brk: Optional[int] = None
    arg_start: Optional[int] = None
    arg_end: Optional[int] = None
    env_start: Optional[int] = None
    env_end: Optional[int] = None
    exit_code: Optional[int] = None


@dataclass(frozen=True)
class ProcStatus:
    """Fields of interest from the key-value status record."""

    # Real uid
    uid: int
    threads: Optional[int] = None
    voluntary_ctxt_switches: Optional[int] = None
    nonvoluntary_ctxt_switches: Optional[int] = None


@dataclass(frozen=True)
class ProcIo:
    """I/O accounting record, in bytes."""

    read_bytes: int
    write_bytes: int
    # Can count writes another task was charged for
    cancelled_write_bytes: int


@dataclass(frozen=True)
class ProcSchedstat:
    """Scheduler statistics, in nanoseconds."""

    run_time_ns: int
    wait_time_ns: int
    timeslices: int


@dataclass(frozen=True)
class StackUsage:
    size_kb: int
    referenced_kb: int


def _to_int(token: str, name: str, record: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise InternalInconsistencyError(
            f"Malformed {record} record: field '{name}' is not an integer: '{token}'"
        ) from None


def parse_stat(text: str) -> ProcStat:
    """
    Parse a stat record.

    The command name sits between the first '(' and the last ')', since the
    name itself may contain spaces and parentheses.
    """
    open_paren = text.find("(")
    close_paren = text.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise InternalInconsistencyError(f"Malformed stat record: no command name in '{text[:64]}'")

    pid = _to_int(text[:open_paren].strip(), "pid", "stat")
    command = text[open_paren + 1:close_paren]
    items = text[close_paren + 1:].split()
    if not items:
        raise InternalInconsistencyError("Malformed stat record: missing state")
    state = items[0]
    if len(state) != 1:
        raise InternalInconsistencyError(f"Malformed stat record: bad state '{state}'")

    values: Dict[str, Optional[int]] = {}
    tokens = items[1:]
    for index, (name, kind) in enumerate(STAT_FIELDS):
        if index >= len(tokens):
            if kind == _REQUIRED:
                raise InternalInconsistencyError(f"Malformed stat record: missing field '{name}'")
            values[name] = None
            continue
        value = _to_int(tokens[index], name, "stat")
        if kind == _ADDRESS and value == 0:
            value = None
        values[name] = value

    return ProcStat(pid=pid, command=command, state=state, **values)


def _parse_key_values(text: str) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()
    return fields


def parse_status(text: str) -> ProcStatus:
    """Parse a status record."""
    fields = _parse_key_values(text)
    if "Uid" not in fields:
        raise InternalInconsistencyError("Malformed status record: missing 'Uid'")
    uid_values = fields["Uid"].split()
    if not uid_values:
        raise InternalInconsistencyError("Malformed status record: empty 'Uid'")

    def optional(key: str) -> Optional[int]:
        if key not in fields:
            return None
        return _to_int(fields[key], key, "status")

    return ProcStatus(
        uid=_to_int(uid_values[0], "Uid", "status"),
        threads=optional("Threads"),
        voluntary_ctxt_switches=optional("voluntary_ctxt_switches"),
        nonvoluntary_ctxt_switches=optional("nonvoluntary_ctxt_switches"),
    )


def parse_io(text: str) -> ProcIo:
    """Parse an io accounting record."""
    fields = _parse_key_values(text)
    values = {}
    for key in ("read_bytes", "write_bytes", "cancelled_write_bytes"):
        if key not in fields:
            raise InternalInconsistencyError(f"Malformed io record: missing '{key}'")
        values[key] = _to_int(fields[key], key, "io")
    return ProcIo(**values)


def parse_schedstat(text: str) -> ProcSchedstat:
    """Parse a schedstat line: run time, wait time, timeslices."""
    items = text.split()
    if len(items) < 3:
        raise InternalInconsistencyError(f"Malformed schedstat record: '{text.strip()}'")
    return ProcSchedstat(
        run_time_ns=_to_int(items[0], "run_time", "schedstat"),
        wait_time_ns=_to_int(items[1], "wait_time", "schedstat"),
        timeslices=_to_int(items[2], "timeslices", "schedstat"),
    )


def parse_meminfo_total(text: str) -> int:
    """Return MemTotal in kB from a meminfo record."""
    fields = _parse_key_values(text)
    if "MemTotal" not in fields:
        raise InternalInconsistencyError("Malformed meminfo record: missing 'MemTotal'")
    value = fields["MemTotal"].split()
    if not value:
        raise InternalInconsistencyError("Malformed meminfo record: empty 'MemTotal'")
    return _to_int(value[0], "MemTotal", "meminfo")


_MAPPING_HEADER = re.compile(r"^[0-9a-fA-F]+-[0-9a-fA-F]+\s")


def parse_smaps_stack(text: str) -> StackUsage:
    """
    Sum Size and Referenced over the [stack] mappings of an smaps record.

    A task without a [stack] mapping (kernel threads) reports zero.
    """
    size_kb = 0
    referenced_kb = 0
    in_stack = False
    for line in text.splitlines():
        if _MAPPING_HEADER.match(line):
            in_stack = line.rstrip().endswith("[stack]")
            continue
        if not in_stack:
            continue
        key, sep, value = line.partition(":")
        if not sep or key not in ("Size", "Referenced"):
            continue
        parts = value.split()
        if not parts:
            raise InternalInconsistencyError(f"Malformed smaps record: empty '{key}'")
        amount = _to_int(parts[0], key, "smaps")
        if key == "Size":
            size_kb += amount
        else:
            referenced_kb += amount
    return StackUsage(size_kb=size_kb, referenced_kb=referenced_kb)
