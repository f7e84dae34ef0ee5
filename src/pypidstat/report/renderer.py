"""
Report rendering.

This module composes formatted columns into header lines and per-entity value
lines, one metric group at a time, for a process and optionally its threads.
Column widths, decimals and header texts match the classic pidstat layout.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..formatting import (
    Color,
    MemoryUnit,
    Palette,
    PercentageLimit,
    format_floats,
    format_floats_with_unit,
    format_ints,
    format_percentages,
)
from ..models import Identity, MetricGroup, Snapshot, TaskGroupSnapshot
from ..rates import cpu_rates, ctx_switch_rates, io_rates, mem_rates
from ..validation.exceptions import InternalInconsistencyError

logger = logging.getLogger(__name__)


class TidDisplay(Enum):
    """Identity column layout."""

    # Single PID column
    PID = "pid"
    # TGID and TID columns, used when threads are reported
    TID = "tid"


GROUP_HEADERS = {
    MetricGroup.CPU: "    %usr %system  %guest   %wait    %CPU   CPU  Command",
    MetricGroup.MEM: "  minflt/s  majflt/s     VSZ     RSS   %MEM  Command",
    MetricGroup.STACK: " StkSize  StkRef  Command",
    MetricGroup.IO: "   kB_rd/s   kB_wr/s kB_ccwr/s iodelay  Command",
    MetricGroup.CTX_SWITCH: "   cswch/s nvcswch/s  Command",
}


def id_header(mode: TidDisplay) -> str:
    if mode is TidDisplay.TID:
        return "   UID      TGID       TID"
    return "   UID       PID"


class ReportRenderer:
    """
    Renders snapshots as colored, column-aligned report lines.

    The renderer holds only its palette; every method is a pure function of
    its arguments.
    """

    def __init__(self, palette: Palette):
        self.palette = palette

    def _paint(self, color: Color, text: str) -> str:
        return f"{self.palette[color]}{text}{self.palette.reset}"

    def header(self, group: MetricGroup, mode: TidDisplay) -> str:
        """Return the header line of a metric group."""
        return id_header(mode) + GROUP_HEADERS[group]

    def id_columns(self, identity: Identity, mode: TidDisplay) -> str:
        target = identity.target
        text = self._paint(Color.ITEM_NAME, f" {identity.uid:5d}")
        if mode is TidDisplay.PID:
            ids = f" {target.pid:9d}"
        elif target.tid is None:
            ids = f" {target.pid:9d}         -"
        else:
            ids = f"         - {target.tid:9d}"
        return text + self._paint(Color.ITEM_NAME, ids)

    def command_column(self, identity: Identity) -> str:
        if identity.target.is_thread:
            return self._paint(Color.ZERO_INT_STAT, f"  |__{identity.command}")
        return self._paint(Color.INT_STAT, f"  {identity.command}")

    def _cpu_values(self, prev: Snapshot, curr: Snapshot, elapsed: float) -> str:
        rates = cpu_rates(prev.counters_for(MetricGroup.CPU), curr.counters_for(MetricGroup.CPU), elapsed)
        text = format_percentages(
            [rates.user, rates.system, rates.guest, rates.wait, rates.total],
            width=7,
            decimals=2,
            limit=PercentageLimit.EXTREME_HIGH,
            palette=self.palette,
        )
        processor = "-" if rates.processor is None else rates.processor
        return text + self._paint(Color.ITEM_NAME, f"   {processor:3}")

    def _mem_values(self, prev: Snapshot, curr: Snapshot, elapsed: float) -> str:
        rates = mem_rates(prev.counters_for(MetricGroup.MEM), curr.counters_for(MetricGroup.MEM), elapsed)
        return (
            format_floats([rates.minor_faults, rates.major_faults], width=9, decimals=2, palette=self.palette)
            + format_ints([rates.vsz_kb, rates.rss_kb], width=7, palette=self.palette, unit=MemoryUnit.KILOBYTES)
            + format_percentages(
                [rates.mem_percent],
                width=6,
                decimals=2,
                limit=PercentageLimit.EXTREME_HIGH,
                palette=self.palette,
            )
        )

    def _stack_values(self, curr: Snapshot) -> str:
        stack = curr.counters_for(MetricGroup.STACK)
        return format_ints(
            [stack.size_kb, stack.referenced_kb], width=7, palette=self.palette, unit=MemoryUnit.KILOBYTES
        )

    def _io_values(self, prev: Snapshot, curr: Snapshot, elapsed: float) -> str:
        rates = io_rates(prev.counters_for(MetricGroup.IO), curr.counters_for(MetricGroup.IO), elapsed)
        return (
            format_floats_with_unit(
                [rates.read_bytes, rates.write_bytes, rates.cancelled_write_bytes],
                width=9,
                unit=MemoryUnit.BYTES,
                palette=self.palette,
            )
            + format_ints([rates.blkio_delay_ticks], width=7, palette=self.palette)
        )

    def _ctx_switch_values(self, prev: Snapshot, curr: Snapshot, elapsed: float) -> str:
        rates = ctx_switch_rates(
            prev.counters_for(MetricGroup.CTX_SWITCH), curr.counters_for(MetricGroup.CTX_SWITCH), elapsed
        )
        return format_floats([rates.voluntary, rates.involuntary], width=9, decimals=2, palette=self.palette)

    def row(
        self,
        group: MetricGroup,
        prev: Optional[Snapshot],
        curr: Snapshot,
        mode: TidDisplay,
    ) -> str:
        """
        Render one entity's line for a metric group.

        The stack group only looks at ``curr``; every other group needs the
        previous snapshot of the same entity.

        Raises:
            InternalInconsistencyError: If a needed snapshot or group is missing.
        """
        if group is MetricGroup.STACK:
            values = self._stack_values(curr)
        else:
            if prev is None:
                raise InternalInconsistencyError(
                    f"{group.value} row for {curr.target} needs a previous snapshot"
                )
            elapsed = curr.taken_at - prev.taken_at
            if group is MetricGroup.CPU:
                values = self._cpu_values(prev, curr, elapsed)
            elif group is MetricGroup.MEM:
                values = self._mem_values(prev, curr, elapsed)
            elif group is MetricGroup.IO:
                values = self._io_values(prev, curr, elapsed)
            else:
                values = self._ctx_switch_values(prev, curr, elapsed)
        return self.id_columns(curr.identity, mode) + values + self.command_column(curr.identity)

    def render_task_group(self, prev: TaskGroupSnapshot, curr: TaskGroupSnapshot) -> str:
        """
        Render every active metric group of a task group.

        For each group: a header, the process row, then one row per thread
        present in both the previous and the current thread map. Threads seen
        for the first time have no baseline and appear from the next cycle on.
        """
        mode = TidDisplay.TID if curr.has_threads else TidDisplay.PID
        lines: List[str] = []
        for group in MetricGroup.report_order():
            if not curr.process.has(group):
                continue
            lines.append(self.header(group, mode))
            lines.append(self.row(group, prev.process, curr.process, mode))
            for tid, thread in curr.threads.items():
                prev_thread = prev.threads.get(tid)
                if prev_thread is None:
                    logger.debug(f"Skipping new thread {tid} of pid {curr.pid} until it has a baseline")
                    continue
                lines.append(self.row(group, prev_thread, thread, mode))
        return "".join(line + "\n" for line in lines)
