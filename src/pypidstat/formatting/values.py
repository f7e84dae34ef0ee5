"""
Column renderers for numeric values.

Every rendered value has the form ``<color> <value><reset>``: a color start
sequence, one separating space, the value right-aligned to the column width,
and the reset sequence. Byte-oriented values carry a one-character unit
suffix after the reset, and the numeric part shrinks by the suffix length so
the column keeps its width.

Unit-upgraded values always show one decimal, so their zero band is the
one-decimal band (±0.05) whatever the column width. A value colored as
non-zero therefore never prints as 0.0.
"""

from enum import Enum, IntEnum
from typing import Iterable, Optional, Tuple

from .colors import Color, Palette

WARNING_NEGATIVE = -5.0
EXTREME_NEGATIVE = -10.0

WARNING_HIGH = 75.0
EXTREME_HIGH = 90.0

WARNING_LOW = 25.0
EXTREME_LOW = 10.0


class MemoryUnit(IntEnum):
    BYTES = 0
    KILOBYTES = 1
    MEGABYTES = 2
    GIGABYTES = 3
    TERABYTES = 4
    PETABYTES = 5

    @property
    def suffix(self) -> str:
        return "BkMGTP"[self.value]

    def upgrade(self, value: float) -> Tuple[float, "MemoryUnit"]:
        """
        Scale a value to the largest unit that keeps its magnitude under 1024.

        Stops at petabytes, however large the value is.
        """
        unit = self
        while abs(value) >= 1024 and unit < MemoryUnit.PETABYTES:
            value /= 1024
            unit = MemoryUnit(unit + 1)
        return value, unit


class PercentageLimit(Enum):
    """Threshold policy for values already expressed as 0-100 percentages."""

    EXTREME_HIGH = "extreme_high"
    EXTREME_LOW = "extreme_low"
    # Like EXTREME_LOW, but values in the zero band are never low-banded
    EXTREME_LOW0 = "extreme_low0"


def zero_band_limit(decimals: int) -> float:
    """Half the smallest step a column with this many decimals can show."""
    if decimals <= 0:
        return 0.5
    if decimals == 1:
        return 0.05
    return 0.005


def is_zero_banded(value: float, decimals: int) -> bool:
    """
    Whether a value would display as zero.

    Without decimals the band is inclusive (±0.5); otherwise it is strict.
    """
    limit = zero_band_limit(decimals)
    if decimals <= 0:
        return -limit <= value <= limit
    return -limit < value < limit


def float_color(value: float, decimals: int) -> Color:
    """Zero band first, then negative-change banding."""
    if is_zero_banded(value, decimals):
        return Color.ZERO_INT_STAT
    if value <= EXTREME_NEGATIVE:
        return Color.EXTREME
    if value <= WARNING_NEGATIVE:
        return Color.WARNING
    return Color.INT_STAT


def int_color(value: int) -> Color:
    if value == 0:
        return Color.ZERO_INT_STAT
    return Color.INT_STAT


def percentage_color(value: float, decimals: int, limit: PercentageLimit) -> Color:
    if limit is PercentageLimit.EXTREME_HIGH:
        if value >= EXTREME_HIGH:
            return Color.EXTREME
        if value >= WARNING_HIGH:
            return Color.WARNING
    elif limit is PercentageLimit.EXTREME_LOW:
        if value <= EXTREME_LOW:
            return Color.EXTREME
        if value <= WARNING_LOW:
            return Color.WARNING
    elif limit is PercentageLimit.EXTREME_LOW0:
        if value >= zero_band_limit(decimals):
            if value <= EXTREME_LOW:
                return Color.EXTREME
            if value <= WARNING_LOW:
                return Color.WARNING
    if is_zero_banded(value, decimals):
        return Color.ZERO_INT_STAT
    return Color.INT_STAT


def _with_unit(value: float, width: int, unit: MemoryUnit, color: Color, palette: Palette) -> str:
    value, unit = unit.upgrade(value)
    value_width = max(width - len(unit.suffix), 0)
    return f"{palette[color]} {value:{value_width}.1f}{palette.reset}{unit.suffix}"


def format_floats(values: Iterable[float], width: int, decimals: int, palette: Palette) -> str:
    return "".join(
        f"{palette[float_color(v, decimals)]} {v:{width}.{decimals}f}{palette.reset}"
        for v in values
    )


def format_floats_with_unit(
    values: Iterable[float], width: int, unit: MemoryUnit, palette: Palette
) -> str:
    """Render float values with one decimal and an upgraded unit suffix."""
    return "".join(
        _with_unit(v, width, unit, float_color(v, 1), palette) for v in values
    )


def format_ints(
    values: Iterable[int], width: int, palette: Palette, unit: Optional[MemoryUnit] = None
) -> str:
    if unit is not None:
        return "".join(_with_unit(float(v), width, unit, int_color(v), palette) for v in values)
    return "".join(f"{palette[int_color(v)]} {v:{width}d}{palette.reset}" for v in values)


def format_percentages(
    values: Iterable[float],
    width: int,
    decimals: int,
    limit: PercentageLimit,
    palette: Palette,
) -> str:
    return "".join(
        f"{palette[percentage_color(v, decimals, limit)]} {v:{width}.{decimals}f}{palette.reset}"
        for v in values
    )
