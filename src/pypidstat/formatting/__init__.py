"""
Color and unit formatting of report columns.
"""

from .colors import ANSI_PALETTE, PLAIN_PALETTE, Color, Palette, select_palette
from .values import (
    MemoryUnit,
    PercentageLimit,
    float_color,
    format_floats,
    format_floats_with_unit,
    format_ints,
    format_percentages,
    int_color,
    is_zero_banded,
    percentage_color,
    zero_band_limit,
)

__all__ = [
    "ANSI_PALETTE",
    "PLAIN_PALETTE",
    "Color",
    "Palette",
    "select_palette",
    "MemoryUnit",
    "PercentageLimit",
    "float_color",
    "int_color",
    "percentage_color",
    "is_zero_banded",
    "zero_band_limit",
    "format_floats",
    "format_floats_with_unit",
    "format_ints",
    "format_percentages",
]
