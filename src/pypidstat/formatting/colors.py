"""
Semantic colors and the escape-code tables they map to.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Color(Enum):
    NORMAL = "normal"
    ITEM_NAME = "item_name"
    INT_STAT = "int_stat"
    ZERO_INT_STAT = "zero_int_stat"
    WARNING = "warning"
    EXTREME = "extreme"


@dataclass(frozen=True)
class Palette:
    """Immutable mapping from semantic color to terminal escape sequence."""

    codes: Mapping[Color, str]

    def __post_init__(self):
        missing = [c.value for c in Color if c not in self.codes]
        if missing:
            raise ValueError(f"Palette is missing colors: {missing}")
        object.__setattr__(self, "codes", MappingProxyType(dict(self.codes)))

    def __getitem__(self, color: Color) -> str:
        return self.codes[color]

    @property
    def reset(self) -> str:
        return self.codes[Color.NORMAL]


ANSI_PALETTE = Palette({
    Color.NORMAL: "\x1b[0m",
    Color.ITEM_NAME: "\x1b[32;22m",      # light green
    Color.INT_STAT: "\x1b[34;1m",        # bold blue
    Color.ZERO_INT_STAT: "\x1b[34;22m",  # light blue
    Color.WARNING: "\x1b[35;1m",         # bold magenta
    Color.EXTREME: "\x1b[31;1m",         # bold red
})

PLAIN_PALETTE = Palette({color: "" for color in Color})


def select_palette(mode: str, is_terminal: bool) -> Palette:
    """
    Pick a palette for a color mode ("auto", "always" or "never").

    "auto" colors only when output goes to a terminal.
    """
    if mode == "always":
        return ANSI_PALETTE
    if mode == "never":
        return PLAIN_PALETTE
    if mode == "auto":
        return ANSI_PALETTE if is_terminal else PLAIN_PALETTE
    raise ValueError(f"Unknown color mode: {mode}")
