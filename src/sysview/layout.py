"""Responsive layout selection from the terminal size."""

from dataclasses import dataclass
from enum import Enum

MIN_WIDTH = 80
MIN_HEIGHT = 24

# Borders and inter-panel gap (columns), header/footer and spacing (rows)
HORIZONTAL_RESERVE = 6
VERTICAL_RESERVE = 6

MIN_PANEL_WIDTH = 30
MIN_PANEL_HEIGHT = 8


class Layout(Enum):
    """Panel arrangements."""

    GRID_2X2 = "grid"
    STACKED = "stacked"


@dataclass(slots=True, frozen=True)
class PanelSize:
    """Content size of a single panel."""

    width: int
    height: int


def select_layout(width: int, height: int) -> Layout:
    """Stack panels vertically when the terminal is smaller than 80x24."""
    if width < MIN_WIDTH or height < MIN_HEIGHT:
        return Layout.STACKED
    return Layout.GRID_2X2


def panel_size(width: int, height: int) -> PanelSize:
    """
    Per-panel content size for the 2x2 grid.

    Panels never shrink below 30x8, even if that makes them overflow the
    terminal.
    """
    return PanelSize(
        width=max((width - HORIZONTAL_RESERVE) // 2, MIN_PANEL_WIDTH),
        height=max((height - VERTICAL_RESERVE) // 2, MIN_PANEL_HEIGHT),
    )
