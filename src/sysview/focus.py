"""Keyboard focus navigation over the 2x2 panel grid.

    CPU    | Memory
    -------+--------
    Disk   | Network

Horizontal movement cycles through all four panels and wraps; vertical
movement switches rows and stops at the edges.
"""

from enum import Enum

from sysview.models import ResourceKind


class Direction(Enum):
    """Navigation directions."""

    FORWARD = "forward"
    BACKWARD = "backward"
    UP = "up"
    DOWN = "down"


_CYCLE = list(ResourceKind)

_DOWN = {
    ResourceKind.CPU: ResourceKind.DISK,
    ResourceKind.MEMORY: ResourceKind.NETWORK,
}

_UP = {
    ResourceKind.DISK: ResourceKind.CPU,
    ResourceKind.NETWORK: ResourceKind.MEMORY,
}


def navigate(focus: ResourceKind, direction: Direction) -> ResourceKind:
    """Return the panel focused after moving from `focus` in `direction`."""
    if direction is Direction.FORWARD:
        return _CYCLE[(_CYCLE.index(focus) + 1) % len(_CYCLE)]
    if direction is Direction.BACKWARD:
        return _CYCLE[(_CYCLE.index(focus) - 1) % len(_CYCLE)]
    if direction is Direction.DOWN:
        return _DOWN.get(focus, focus)
    return _UP.get(focus, focus)
