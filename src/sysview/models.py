"""Data models for sysview."""

from dataclasses import dataclass
from enum import Enum


class ResourceKind(Enum):
    """The four sampled resources, in focus-cycle order."""

    CPU = "cpu"
    MEMORY = "memory"
    DISK = "disk"
    NETWORK = "network"

    @property
    def label(self) -> str:
        """Component name used in errors and panel titles."""
        return "CPU" if self is ResourceKind.CPU else self.value.capitalize()


def _check_percent(name: str, value: float) -> None:
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be within 0-100, got {value}")


def _check_used(name: str, used: int, total: int) -> None:
    if used > total:
        raise ValueError(f"{name}: used ({used}) exceeds total ({total})")


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    """Immutable snapshot of CPU utilisation."""

    timestamp: float
    per_core: tuple[float, ...]  # 0.0 - 100.0 per logical core
    total: float  # 0.0 - 100.0
    cores: int

    def __post_init__(self) -> None:
        if len(self.per_core) != self.cores:
            raise ValueError(
                f"per_core has {len(self.per_core)} entries but cores is {self.cores}"
            )
        _check_percent("total", self.total)
        for usage in self.per_core:
            _check_percent("core usage", usage)


@dataclass(slots=True, frozen=True)
class SwapInfo:
    """Swap space usage in bytes."""

    total: int = 0
    used: int = 0
    free: int = 0

    def __post_init__(self) -> None:
        _check_used("swap", self.used, self.total)

    @property
    def used_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.used / self.total * 100


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Immutable snapshot of RAM and swap usage."""

    timestamp: float
    total: int  # Bytes
    used: int
    available: int
    swap: SwapInfo = SwapInfo()

    def __post_init__(self) -> None:
        _check_used("memory", self.used, self.total)

    @property
    def used_percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.used / self.total * 100


@dataclass(slots=True, frozen=True)
class DiskEntry:
    """Usage of one mounted filesystem."""

    device: str
    mountpoint: str
    filesystem: str
    total: int  # Bytes
    used: int
    available: int
    used_percent: float

    def __post_init__(self) -> None:
        _check_used(self.mountpoint, self.used, self.total)
        _check_percent("used_percent", self.used_percent)


@dataclass(slots=True, frozen=True)
class DiskSetSnapshot:
    """Immutable snapshot of every real filesystem."""

    timestamp: float
    entries: tuple[DiskEntry, ...]

    @property
    def total(self) -> int:
        return sum(entry.total for entry in self.entries)

    @property
    def used(self) -> int:
        return sum(entry.used for entry in self.entries)


@dataclass(slots=True, frozen=True)
class NetworkInterfaceEntry:
    """Cumulative counters of one network interface."""

    name: str
    bytes_sent: int
    bytes_recv: int
    packets_sent: int
    packets_recv: int


@dataclass(slots=True, frozen=True)
class NetworkSetSnapshot:
    """Immutable snapshot of every non-loopback interface."""

    timestamp: float
    interfaces: tuple[NetworkInterfaceEntry, ...]

    def by_name(self) -> dict[str, NetworkInterfaceEntry]:
        """Index interfaces by name."""
        return {entry.name: entry for entry in self.interfaces}


@dataclass(slots=True, frozen=True)
class RateSample:
    """Transfer rates of one interface, in bytes per second."""

    send_rate: float
    recv_rate: float

    def __post_init__(self) -> None:
        if self.send_rate < 0 or self.recv_rate < 0:
            raise ValueError("rates must be non-negative")

    @property
    def total(self) -> float:
        return self.send_rate + self.recv_rate


Snapshot = CpuSnapshot | MemorySnapshot | DiskSetSnapshot | NetworkSetSnapshot
