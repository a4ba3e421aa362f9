"""Shared test fixtures for sysview."""

import threading

import pytest

from sysview.errors import ErrorKind, SampleError
from sysview.models import (
    CpuSnapshot,
    DiskEntry,
    DiskSetSnapshot,
    MemorySnapshot,
    NetworkInterfaceEntry,
    NetworkSetSnapshot,
    SwapInfo,
)


def make_cpu(per_core: tuple[float, ...] = (10.0, 20.0, 30.0, 40.0), timestamp: float = 1000.0):
    """Create a CpuSnapshot whose total is the per-core mean."""
    total = sum(per_core) / len(per_core) if per_core else 0.0
    return CpuSnapshot(timestamp=timestamp, per_core=per_core, total=total, cores=len(per_core))


def make_memory(used: int = 8 * 1024**3, total: int = 16 * 1024**3, timestamp: float = 1000.0):
    """Create a MemorySnapshot with 4 GB of unused swap."""
    return MemorySnapshot(
        timestamp=timestamp,
        total=total,
        used=used,
        available=total - used,
        swap=SwapInfo(total=4 * 1024**3, used=0, free=4 * 1024**3),
    )


def make_disk_entry(mountpoint: str = "/", used_percent: float = 50.0) -> DiskEntry:
    """Create a 100 GB filesystem at the given usage."""
    total = 100 * 1024**3
    used = int(total * used_percent / 100)
    return DiskEntry(
        device="/dev/sda1",
        mountpoint=mountpoint,
        filesystem="ext4",
        total=total,
        used=used,
        available=total - used,
        used_percent=used_percent,
    )


def make_disk(*percents: float, timestamp: float = 1000.0) -> DiskSetSnapshot:
    """Create a DiskSetSnapshot with one filesystem per usage percentage."""
    percents = percents or (50.0,)
    entries = tuple(make_disk_entry(f"/mnt/d{i}", p) for i, p in enumerate(percents))
    return DiskSetSnapshot(timestamp=timestamp, entries=entries)


def make_network(timestamp: float = 1000.0, **counters: tuple[int, int]) -> NetworkSetSnapshot:
    """Create a NetworkSetSnapshot from name=(bytes_sent, bytes_recv) pairs."""
    counters = counters or {"eth0": (1_000_000, 2_000_000)}
    return NetworkSetSnapshot(
        timestamp=timestamp,
        interfaces=tuple(
            NetworkInterfaceEntry(
                name=name,
                bytes_sent=sent,
                bytes_recv=recv,
                packets_sent=sent // 1000,
                packets_recv=recv // 1000,
            )
            for name, (sent, recv) in counters.items()
        ),
    )


def make_error(
    kind: ErrorKind = ErrorKind.PERMISSION,
    component: str = "CPU",
    message: str = "Permission denied accessing CPU information",
) -> SampleError:
    """Create a SampleError."""
    return SampleError(kind, component, message)


class FakeCollector:
    """
    SystemCollector returning canned snapshots.

    Failures can be switched on per resource. `block` holds every call of a
    resource until its event is set; `block_first` holds only the first call.
    """

    def __init__(self) -> None:
        self.failures: dict[str, SampleError | Exception] = {}
        self.calls: dict[str, int] = {"cpu": 0, "memory": 0, "disk": 0, "network": 0}
        self.block: dict[str, threading.Event] = {}
        self.block_first: dict[str, threading.Event] = {}
        self.successes: dict[str, int] = {"cpu": 0, "memory": 0, "disk": 0, "network": 0}
        self._lock = threading.Lock()

    def _call(self, name: str, factory):
        with self._lock:
            self.calls[name] += 1
            first = self.calls[name] == 1
        gate = self.block.get(name)
        if gate is None and first:
            gate = self.block_first.get(name)
        if gate is not None:
            gate.wait(timeout=5.0)
        failure = self.failures.get(name)
        if failure is not None:
            raise failure
        with self._lock:
            self.successes[name] += 1
        return factory()

    def sample_cpu(self) -> CpuSnapshot:
        return self._call("cpu", make_cpu)

    def sample_memory(self) -> MemorySnapshot:
        return self._call("memory", make_memory)

    def sample_disk(self) -> DiskSetSnapshot:
        return self._call("disk", make_disk)

    def sample_network(self) -> NetworkSetSnapshot:
        return self._call("network", make_network)


@pytest.fixture
def fake_collector() -> FakeCollector:
    """A collector that never touches the real system."""
    return FakeCollector()
