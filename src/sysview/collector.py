"""psutil-backed sampling of CPU, memory, disk and network statistics."""

import re
import time
from typing import Protocol

import psutil
import structlog

from sysview.errors import ErrorKind, SampleError, classify_error
from sysview.models import (
    CpuSnapshot,
    DiskEntry,
    DiskSetSnapshot,
    MemorySnapshot,
    NetworkInterfaceEntry,
    NetworkSetSnapshot,
    SwapInfo,
)

log = structlog.get_logger()

# Filesystems that are not real storage devices
PSEUDO_FILESYSTEMS = frozenset(
    {
        "proc",
        "sysfs",
        "devtmpfs",
        "tmpfs",
        "devpts",
        "cgroup",
        "cgroup2",
        "pstore",
        "bpf",
        "tracefs",
        "debugfs",
        "securityfs",
        "configfs",
        "fusectl",
        "mqueue",
        "hugetlbfs",
        "autofs",
        "squashfs",
        "overlay",
    }
)

LOOPBACK_NAMES = frozenset({"lo", "Loopback", "Loopback Pseudo-Interface 1"})
_LOOPBACK_PATTERN = re.compile(r"^lo\d+$")


def is_loopback(name: str) -> bool:
    """Return True for loopback interface names across platforms."""
    return name in LOOPBACK_NAMES or bool(_LOOPBACK_PATTERN.match(name))


def _clamp_percent(value: float) -> float:
    return min(max(float(value), 0.0), 100.0)


class SystemCollector(Protocol):
    """Four independent sampling operations. Each raises SampleError on failure."""

    def sample_cpu(self) -> CpuSnapshot: ...

    def sample_memory(self) -> MemorySnapshot: ...

    def sample_disk(self) -> DiskSetSnapshot: ...

    def sample_network(self) -> NetworkSetSnapshot: ...


class PsutilCollector:
    """
    SystemCollector implementation using psutil.

    Every psutil failure is converted into a typed SampleError so callers
    never see raw psutil exceptions.
    """

    def __init__(self) -> None:
        # Initialize CPU percent (first call returns 0.0)
        try:
            psutil.cpu_percent(percpu=True)
            psutil.cpu_percent()
        except (OSError, psutil.Error) as exc:
            log.warning("cpu_prime_failed", error=str(exc))

    def sample_cpu(self) -> CpuSnapshot:
        """Collect per-core and total CPU usage (non-blocking, uses previous call's data)."""
        try:
            per_core = [_clamp_percent(usage) for usage in psutil.cpu_percent(percpu=True)]
        except (OSError, psutil.Error) as exc:
            raise classify_error(exc, "CPU", "Failed to collect per-core CPU usage") from exc

        try:
            total = _clamp_percent(psutil.cpu_percent())
        except (OSError, psutil.Error) as exc:
            if not per_core:
                raise classify_error(exc, "CPU", "Failed to collect total CPU usage") from exc
            # Per-core data is enough to derive the total
            total = _clamp_percent(sum(per_core) / len(per_core))

        return CpuSnapshot(
            timestamp=time.time(),
            per_core=tuple(per_core),
            total=total,
            cores=len(per_core),
        )

    def sample_memory(self) -> MemorySnapshot:
        """Collect RAM and swap usage."""
        try:
            vm = psutil.virtual_memory()
        except (OSError, psutil.Error) as exc:
            raise classify_error(
                exc, "Memory", "Failed to collect virtual memory statistics"
            ) from exc

        try:
            sw = psutil.swap_memory()
            swap = SwapInfo(total=sw.total, used=min(sw.used, sw.total), free=sw.free)
        except (OSError, psutil.Error) as exc:
            # RAM figures are still useful without swap
            log.debug("swap_unavailable", error=str(exc))
            swap = SwapInfo()

        return MemorySnapshot(
            timestamp=time.time(),
            total=vm.total,
            used=min(vm.used, vm.total),
            available=vm.available,
            swap=swap,
        )

    def sample_disk(self) -> DiskSetSnapshot:
        """
        Collect usage for every real mounted filesystem.

        Mounts whose usage cannot be read are skipped; the call only fails
        when no filesystem could be read at all.
        """
        try:
            partitions = psutil.disk_partitions(all=False)
        except (OSError, psutil.Error) as exc:
            raise classify_error(exc, "Disk", "Failed to collect disk partitions") from exc

        entries: list[DiskEntry] = []
        last_error: BaseException | None = None

        for partition in partitions:
            if partition.fstype in PSEUDO_FILESYSTEMS:
                continue
            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except (OSError, psutil.Error) as exc:
                # Store the last error but continue with the other mounts
                last_error = exc
                log.debug("disk_usage_failed", mountpoint=partition.mountpoint, error=str(exc))
                continue

            entries.append(
                DiskEntry(
                    device=partition.device,
                    mountpoint=partition.mountpoint,
                    filesystem=partition.fstype,
                    total=usage.total,
                    used=min(usage.used, usage.total),
                    available=usage.free,
                    used_percent=_clamp_percent(usage.percent),
                )
            )

        if entries:
            return DiskSetSnapshot(timestamp=time.time(), entries=tuple(entries))

        if last_error is not None:
            raise classify_error(
                last_error,
                "Disk",
                "Failed to collect disk usage for any filesystem",
                default=ErrorKind.COLLECTION,
            ) from last_error

        raise SampleError(ErrorKind.ACCESS, "Disk", "No accessible disk partitions found")

    def sample_network(self) -> NetworkSetSnapshot:
        """Collect cumulative counters for every non-loopback interface."""
        try:
            counters = psutil.net_io_counters(pernic=True)
        except (OSError, psutil.Error) as exc:
            raise classify_error(
                exc, "Network", "Failed to collect network interface statistics"
            ) from exc

        timestamp = time.time()
        interfaces = tuple(
            NetworkInterfaceEntry(
                name=name,
                bytes_sent=stat.bytes_sent,
                bytes_recv=stat.bytes_recv,
                packets_sent=stat.packets_sent,
                packets_recv=stat.packets_recv,
            )
            for name, stat in sorted(counters.items())
            if not is_loopback(name)
        )

        if not interfaces:
            raise SampleError(
                ErrorKind.ACCESS, "Network", "No accessible network interfaces found"
            )

        return NetworkSetSnapshot(timestamp=timestamp, interfaces=interfaces)
