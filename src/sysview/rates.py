"""Network throughput derived from successive cumulative counters."""

from collections.abc import Mapping

from sysview.models import NetworkSetSnapshot, RateSample

HIGH_ACTIVITY_RATE = 1024 * 1024  # 1 MB/s, send + receive


def _rate(current: int, previous: int, dt: float) -> float:
    # A counter that went backwards wrapped or was reset: report 0 for this round
    if current < previous:
        return 0.0
    return (current - previous) / dt


def compute_rates(
    previous: NetworkSetSnapshot | None,
    current: NetworkSetSnapshot,
) -> dict[str, RateSample]:
    """
    Compute per-interface send/receive rates between two snapshots.

    Only interfaces present in both snapshots get an entry. Interfaces are
    skipped when the elapsed time is not positive.

    Args:
        previous: The earlier snapshot, or None on the very first sample.
        current: The latest snapshot.

    Returns:
        Mapping from interface name to its RateSample in bytes/second.
    """
    if previous is None:
        return {}

    dt = current.timestamp - previous.timestamp
    if dt <= 0:
        return {}

    before = previous.by_name()
    rates: dict[str, RateSample] = {}
    for entry in current.interfaces:
        prev = before.get(entry.name)
        if prev is None:
            continue
        rates[entry.name] = RateSample(
            send_rate=_rate(entry.bytes_sent, prev.bytes_sent, dt),
            recv_rate=_rate(entry.bytes_recv, prev.bytes_recv, dt),
        )
    return rates


def total_send_rate(rates: Mapping[str, RateSample]) -> float:
    """Sum of send rates across all interfaces."""
    return sum(sample.send_rate for sample in rates.values())


def total_recv_rate(rates: Mapping[str, RateSample]) -> float:
    """Sum of receive rates across all interfaces."""
    return sum(sample.recv_rate for sample in rates.values())


def high_activity_interfaces(
    rates: Mapping[str, RateSample],
    threshold: float = HIGH_ACTIVITY_RATE,
) -> list[str]:
    """Names of interfaces whose combined rate is at or above threshold, sorted."""
    return sorted(name for name, sample in rates.items() if sample.total >= threshold)
