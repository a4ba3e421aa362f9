"""Sampling scheduler for sysview."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from queue import Queue

import structlog

from sysview.collector import SystemCollector
from sysview.errors import ErrorKind, SampleError, classify_error
from sysview.models import ResourceKind, Snapshot
from sysview.state import Event, SampleFailed, SampleSucceeded, Tick

log = structlog.get_logger()


@dataclass(slots=True)
class _Launch:
    """Bookkeeping for one running sample."""

    seq: int  # Per-resource launch number, increasing
    started_at: float  # time.monotonic()


class Scheduler:
    """
    Ticker that starts one sampling round per interval.

    Each round puts a Tick on the event queue and samples every resource on
    its own daemon thread, whether or not earlier samples of that resource
    are still running. Every launch carries a per-resource sequence number;
    a result older than one already reported for its resource is dropped, so
    the newest sample always wins. The ticker never waits for samples, so a
    slow or hung collector only delays its own resource.
    """

    def __init__(
        self,
        collector: SystemCollector,
        events: Queue[Event],
        interval: float = 1.0,
        sample_timeout: float | None = None,
    ) -> None:
        """
        Initialize the Scheduler.

        Args:
            collector: Source of the four resource snapshots.
            events: Thread-safe queue receiving ticks and sample results.
            interval: Seconds between rounds. Any positive value is accepted.
            sample_timeout: Seconds after which a running sample is abandoned
                and reported as a temporary error. None or 0 disables it.
        """
        self._collector = collector
        self._events = events
        self.interval = interval
        self._sample_timeout = sample_timeout or None
        self._operations: dict[ResourceKind, Callable[[], Snapshot]] = {
            ResourceKind.CPU: collector.sample_cpu,
            ResourceKind.MEMORY: collector.sample_memory,
            ResourceKind.DISK: collector.sample_disk,
            ResourceKind.NETWORK: collector.sample_network,
        }
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._launched: dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}
        self._reported: dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}
        self._running: dict[ResourceKind, list[_Launch]] = {kind: [] for kind in ResourceKind}

    @property
    def interval(self) -> float:
        """Get the current interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the interval. No floor is enforced."""
        if value <= 0:
            raise ValueError(f"interval must be positive, got {value}")
        self._interval = value

    @property
    def sample_timeout(self) -> float | None:
        return self._sample_timeout

    @property
    def is_running(self) -> bool:
        """Check if the ticker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the ticker thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="Scheduler",
        )
        self._thread.start()
        log.info("scheduler_started", interval=self._interval, sample_timeout=self._sample_timeout)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the ticker thread.

        Samples still running are abandoned, not joined; their results are
        dropped.

        Args:
            timeout: How long to wait for the ticker to stop (seconds).
        """
        self._stop_event.set()
        with self._lock:
            for kind in ResourceKind:
                self._reported[kind] = self._launched[kind]
                self._running[kind].clear()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            log.info("scheduler_stopped")

    def refresh(self) -> None:
        """Start an out-of-cycle sampling round right away."""
        log.debug("manual_refresh")
        self._run_round()

    def _tick_loop(self) -> None:
        """Main ticker loop running in the background thread."""
        while not self._stop_event.is_set():
            self._run_round()
            # Wait for the interval or until stop is requested
            self._stop_event.wait(timeout=self._interval)

    def _run_round(self) -> None:
        """Emit a Tick and launch one sample per resource."""
        self._events.put(Tick())
        now = time.monotonic()
        launches: list[tuple[ResourceKind, _Launch]] = []

        with self._lock:
            for kind in ResourceKind:
                self._expire(kind, now)
                self._launched[kind] += 1
                launch = _Launch(seq=self._launched[kind], started_at=now)
                self._running[kind].append(launch)
                launches.append((kind, launch))

        for kind, launch in launches:
            threading.Thread(
                target=self._sample,
                args=(kind, launch),
                daemon=True,
                name=f"sample-{kind.value}",
            ).start()

    def _expire(self, kind: ResourceKind, now: float) -> None:
        """Report running samples of `kind` older than the timeout. Caller holds the lock."""
        if self._sample_timeout is None:
            return

        running = self._running[kind]
        overdue = [job for job in running if now - job.started_at >= self._sample_timeout]
        if not overdue:
            return

        self._running[kind] = [job for job in running if job not in overdue]
        newest = max(job.seq for job in overdue)
        log.warning(
            "sample_timed_out",
            component=kind.label,
            timeout=self._sample_timeout,
            abandoned=len(overdue),
        )
        if newest <= self._reported[kind]:
            # A newer sample already reported; the overdue ones are stale anyway
            return

        self._reported[kind] = newest
        error = SampleError(
            ErrorKind.TEMPORARY,
            kind.label,
            f"Sampling timed out after {self._sample_timeout:g}s",
        )
        self._events.put(SampleFailed(kind, error))

    def _sample(self, kind: ResourceKind, launch: _Launch) -> None:
        """Run one collector operation and report its outcome."""
        event: Event
        try:
            event = SampleSucceeded(kind, self._operations[kind]())
        except SampleError as exc:
            event = SampleFailed(kind, exc)
        except Exception as exc:
            # Unexpected collector failures are contained to this resource
            event = SampleFailed(kind, classify_error(exc, kind.label))

        with self._lock:
            if launch in self._running[kind]:
                self._running[kind].remove(launch)
            if launch.seq <= self._reported[kind]:
                log.debug("stale_sample_discarded", component=kind.label, seq=launch.seq)
                return
            self._reported[kind] = launch.seq
            # Queued under the lock so results of one resource keep launch order
            self._events.put(event)
