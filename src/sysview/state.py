"""Aggregate dashboard state and the reducer that advances it.

The state is an immutable value. It only changes by applying one event at a
time through `reduce`, which always returns a new AggregateState and never
touches more than one resource's data per event. Side effects that a key
press asks for (quitting, an out-of-cycle refresh) are reported separately by
`effect_for` and carried out by whoever owns the Store.
"""

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType

import structlog

from sysview.errors import SampleError
from sysview.focus import Direction, navigate
from sysview.models import (
    CpuSnapshot,
    DiskSetSnapshot,
    MemorySnapshot,
    NetworkSetSnapshot,
    RateSample,
    ResourceKind,
    Snapshot,
)
from sysview.rates import compute_rates

log = structlog.get_logger()

DEFAULT_HISTORY_SIZE = 60

_SNAPSHOT_TYPES: dict[ResourceKind, type] = {
    ResourceKind.CPU: CpuSnapshot,
    ResourceKind.MEMORY: MemorySnapshot,
    ResourceKind.DISK: DiskSetSnapshot,
    ResourceKind.NETWORK: NetworkSetSnapshot,
}


# ─────────────────────────────────────────────────────────────────────────────
# Events
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class Tick:
    """A sampling round was started."""

    at: float = field(default_factory=time.time)


@dataclass(slots=True, frozen=True)
class SampleSucceeded:
    """A collector returned a fresh snapshot."""

    kind: ResourceKind
    snapshot: Snapshot

    def __post_init__(self) -> None:
        expected = _SNAPSHOT_TYPES[self.kind]
        if not isinstance(self.snapshot, expected):
            raise TypeError(
                f"{self.kind.name} result must be {expected.__name__}, "
                f"got {type(self.snapshot).__name__}"
            )


@dataclass(slots=True, frozen=True)
class SampleFailed:
    """A collector raised a typed error."""

    kind: ResourceKind
    error: SampleError


@dataclass(slots=True, frozen=True)
class KeyPressed:
    """A key was pressed; `key` uses Textual key names ("tab", "question_mark")."""

    key: str


@dataclass(slots=True, frozen=True)
class ViewportResized:
    """The terminal changed size."""

    width: int
    height: int


Event = Tick | SampleSucceeded | SampleFailed | KeyPressed | ViewportResized


# ─────────────────────────────────────────────────────────────────────────────
# Keys
# ─────────────────────────────────────────────────────────────────────────────


class KeyAction(Enum):
    """What a key press means, in precedence order."""

    QUIT = "quit"
    HELP = "help"
    REFRESH = "refresh"
    FORWARD = "forward"
    BACKWARD = "backward"
    DOWN = "down"
    UP = "up"


class Effect(Enum):
    """Side effects requested by an event, executed outside the reducer."""

    QUIT = "quit"
    REFRESH = "refresh"


@dataclass(slots=True, frozen=True)
class KeyMap:
    """Keyboard shortcuts, as Textual key names."""

    quit: tuple[str, ...] = ("q", "ctrl+c")
    help: tuple[str, ...] = ("question_mark", "h")
    refresh: tuple[str, ...] = ("r",)
    forward: tuple[str, ...] = ("tab", "right", "l")
    backward: tuple[str, ...] = ("shift+tab", "left")
    down: tuple[str, ...] = ("down", "j")
    up: tuple[str, ...] = ("up", "k")

    def resolve(self, key: str) -> KeyAction | None:
        """Return the action bound to `key`; earlier actions win on conflicts."""
        for action in KeyAction:
            if key in getattr(self, action.value):
                return action
        return None

    def all_keys(self) -> list[str]:
        """Every bound key, without duplicates, in precedence order."""
        keys: list[str] = []
        for action in KeyAction:
            for key in getattr(self, action.value):
                if key not in keys:
                    keys.append(key)
        return keys


DEFAULT_KEYMAP = KeyMap()

_NAVIGATION = {
    KeyAction.FORWARD: Direction.FORWARD,
    KeyAction.BACKWARD: Direction.BACKWARD,
    KeyAction.DOWN: Direction.DOWN,
    KeyAction.UP: Direction.UP,
}


# ─────────────────────────────────────────────────────────────────────────────
# State
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class ComponentStatus:
    """Health of one resource, independent of its data."""

    ok: bool = False
    last_error: SampleError | None = None
    last_success_at: float | None = None
    last_attempt_at: float | None = None

    @property
    def sampled(self) -> bool:
        """Whether any attempt has completed yet."""
        return self.last_attempt_at is not None

    @property
    def degraded(self) -> bool:
        return self.last_error is not None

    def succeeded(self, at: float) -> "ComponentStatus":
        return ComponentStatus(ok=True, last_error=None, last_success_at=at, last_attempt_at=at)

    def failed(self, error: SampleError) -> "ComponentStatus":
        return ComponentStatus(
            ok=False,
            last_error=error,
            last_success_at=self.last_success_at,
            last_attempt_at=error.timestamp,
        )


def _initial_statuses() -> Mapping[ResourceKind, ComponentStatus]:
    return MappingProxyType({kind: ComponentStatus() for kind in ResourceKind})


def _no_rates() -> Mapping[str, RateSample]:
    return MappingProxyType({})


@dataclass(slots=True, frozen=True)
class AggregateState:
    """Everything the dashboard renders, as one immutable value."""

    cpu: CpuSnapshot | None = None
    memory: MemorySnapshot | None = None
    disk: DiskSetSnapshot | None = None
    network: NetworkSetSnapshot | None = None
    # Read-only views; every change builds a new mapping
    statuses: Mapping[ResourceKind, ComponentStatus] = field(default_factory=_initial_statuses)
    previous_network: NetworkSetSnapshot | None = None
    rates: Mapping[str, RateSample] = field(default_factory=_no_rates)
    cpu_history: tuple[float, ...] = ()
    history_size: int = DEFAULT_HISTORY_SIZE
    focused: ResourceKind = ResourceKind.CPU
    width: int = 80
    height: int = 24
    show_help: bool = False
    tick_count: int = 0
    last_tick_at: float | None = None

    def snapshot(self, kind: ResourceKind) -> Snapshot | None:
        """Latest snapshot of `kind`, or None before the first success."""
        return getattr(self, kind.value)

    def status(self, kind: ResourceKind) -> ComponentStatus:
        return self.statuses[kind]

    def is_degraded(self, kind: ResourceKind) -> bool:
        return self.statuses[kind].degraded


# ─────────────────────────────────────────────────────────────────────────────
# Reducer
# ─────────────────────────────────────────────────────────────────────────────


def _apply_success(state: AggregateState, event: SampleSucceeded) -> AggregateState:
    snapshot = event.snapshot
    status = state.statuses[event.kind].succeeded(snapshot.timestamp)
    statuses = MappingProxyType({**state.statuses, event.kind: status})

    if event.kind is ResourceKind.NETWORK:
        rates = state.rates
        if state.previous_network is not None:
            rates = MappingProxyType(compute_rates(state.previous_network, snapshot))
        return replace(
            state,
            network=snapshot,
            previous_network=snapshot,
            rates=rates,
            statuses=statuses,
        )

    if event.kind is ResourceKind.CPU:
        # Ring buffer of total usage for the session sparkline
        history = (*state.cpu_history, snapshot.total)[-max(state.history_size, 1) :]
        return replace(state, cpu=snapshot, cpu_history=history, statuses=statuses)

    return replace(state, statuses=statuses, **{event.kind.value: snapshot})


def _apply_failure(state: AggregateState, event: SampleFailed) -> AggregateState:
    failed = state.statuses[event.kind].failed(event.error)
    statuses = MappingProxyType({**state.statuses, event.kind: failed})
    return replace(state, statuses=statuses)


def _apply_key(state: AggregateState, event: KeyPressed, keys: KeyMap) -> AggregateState:
    action = keys.resolve(event.key)
    if action is KeyAction.HELP:
        return replace(state, show_help=not state.show_help)
    if action in _NAVIGATION:
        focused = navigate(state.focused, _NAVIGATION[action])
        if focused is state.focused:
            return state
        return replace(state, focused=focused)
    # Quit, refresh and unbound keys leave the state as it is
    return state


def reduce(state: AggregateState, event: Event, keys: KeyMap = DEFAULT_KEYMAP) -> AggregateState:
    """Apply one event to `state` and return the resulting state.

    Pure: no I/O, no mutation of `state`.
    """
    match event:
        case Tick(at=at):
            return replace(state, tick_count=state.tick_count + 1, last_tick_at=at)
        case SampleSucceeded():
            return _apply_success(state, event)
        case SampleFailed():
            return _apply_failure(state, event)
        case KeyPressed():
            return _apply_key(state, event, keys)
        case ViewportResized(width=width, height=height):
            return replace(state, width=width, height=height)
    raise TypeError(f"Unknown event: {event!r}")


def effect_for(event: Event, keys: KeyMap = DEFAULT_KEYMAP) -> Effect | None:
    """Side effect requested by `event`, if any."""
    if not isinstance(event, KeyPressed):
        return None
    action = keys.resolve(event.key)
    if action is KeyAction.QUIT:
        return Effect.QUIT
    if action is KeyAction.REFRESH:
        return Effect.REFRESH
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Store
# ─────────────────────────────────────────────────────────────────────────────


Subscriber = Callable[[AggregateState], None]


class Store:
    """
    Holds the current AggregateState and applies events to it.

    Not thread-safe: events must be dispatched from a single thread. Sampling
    threads hand their results over through the scheduler's event queue.
    """

    def __init__(
        self,
        initial: AggregateState | None = None,
        keys: KeyMap = DEFAULT_KEYMAP,
    ) -> None:
        self._state = initial if initial is not None else AggregateState()
        self._keys = keys
        self._subscribers: list[Subscriber] = []

    @property
    def state(self) -> AggregateState:
        """The current state (read-only value)."""
        return self._state

    @property
    def keys(self) -> KeyMap:
        return self._keys

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with every new state. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dispatch(self, event: Event) -> Effect | None:
        """Reduce `event` into the state, notify subscribers and return its effect."""
        previous = self._state
        self._state = reduce(previous, event, self._keys)
        self._log_transition(previous, event)

        for callback in list(self._subscribers):
            callback(self._state)

        return effect_for(event, self._keys)

    def _log_transition(self, previous: AggregateState, event: Event) -> None:
        if isinstance(event, SampleFailed):
            error = event.error
            log.warning(
                "sample_failed",
                component=error.component,
                kind=error.kind.value,
                recoverable=error.recoverable,
                error=error.message,
            )
        elif isinstance(event, SampleSucceeded) and previous.is_degraded(event.kind):
            log.info("sample_recovered", component=event.kind.label)
