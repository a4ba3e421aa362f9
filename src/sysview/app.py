"""sysview - Main Textual application."""

from datetime import datetime
from queue import Empty, Queue

import structlog
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Static

from sysview.collector import PsutilCollector, SystemCollector
from sysview.config import Config, ThresholdsConfig
from sysview.errors import ErrorKind, SampleError
from sysview.formatting import help_text, render_error_panel, render_panel
from sysview.layout import Layout, PanelSize, panel_size, select_layout
from sysview.models import ResourceKind
from sysview.scheduler import Scheduler
from sysview.state import (
    DEFAULT_KEYMAP,
    AggregateState,
    Effect,
    Event,
    KeyPressed,
    Store,
    ViewportResized,
)

log = structlog.get_logger()

# How often the UI thread drains the event queue (seconds)
DRAIN_INTERVAL = 0.05

_BINDING_LABELS = {"q": "Quit", "tab": "Navigate", "r": "Refresh", "question_mark": "Help"}


class ResourcePanel(Static):
    """Bordered panel showing one resource."""

    DEFAULT_CSS = """
    ResourcePanel {
        border: round $secondary;
        padding: 0 1;
        height: 1fr;
        min-width: 30;
        min-height: 8;
    }

    ResourcePanel.focused {
        border: round $accent;
    }
    """

    def __init__(self, kind: ResourceKind, **kwargs) -> None:
        """Initialize ResourcePanel."""
        super().__init__(id=kind.value, **kwargs)
        self.kind = kind

    def show_state(
        self,
        state: AggregateState,
        size: PanelSize,
        thresholds: ThresholdsConfig,
    ) -> None:
        """Re-render the panel body from `state`."""
        try:
            body = render_panel(self.kind, state, size, thresholds)
        except Exception as exc:
            # A broken panel must not take the other panels down with it
            error = SampleError(ErrorKind.PRESENTATION, self.kind.label, str(exc), original=exc)
            log.error("render_failed", component=error.component, error=str(error))
            body = render_error_panel(self.kind, error.message)
        self.update(body)
        self.set_class(state.focused is self.kind, "focused")


class SysviewApp(App):
    """Main sysview application."""

    TITLE = "sysview"
    SUB_TITLE = "System Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #title {
        dock: top;
        height: 1;
        width: 100%;
        content-align: center middle;
        text-style: bold;
    }

    #panels {
        height: 1fr;
    }

    #panels.grid {
        layout: grid;
        grid-size: 2 2;
        grid-gutter: 0 1;
    }

    #panels.stacked {
        layout: vertical;
        overflow-y: auto;
    }

    #panels.stacked ResourcePanel {
        height: auto;
    }

    #help {
        display: none;
        height: 1fr;
        border: round $accent;
        padding: 1 2;
        margin: 1 2;
    }
    """

    BINDINGS = [
        Binding(
            key,
            f"press_key('{key}')",
            description=_BINDING_LABELS.get(key, ""),
            show=key in _BINDING_LABELS,
            priority=True,
        )
        for key in DEFAULT_KEYMAP.all_keys()
    ]

    def __init__(
        self,
        config: Config | None = None,
        collector: SystemCollector | None = None,
    ) -> None:
        """Initialize the SysviewApp."""
        super().__init__()
        self._config = config or Config()
        self._events: Queue[Event] = Queue()
        self._store = Store(AggregateState(history_size=self._config.display.history_size))
        self._scheduler = Scheduler(
            collector or PsutilCollector(),
            self._events,
            interval=self._config.sampling.interval,
            sample_timeout=self._config.sampling.timeout,
        )
        self._panels_ready = False
        self._store.subscribe(self._render_state)

    @property
    def store(self) -> Store:
        return self._store

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static("System Monitor", id="title")
        with Container(id="panels", classes="grid"):
            for kind in ResourceKind:
                yield ResourcePanel(kind)
        yield Static(help_text(self._store.keys), id="help")
        yield Footer()

    def on_mount(self) -> None:
        """Start sampling once the widgets exist."""
        self._panels_ready = True
        self._store.dispatch(ViewportResized(self.size.width, self.size.height))
        self._scheduler.start()
        self.set_interval(DRAIN_INTERVAL, self._drain_events)

    def on_unmount(self) -> None:
        self._scheduler.stop()

    def on_resize(self, event: events.Resize) -> None:
        """Record the new terminal size; layout is derived when rendering."""
        self._store.dispatch(ViewportResized(event.size.width, event.size.height))

    def _drain_events(self) -> None:
        """Apply every queued tick and sample result, oldest first."""
        while True:
            try:
                event = self._events.get_nowait()
            except Empty:
                break
            self._store.dispatch(event)

    def _render_state(self, state: AggregateState) -> None:
        """Update every widget from the latest state."""
        if not self._panels_ready:
            return

        panels = self.query_one("#panels", Container)
        layout = select_layout(state.width, state.height)
        panels.set_class(layout is Layout.GRID_2X2, "grid")
        panels.set_class(layout is Layout.STACKED, "stacked")
        panels.display = not state.show_help
        self.query_one("#help", Static).display = state.show_help

        if layout is Layout.GRID_2X2:
            size = panel_size(state.width, state.height)
        else:
            size = PanelSize(width=max(state.width - 4, 30), height=max(state.height, 8))

        for panel in self.query(ResourcePanel):
            panel.show_state(state, size, self._config.thresholds)

        self.query_one("#title", Static).update(self._title(state))

    def _title(self, state: AggregateState) -> str:
        if state.last_tick_at is None:
            return "System Monitor"
        stamp = datetime.fromtimestamp(state.last_tick_at).strftime("%H:%M:%S")
        return f"System Monitor  [dim]{stamp} · every {self._scheduler.interval:g}s[/dim]"

    def action_press_key(self, key: str) -> None:
        """Route a bound key through the store and carry out its effect."""
        effect = self._store.dispatch(KeyPressed(key))
        if effect is Effect.QUIT:
            self.action_quit()
        elif effect is Effect.REFRESH:
            self._scheduler.refresh()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._scheduler.stop()
        self.exit()
