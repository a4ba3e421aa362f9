"""Stateless formatting of dashboard content.

Every function takes what it needs explicitly (sizes, thresholds) and returns
Rich markup; nothing here holds state between calls.
"""

from collections.abc import Sequence

from rich.markup import escape

from sysview.config import ThresholdsConfig
from sysview.layout import PanelSize
from sysview.models import DiskEntry, ResourceKind
from sysview.rates import total_recv_rate, total_send_rate
from sysview.state import AggregateState, KeyMap

LEVEL_COLORS = {
    "normal": "green",
    "warning": "yellow",
    "critical": "red",
    "idle": "dim",
}

PANEL_TITLES = {
    ResourceKind.CPU: "CPU Usage",
    ResourceKind.MEMORY: "Memory Usage",
    ResourceKind.DISK: "Disk Usage",
    ResourceKind.NETWORK: "Network Activity",
}

# Lines shown in place of data while a component is degraded
FALLBACK_LINES = {
    ResourceKind.CPU: ("Total: N/A", "Cores: N/A"),
    ResourceKind.MEMORY: ("RAM: N/A", "Swap: N/A"),
    ResourceKind.DISK: ("Filesystems: N/A", "Usage: N/A"),
    ResourceKind.NETWORK: ("Interfaces: N/A", "Activity: N/A"),
}

SPARK_CHARS = "▁▂▃▄▅▆▇█"

MIN_BAR_WIDTH = 10


def format_bytes(size: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size < 1024:
            return f"{size:.1f}{unit}" if unit != "B" else f"{int(size)}B"
        size = size / 1024
    return f"{size:.1f}PB"


def format_rate(bytes_per_sec: float) -> str:
    """Format bytes/sec as human-readable rate."""
    if bytes_per_sec <= 0:
        return "0B/s"
    if bytes_per_sec < 1024:
        return f"{bytes_per_sec:.0f}B/s"
    return f"{format_bytes(bytes_per_sec)}/s"


def truncate(text: str, width: int) -> str:
    """Shorten `text` to `width` characters, marking the cut with '...'."""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def bar_width(panel_width: int, label_width: int) -> int:
    """Width of a progress bar next to a label, leaving room for the percentage."""
    return max(panel_width - label_width - 10, MIN_BAR_WIDTH)


def progress_bar(percent: float, width: int, thresholds: ThresholdsConfig) -> str:
    """Render a bar coloured by the usage level of `percent`."""
    percent = min(max(percent, 0.0), 100.0)
    filled = min(int(percent / 100 * width), width)
    color = LEVEL_COLORS[thresholds.level(percent)]
    bar = f"[{color}]{'█' * filled}[/{color}]" + f"[dim]{'░' * (width - filled)}[/dim]"
    # Escaped bracket so Rich does not read the container as markup
    return f"\\[{bar}]"


def sparkline(values: Sequence[float], width: int) -> str:
    """Render the last `width` percentages (0-100) as block characters."""
    if width <= 0:
        return ""
    chars = []
    top = len(SPARK_CHARS) - 1
    for value in list(values)[-width:]:
        value = min(max(value, 0.0), 100.0)
        chars.append(SPARK_CHARS[round(value / 100 * top)])
    return "".join(chars)


def filesystems_at_or_above(entries: Sequence[DiskEntry], threshold: float) -> list[DiskEntry]:
    """Filesystems whose usage is at or above `threshold` percent."""
    return [entry for entry in entries if entry.used_percent >= threshold]


def classify_filesystems(
    entries: Sequence[DiskEntry],
    thresholds: ThresholdsConfig,
) -> dict[str, list[DiskEntry]]:
    """Group filesystems by usage level ("normal", "warning", "critical")."""
    levels: dict[str, list[DiskEntry]] = {"normal": [], "warning": [], "critical": []}
    for entry in entries:
        levels[thresholds.level(entry.used_percent)].append(entry)
    return levels


def _styled(text: str, level: str) -> str:
    if level == "normal":
        return text
    color = LEVEL_COLORS[level]
    return f"[{color}]{text}[/{color}]"


# ─────────────────────────────────────────────────────────────────────────────
# Panels
# ─────────────────────────────────────────────────────────────────────────────


def _cpu_lines(state: AggregateState, size: PanelSize, thresholds: ThresholdsConfig) -> list[str]:
    cpu = state.cpu
    total_bar = progress_bar(cpu.total, bar_width(size.width, 8), thresholds)
    lines = [f"Total:  {total_bar} {cpu.total:5.1f}%"]
    if state.cpu_history:
        lines.append(f"[dim]{sparkline(state.cpu_history, size.width - 8)}[/dim]")
    for i, usage in enumerate(cpu.per_core):
        bar = progress_bar(usage, bar_width(size.width, 10), thresholds)
        lines.append(f"Core {i + 1:<2} {bar} {usage:5.1f}%")
    return lines


def _memory_lines(
    state: AggregateState, size: PanelSize, thresholds: ThresholdsConfig
) -> list[str]:
    memory = state.memory
    ram_percent = memory.used_percent
    lines = [
        f"RAM:  {progress_bar(ram_percent, bar_width(size.width, 6), thresholds)} "
        f"{ram_percent:5.1f}%",
        f"[dim]      {format_bytes(memory.used)} / {format_bytes(memory.total)}"
        f" ({format_bytes(memory.available)} available)[/dim]",
    ]
    swap = memory.swap
    if swap.total > 0:
        lines.append(
            f"Swap: {progress_bar(swap.used_percent, bar_width(size.width, 6), thresholds)} "
            f"{swap.used_percent:5.1f}%"
        )
        lines.append(f"[dim]      {format_bytes(swap.used)} / {format_bytes(swap.total)}[/dim]")
    else:
        lines.append("[dim]Swap: Not configured[/dim]")
    return lines


def _disk_summary(entries: Sequence[DiskEntry], thresholds: ThresholdsConfig) -> str | None:
    levels = classify_filesystems(entries, thresholds)
    parts = [
        _styled(f"{len(levels[level])} {level}", level)
        for level in ("critical", "warning")
        if levels[level]
    ]
    return " ".join(parts) if parts else None


def _disk_lines(state: AggregateState, size: PanelSize, thresholds: ThresholdsConfig) -> list[str]:
    lines = []
    # Counted up front so a full filesystem stays visible when rows are cut
    summary = _disk_summary(state.disk.entries, thresholds)
    if summary is not None:
        lines.append(summary)
    for entry in state.disk.entries:
        mountpoint = escape(truncate(entry.mountpoint, 15))
        bar = progress_bar(entry.used_percent, bar_width(size.width, 18), thresholds)
        line = f"{mountpoint:<15} {bar} {entry.used_percent:5.1f}%"
        lines.append(_styled(line, thresholds.level(entry.used_percent)))
        lines.append(
            f"[dim]{'':<15} {format_bytes(entry.used)} / {format_bytes(entry.total)}[/dim]"
        )
    return lines


def _network_lines(
    state: AggregateState, size: PanelSize, thresholds: ThresholdsConfig
) -> list[str]:
    lines = []
    for entry in state.network.interfaces:
        name = escape(truncate(entry.name, 12))
        sample = state.rates.get(entry.name)
        if sample is None:
            # First round for this interface: no previous counters yet
            lines.append(f"{name:<12} ↑ {'N/A':>9} ↓ {'N/A':>9}")
        else:
            line = (
                f"{name:<12} ↑ {format_rate(sample.send_rate):>9} "
                f"↓ {format_rate(sample.recv_rate):>9}"
            )
            level = thresholds.activity(sample.total)
            lines.append(_styled(line, level))
        lines.append(
            f"[dim]{'':<12}   {format_bytes(entry.bytes_sent):>9}   "
            f"{format_bytes(entry.bytes_recv):>9}[/dim]"
        )
    if state.rates:
        lines.append(
            f"[bold]Total[/bold]        ↑ {format_rate(total_send_rate(state.rates)):>9} "
            f"↓ {format_rate(total_recv_rate(state.rates)):>9}"
        )
    return lines


_PANEL_LINES = {
    ResourceKind.CPU: _cpu_lines,
    ResourceKind.MEMORY: _memory_lines,
    ResourceKind.DISK: _disk_lines,
    ResourceKind.NETWORK: _network_lines,
}


def render_panel(
    kind: ResourceKind,
    state: AggregateState,
    size: PanelSize,
    thresholds: ThresholdsConfig,
) -> str:
    """
    Render the body of one resource panel.

    Shows an explicit error and N/A placeholders while the component is
    degraded, a loading message before the first sample, and the data
    otherwise. Rows that do not fit `size.height` are replaced by a
    "+N more lines" marker.
    """
    title = PANEL_TITLES[kind]
    lines = [f"[bold]{title}[/bold]"]
    status = state.status(kind)

    if status.degraded:
        error = status.last_error
        lines.append(f"[red]Error: {escape(error.message)}[/red]")
        lines.append(f"[dim]{kind.label} data unavailable[/dim]")
        lines.extend(FALLBACK_LINES[kind])
    elif state.snapshot(kind) is None:
        lines.append(f"[dim]Loading {kind.label.lower()} data...[/dim]")
    else:
        lines.extend(_PANEL_LINES[kind](state, size, thresholds))

    limit = max(size.height, 1)
    if len(lines) > limit:
        # Mark the cut so hidden rows are never dropped silently
        hidden = len(lines) - (limit - 1)
        lines = [*lines[: limit - 1], f"[dim]+{hidden} more lines[/dim]"]
    return "\n".join(lines)


def render_error_panel(kind: ResourceKind, message: str) -> str:
    """Fallback body shown when rendering a panel itself failed."""
    lines = [
        f"[bold]{PANEL_TITLES[kind]}[/bold]",
        f"[red]Error: {escape(message)}[/red]",
        f"[dim]{kind.label} display unavailable[/dim]",
    ]
    return "\n".join(lines)


def help_text(keys: KeyMap) -> str:
    """Keyboard shortcut reference for the help overlay."""

    def names(group: tuple[str, ...]) -> str:
        return ", ".join(key.replace("question_mark", "?") for key in group)

    return "\n".join(
        [
            "[bold]System Monitor - Keyboard Shortcuts[/bold]",
            "",
            "Navigation:",
            f"  {names(keys.forward):<20} Next component",
            f"  {names(keys.backward):<20} Previous component",
            f"  {names(keys.up):<20} Move up a row",
            f"  {names(keys.down):<20} Move down a row",
            "",
            "Actions:",
            f"  {names(keys.quit):<20} Quit application",
            f"  {names(keys.refresh):<20} Manual refresh",
            f"  {names(keys.help):<20} Toggle this help",
            "",
            "Components:",
            "  CPU                  Real-time CPU usage per core",
            "  Memory               RAM and swap usage",
            "  Disk                 Filesystem usage and warnings",
            "  Network              Interface activity and rates",
        ]
    )
