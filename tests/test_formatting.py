"""Tests for dashboard formatting."""

from dataclasses import replace

import pytest
from conftest import make_cpu, make_disk, make_error, make_memory, make_network

from sysview.config import ThresholdsConfig
from sysview.errors import ErrorKind
from sysview.formatting import (
    classify_filesystems,
    filesystems_at_or_above,
    format_bytes,
    format_rate,
    help_text,
    progress_bar,
    render_error_panel,
    render_panel,
    sparkline,
    truncate,
)
from sysview.layout import PanelSize
from sysview.models import ResourceKind
from sysview.state import (
    DEFAULT_KEYMAP,
    AggregateState,
    SampleFailed,
    SampleSucceeded,
    reduce,
)

THRESHOLDS = ThresholdsConfig()
SIZE = PanelSize(width=60, height=40)


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0B"),
        (512, "512B"),
        (1024, "1.0KB"),
        (1536, "1.5KB"),
        (1024**3, "1.0GB"),
        (2 * 1024**4, "2.0TB"),
    ],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


@pytest.mark.parametrize(
    ("rate", "expected"),
    [(0, "0B/s"), (-5, "0B/s"), (100, "100B/s"), (2048, "2.0KB/s")],
)
def test_format_rate(rate, expected):
    assert format_rate(rate) == expected


def test_truncate():
    assert truncate("/home", 15) == "/home"
    assert truncate("/very/long/mount/point", 10) == "/very/l..."
    assert truncate("abcdef", 2) == "ab"


def test_progress_bar_colour_follows_level():
    assert "[green]" in progress_bar(10.0, 20, THRESHOLDS)
    assert "[yellow]" in progress_bar(75.0, 20, THRESHOLDS)
    assert "[red]" in progress_bar(95.0, 20, THRESHOLDS)


def test_progress_bar_fill():
    bar = progress_bar(50.0, 20, THRESHOLDS)

    assert bar.count("█") == 10
    assert bar.count("░") == 10


def test_sparkline():
    assert sparkline([0.0, 100.0], 10) == "▁█"
    assert len(sparkline([50.0] * 30, 10)) == 10
    assert sparkline([10.0], 0) == ""


class TestDiskClassification:
    """Three filesystems at 50%, 85% and 95% with default thresholds."""

    entries = make_disk(50.0, 85.0, 95.0).entries

    def test_exactly_one_critical(self):
        levels = classify_filesystems(self.entries, THRESHOLDS)

        assert [e.used_percent for e in levels["critical"]] == [95.0]
        assert [e.used_percent for e in levels["warning"]] == [85.0]
        assert [e.used_percent for e in levels["normal"]] == [50.0]

    def test_two_at_or_above_warning(self):
        assert len(filesystems_at_or_above(self.entries, THRESHOLDS.warning)) == 2

    def test_panel_marks_levels(self):
        state = reduce(
            AggregateState(),
            SampleSucceeded(ResourceKind.DISK, make_disk(50.0, 85.0, 95.0)),
        )

        body = render_panel(ResourceKind.DISK, state, SIZE, THRESHOLDS)

        assert "/mnt/d0" in body
        assert "[red]/mnt/d2" in body
        assert "[yellow]/mnt/d1" in body


class TestRenderPanel:
    def test_loading_before_first_sample(self):
        body = render_panel(ResourceKind.MEMORY, AggregateState(), SIZE, THRESHOLDS)

        assert "Memory Usage" in body
        assert "Loading memory data..." in body

    def test_cpu_panel(self):
        state = reduce(AggregateState(), SampleSucceeded(ResourceKind.CPU, make_cpu()))

        body = render_panel(ResourceKind.CPU, state, SIZE, THRESHOLDS)

        assert "Total:" in body
        assert " 25.0%" in body
        assert "Core 4" in body

    def test_memory_panel(self):
        state = reduce(AggregateState(), SampleSucceeded(ResourceKind.MEMORY, make_memory()))

        body = render_panel(ResourceKind.MEMORY, state, SIZE, THRESHOLDS)

        assert " 50.0%" in body
        assert "8.0GB / 16.0GB" in body
        assert "Swap:" in body

    def test_network_panel_before_and_after_rates(self):
        state = reduce(
            AggregateState(),
            SampleSucceeded(ResourceKind.NETWORK, make_network(timestamp=1.0, eth0=(0, 0))),
        )
        first = render_panel(ResourceKind.NETWORK, state, SIZE, THRESHOLDS)

        state = reduce(
            state,
            SampleSucceeded(ResourceKind.NETWORK, make_network(timestamp=2.0, eth0=(1024, 2048))),
        )
        second = render_panel(ResourceKind.NETWORK, state, SIZE, THRESHOLDS)

        assert "N/A" in first
        assert "1.0KB/s" in second
        assert "2.0KB/s" in second
        assert "Total" in second

    def test_degraded_panel_shows_error_and_placeholders(self):
        error = make_error(ErrorKind.PERMISSION, "CPU", "Permission denied accessing CPU")
        state = reduce(AggregateState(), SampleSucceeded(ResourceKind.CPU, make_cpu()))
        state = reduce(state, SampleFailed(ResourceKind.CPU, error))

        body = render_panel(ResourceKind.CPU, state, SIZE, THRESHOLDS)

        assert "Error: Permission denied accessing CPU" in body
        assert "CPU data unavailable" in body
        assert "Total: N/A" in body
        assert "Core 1" not in body

    def test_error_message_markup_is_escaped(self):
        error = make_error(ErrorKind.ACCESS, "Disk", "bad [bold]mount[/bold]")
        state = reduce(AggregateState(), SampleFailed(ResourceKind.DISK, error))

        body = render_panel(ResourceKind.DISK, state, SIZE, THRESHOLDS)

        assert "\\[bold]" in body

    def test_body_is_cut_to_panel_height(self):
        state = reduce(
            AggregateState(), SampleSucceeded(ResourceKind.CPU, make_cpu(per_core=(5.0,) * 32))
        )

        body = render_panel(ResourceKind.CPU, state, replace(SIZE, height=8), THRESHOLDS)
        lines = body.splitlines()

        # Title, total, sparkline and 32 cores; 7 shown plus the marker
        assert len(lines) == 8
        assert lines[-1] == "[dim]+28 more lines[/dim]"
        assert "Core 4 " in body
        assert "Core 5 " not in body

    def test_body_that_fits_is_not_cut(self):
        state = reduce(
            AggregateState(), SampleSucceeded(ResourceKind.CPU, make_cpu(per_core=(5.0,) * 32))
        )

        body = render_panel(ResourceKind.CPU, state, replace(SIZE, height=40), THRESHOLDS)

        assert "Core 32" in body
        assert "more lines" not in body

    def test_hidden_critical_filesystem_is_still_counted(self):
        """A full filesystem cut off the bottom of a short panel still shows up."""
        state = reduce(
            AggregateState(),
            SampleSucceeded(ResourceKind.DISK, make_disk(10.0, 20.0, 30.0, 40.0, 50.0, 95.0)),
        )

        body = render_panel(ResourceKind.DISK, state, replace(SIZE, height=9), THRESHOLDS)
        lines = body.splitlines()

        assert "/mnt/d5" not in body
        assert lines[1] == "[red]1 critical[/red]"
        assert lines[-1] == "[dim]+6 more lines[/dim]"


def test_render_error_panel():
    body = render_error_panel(ResourceKind.NETWORK, "division by zero")

    assert "Network Activity" in body
    assert "Error: division by zero" in body
    assert "Network display unavailable" in body


def test_help_text_lists_bindings():
    text = help_text(DEFAULT_KEYMAP)

    assert "Keyboard Shortcuts" in text
    assert "?, h" in text
    assert "q, ctrl+c" in text
    assert "tab, right, l" in text
