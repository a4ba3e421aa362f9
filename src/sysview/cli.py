"""Command-line entry point for sysview."""

import sys
from pathlib import Path

import click
import structlog

from sysview import __version__
from sysview import logging as sysview_logging
from sysview.config import Config

log = structlog.get_logger()


@click.command(
    epilog=(
        "\b\nKeyboard shortcuts:\n"
        "  q, Ctrl+C    Quit application\n"
        "  arrows, tab  Navigate between components\n"
        "  r            Manual refresh\n"
        "  ?, h         Toggle help"
    )
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Update interval in seconds (e.g. 0.5, 2). Default: 1.",
)
@click.option(
    "--sample-timeout",
    type=click.FloatRange(min=0),
    default=None,
    help="Report a sample as a temporary error after this many seconds (0 = never).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.config/sysview/config.toml).",
)
@click.option(
    "--log",
    "log_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Log file path (default: no logging).",
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.option("--no-mouse", is_flag=True, help="Disable mouse support.")
@click.option(
    "--no-alt-screen",
    is_flag=True,
    help="Run inline instead of in the alternate screen.",
)
@click.version_option(version=__version__, prog_name="sysview")
def main(
    interval: float | None,
    sample_timeout: float | None,
    config_path: Path | None,
    log_file: Path | None,
    debug: bool,
    no_mouse: bool,
    no_alt_screen: bool,
) -> None:
    """A terminal-based system resource monitor."""
    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if interval is not None:
        config.sampling.interval = interval
    if sample_timeout is not None:
        config.sampling.sample_timeout = sample_timeout
    if no_mouse:
        config.display.mouse = False
    if no_alt_screen:
        config.display.alt_screen = False

    try:
        sysview_logging.configure(log_file, debug=debug)
    except OSError as e:
        raise click.ClickException(f"Error setting up logging: {e}") from e

    log.info(
        "starting",
        version=__version__,
        interval=config.sampling.interval,
        sample_timeout=config.sampling.timeout,
    )

    from sysview.app import SysviewApp

    app = SysviewApp(config)
    try:
        app.run(mouse=config.display.mouse, inline=not config.display.alt_screen)
    except Exception as e:
        log.exception("ui_failed")
        raise click.ClickException(f"Error running program: {e}") from e
    finally:
        app.scheduler.stop()

    if app.return_code:
        log.error("ui_exited", return_code=app.return_code)
        sys.exit(app.return_code)

    log.info("stopped")
