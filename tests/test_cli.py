"""Tests for the sysview command line."""

import logging

import pytest
import structlog
from click.testing import CliRunner

from sysview import __version__
from sysview.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger().handlers.clear()
    structlog.reset_defaults()


def test_version(runner):
    result = runner.invoke(main, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_options_and_shortcuts(runner):
    result = runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    for option in ("--interval", "--sample-timeout", "--log", "--debug", "--no-mouse"):
        assert option in result.output
    assert "Keyboard shortcuts" in result.output


@pytest.mark.parametrize("value", ["0", "-1", "fast"])
def test_invalid_interval_rejected(runner, value):
    result = runner.invoke(main, ["--interval", value])

    assert result.exit_code == 2


def test_unwritable_log_file_exits_with_error(runner, tmp_path):
    result = runner.invoke(
        main,
        [
            "--config",
            str(tmp_path / "none.toml"),
            "--log",
            str(tmp_path / "missing-dir" / "sysview.log"),
        ],
    )

    assert result.exit_code == 1
    assert "Error setting up logging" in result.output


def test_invalid_config_exits_with_error(runner, tmp_path):
    config_path = tmp_path / "config.toml"
    config_path.write_text("[sampling]\ninterval = -2.0\n")

    result = runner.invoke(main, ["--config", str(config_path)])

    assert result.exit_code == 1
    assert "interval must be positive" in result.output
