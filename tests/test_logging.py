"""Tests for structured logging setup."""

import json
import logging

import pytest
import structlog

from sysview import logging as sysview_logging


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore default logging after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    structlog.reset_defaults()


def test_logs_json_lines_to_file(tmp_path):
    log_file = tmp_path / "sysview.log"
    sysview_logging.configure(log_file)

    structlog.get_logger().info("sample_failed", component="CPU", kind="permission")
    logging.getLogger().handlers[0].flush()

    record = json.loads(log_file.read_text().splitlines()[-1])
    assert record["event"] == "sample_failed"
    assert record["component"] == "CPU"
    assert record["level"] == "info"
    assert "ts" in record


def test_debug_messages_filtered_without_debug(tmp_path):
    log_file = tmp_path / "sysview.log"
    sysview_logging.configure(log_file)

    structlog.get_logger().debug("manual_refresh")
    logging.getLogger().handlers[0].flush()

    assert "manual_refresh" not in log_file.read_text()


def test_debug_flag_enables_debug(tmp_path):
    log_file = tmp_path / "sysview.log"
    sysview_logging.configure(log_file, debug=True)

    structlog.get_logger().debug("manual_refresh")
    logging.getLogger().handlers[0].flush()

    assert "manual_refresh" in log_file.read_text()


def test_no_file_discards_logs():
    sysview_logging.configure(None)

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.NullHandler)
    structlog.get_logger().warning("sample_failed")


def test_unwritable_path_raises(tmp_path):
    with pytest.raises(OSError):
        sysview_logging.configure(tmp_path / "missing-dir" / "sysview.log")
