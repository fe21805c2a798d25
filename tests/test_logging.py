"""
Test Logging Module
==================

Unit tests for the formatters, context filter and logger helper.
"""

import json
import logging
import pytest
from pathlib import Path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.logging import (
    ColoredFormatter, ContextFilter, JSONFormatter,
    clear_log_context, get_logger, set_log_context,
)


def make_record(msg="hello", level=logging.WARNING, name="lcc.rules.engine", context=None):
    record = logging.LogRecord(name, level, __file__, 42, msg, None, None, func="respond")
    if context is not None:
        record.context = context
    return record


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


class TestFormatters:
    """Tests for JSONFormatter and ColoredFormatter."""

    def test_json_fields(self):
        """Test a record becomes one JSON object."""
        data = json.loads(JSONFormatter().format(make_record(context={"mode": "chat"})))
        assert data["level"] == "WARNING"
        assert data["logger"] == "lcc.rules.engine"
        assert data["message"] == "hello"
        assert data["where"].endswith("respond:42")
        assert data["context"] == {"mode": "chat"}

    def test_json_without_context(self):
        """Test the context key is left out when empty."""
        data = json.loads(JSONFormatter().format(make_record()))
        assert "context" not in data

    def test_colored_plain(self):
        """Test the console line without colors."""
        line = ColoredFormatter(use_color=False).format(make_record(context={"workflow": "wf-1", "mode": "run"}))
        assert line.startswith("[WARNING] ")
        assert " rules.engine | hello" in line
        assert line.endswith("{mode=run workflow=wf-1}")
        assert "\033[" not in line

    def test_colored_uses_ansi(self):
        """Test colors are applied when enabled."""
        line = ColoredFormatter(use_color=True).format(make_record())
        assert line.startswith("\033[33m[WARNING]")


class TestContext:
    """Tests for thread context and logger adapters."""

    def test_filter_stamps_thread_context(self):
        """Test the filter copies the thread context onto records."""
        set_log_context(mode="chat")
        record = make_record()
        assert ContextFilter().filter(record) is True
        assert record.context == {"mode": "chat"}

    def test_record_context_wins(self):
        """Test per-logger values override the thread context."""
        set_log_context(mode="chat", workflow="wf-1")
        record = make_record(context={"workflow": "wf-2"})
        ContextFilter().filter(record)
        assert record.context == {"mode": "chat", "workflow": "wf-2"}

    def test_clear(self):
        """Test clearing empties the context."""
        set_log_context(mode="chat")
        clear_log_context()
        assert ContextFilter.get_context() == {}

    def test_get_logger_namespace(self):
        """Test loggers are placed under lcc."""
        assert get_logger("rules.engine").logger.name == "lcc.rules.engine"
        assert get_logger("lcc.web").logger.name == "lcc.web"
        assert get_logger("lcc").logger.name == "lcc"

    def test_adapter_extra(self):
        """Test fixed extra values travel as record context."""
        adapter = get_logger("workflows.dsl", component="walker")
        msg, kwargs = adapter.process("x", {})
        assert kwargs["extra"] == {"context": {"component": "walker"}}
