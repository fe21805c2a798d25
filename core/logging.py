"""
Logging Module - Centralized logging configuration
=================================================

All project loggers live under the ``lcc`` namespace. This module provides:
- A colored, single-line console format on stderr
- A plain text application log and a JSON error log when a log directory is set
- Thread-local context (mode, workflow id) stamped onto every record
"""

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


ROOT_LOGGER_NAME = "lcc"
APP_LOG_FILE = "lcc-assistant.log"
ERROR_LOG_FILE = "errors.log"

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return dict(getattr(record, "context", None) or {})


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    The context attached by ``ContextFilter`` and by ``get_logger(**extra)``
    is emitted under ``"context"``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
            "message": record.getMessage(),
        }

        context = _record_context(record)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """
    Console formatter: ``[LEVEL] HH:MM:SS name | message  {key=value}``.

    Colors are ANSI codes and can be turned off for non-terminal streams.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def _paint(self, code: str, text: str) -> str:
        if not self.use_color or not code:
            return text
        return f"{code}{text}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        short_name = record.name[len(ROOT_LOGGER_NAME) + 1:] if record.name.startswith(ROOT_LOGGER_NAME + ".") else record.name
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        line = (
            f"{self._paint(self.COLORS.get(record.levelname, ''), f'[{record.levelname}]')} "
            f"{clock} {short_name} | {record.getMessage()}"
        )

        context = _record_context(record)
        if context:
            pairs = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
            line += " " + self._paint(self.DIM, "{" + pairs + "}")

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


class ContextFilter(logging.Filter):
    """
    Stamps the current thread's context onto each record as ``record.context``.

    Values set with ``get_logger(**extra)`` take precedence over the
    thread context for that logger.
    """

    _local = threading.local()

    @classmethod
    def set_context(cls, **kwargs) -> None:
        data = getattr(cls._local, "data", None)
        if data is None:
            data = cls._local.data = {}
        data.update(kwargs)

    @classmethod
    def clear_context(cls) -> None:
        cls._local.data = {}

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        """Copy of the current thread's context."""
        return dict(getattr(cls._local, "data", None) or {})

    def filter(self, record: logging.LogRecord) -> bool:
        merged = self.get_context()
        merged.update(getattr(record, "context", None) or {})
        record.context = merged
        return True


class LoggerAdapter(logging.LoggerAdapter):
    """Adapter that carries fixed per-logger context into ``record.context``."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        context = dict(self.extra or {})
        context.update(extra.pop("context", None) or {})
        if context:
            extra["context"] = context
        kwargs["extra"] = extra
        return msg, kwargs


_configured = False


def _file_handlers(log_dir: str, json_format: bool, context_filter: ContextFilter) -> List[logging.Handler]:
    log_path = Path(log_dir).expanduser()
    log_path.mkdir(parents=True, exist_ok=True)

    app_handler = logging.FileHandler(log_path / APP_LOG_FILE, encoding="utf-8")
    app_handler.setLevel(logging.DEBUG)
    app_handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))

    error_handler = logging.FileHandler(log_path / ERROR_LOG_FILE, encoding="utf-8")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(JSONFormatter())

    for handler in (app_handler, error_handler):
        handler.addFilter(context_filter)
    return [app_handler, error_handler]


def setup_logging(
    log_dir: Optional[str] = None,
    log_level: str = "INFO",
    json_format: bool = False,
    console_output: bool = True
) -> None:
    """
    Configure the ``lcc`` logger tree.

    Only the first call has an effect, so the CLI, the web app factory
    and the TUI can all call it.

    Args:
        log_dir: Directory for ``lcc-assistant.log`` and ``errors.log`` (no files if None)
        log_level: Minimum level for the whole tree
        json_format: Write the application log as JSON lines
        console_output: Log to stderr; stdout is left to CLI output

    Example:
        setup_logging(log_dir="~/.local/share/lcc-assistant/logs", log_level="DEBUG")
    """
    global _configured

    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    context_filter = ContextFilter()

    if console_output:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ColoredFormatter(use_color=sys.stderr.isatty()))
        console.addFilter(context_filter)
        root.addHandler(console)

    if log_dir:
        for handler in _file_handlers(log_dir, json_format, context_filter):
            root.addHandler(handler)

    _configured = True


def get_logger(name: str, **extra) -> LoggerAdapter:
    """
    Logger for a module, placed under the ``lcc`` namespace.

    Args:
        name: Dotted name such as ``"rules.engine"``; the ``lcc.`` prefix is added
        **extra: Context attached to every record from this logger

    Example:
        logger = get_logger("workflows.dsl", component="walker")
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return LoggerAdapter(logging.getLogger(name), extra)


def set_log_context(**kwargs) -> None:
    """
    Add values to the current thread's logging context.

    Example:
        set_log_context(mode="run", workflow="wf-1")
    """
    ContextFilter.set_context(**kwargs)


def clear_log_context() -> None:
    ContextFilter.clear_context()
