"""Logging setup with structured output and run context.

This module configures application logging:
    - Console output plus a rotating log file (log/peloton.log)
    - Text or single-line JSON records
    - Run ID propagation so every line of a run can be correlated

Usage:
    >>> from observability.logging import setup_logging, set_run_context
    >>> setup_logging(config)
    >>> set_run_context(run_id="abc123")
    >>> logger.info("Processing started")  # Includes run_id automatically
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Any

LOG_FILE_NAME = "peloton.log"

# Context variable for run ID propagation
run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "taskName", "run_id", "message", "asctime", "run_tag", "module_name",
})


def set_run_context(run_id: str) -> None:
    """Set the current run ID for log context propagation."""
    run_id_var.set(run_id)


def clear_context() -> None:
    """Reset the run ID to its default."""
    run_id_var.set("-")


class ContextFilter(logging.Filter):
    """Filter that adds the current run_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "...", "message": "...", "run_id": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", "-"),
        }

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Text formatter: TIMESTAMP LEVEL module (run=ID) message

    The run tag only appears while a pipeline run is active, and the logger
    name is shortened to its last component (models.run -> run).
    """

    def __init__(self, include_date: bool = False):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(module_name)s%(run_tag)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S" if include_date else "%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        run_id = getattr(record, "run_id", "-")
        record.run_tag = f" (run={run_id})" if run_id != "-" else ""
        record.module_name = record.name.rsplit(".", 1)[-1]
        return super().format(record)


def _file_handler(config: Any) -> logging.Handler:
    """Create the rotating file handler chosen by config.

    Size-based rotation when LOG_MAX_BYTES > 0, daily rotation otherwise.
    """
    log_file = config.log_dir / LOG_FILE_NAME
    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        log_file,
        when="midnight",
        interval=1,
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )


def setup_logging(config: Any, verbose: bool = False) -> bool:
    """Configure logging with console and file handlers.

    If the log directory is not writable, falls back to console-only logging.

    Args:
        config: Application configuration with logging settings
        verbose: If True, override config and use DEBUG level for console

    Returns:
        True if file logging is enabled, False if console-only (fallback)
    """
    console_level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    context_filter = ContextFilter()

    if config.log_format == "json":
        console_fmt: logging.Formatter = JsonFormatter()
        file_fmt: logging.Formatter = JsonFormatter()
    else:
        console_fmt = TextFormatter(include_date=False)
        file_fmt = TextFormatter(include_date=True)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(console_fmt)
    console.addFilter(context_filter)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.addHandler(console)

    file_logging_enabled = False
    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        test_file = config.log_dir / ".write_test"
        test_file.touch()
        test_file.unlink()

        file_handler = _file_handler(config)
        file_handler.setLevel(logging.DEBUG)  # File always captures everything
        file_handler.setFormatter(file_fmt)
        file_handler.addFilter(context_filter)
        root.addHandler(file_handler)
        file_logging_enabled = True

    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )

    # Reduce noise from third-party libraries
    for lib in ("aiohttp", "httpx", "httpcore", "openai", "asyncio"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return file_logging_enabled
