"""
Logging configuration for the ChessWire content analysis pipeline.

Provides structured logging with:
- Console and file handlers
- Separate log files per component
- Optional JSON formatting
- Contextual logging with extra fields
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

ROOT_LOGGER = "chesswire"

# Component-specific logger names
LOGGER_NAMES = {
    "main": ROOT_LOGGER,
    "pipeline": f"{ROOT_LOGGER}.pipeline",
    "analysis": f"{ROOT_LOGGER}.analysis",
    "voice": f"{ROOT_LOGGER}.voice",
    "sinks": f"{ROOT_LOGGER}.sinks",
}

# Log file names per component
LOG_FILES = {
    "main": "chesswire.log",
    "pipeline": "pipeline.log",
    "voice": "voice.log",
    "errors": "errors.log",
}

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_RECORD_KEYS = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "exc_info",
    "exc_text",
    "thread",
    "threadName",
    "taskName",
    "message",
})


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter for better readability."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format with colors for terminal output."""
        original = record.levelname
        color = self.COLORS.get(original, self.RESET)
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = original


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    json_format: bool = False,
    console_output: bool = True,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. If None, file logging is disabled.
        json_format: Use JSON formatting for logs
        console_output: Enable console output
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    standard_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)

        if json_format:
            console_handler.setFormatter(JSONFormatter())
        elif sys.stdout.isatty():
            console_handler.setFormatter(
                ColoredFormatter(standard_format, datefmt=date_format)
            )
        else:
            console_handler.setFormatter(
                logging.Formatter(standard_format, datefmt=date_format)
            )

        root_logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_formatter = (
            JSONFormatter()
            if json_format
            else logging.Formatter(standard_format, datefmt=date_format)
        )

        main_handler = logging.FileHandler(log_dir / LOG_FILES["main"])
        main_handler.setLevel(numeric_level)
        main_handler.setFormatter(file_formatter)
        root_logger.addHandler(main_handler)

        # ERROR and above
        error_handler = logging.FileHandler(log_dir / LOG_FILES["errors"])
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

        for component, filename in LOG_FILES.items():
            if component in ("main", "errors"):
                continue

            component_logger = logging.getLogger(LOGGER_NAMES[component])
            component_logger.handlers.clear()
            component_handler = logging.FileHandler(log_dir / filename)
            component_handler.setLevel(numeric_level)
            component_handler.setFormatter(file_formatter)
            component_logger.addHandler(component_handler)

    root_logger.propagate = False


def get_logger(name: str = "main") -> logging.Logger:
    """
    Get a logger instance for the specified component.

    Args:
        name: Component name (main, pipeline, analysis, voice, sinks)
              or a custom name that will be prefixed with 'chesswire.'

    Returns:
        Logger instance for the component.
    """
    if name in LOGGER_NAMES:
        return logging.getLogger(LOGGER_NAMES[name])
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that adds contextual information to log records.

    Useful for adding batch indexes, content types, or other context.
    """

    def process(
        self, msg: str, kwargs: dict[str, Any]
    ) -> tuple[str, dict[str, Any]]:
        """Add extra context to the log message."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra

        if self.extra:
            context_str = " ".join(f"[{k}={v}]" for k, v in self.extra.items())
            msg = f"{context_str} {msg}"

        return msg, kwargs


def get_contextual_logger(
    name: str = "main", **context: Any
) -> LoggerAdapter:
    """
    Get a logger with contextual information attached.

    Args:
        name: Component name
        **context: Key-value pairs to include in all log messages

    Returns:
        LoggerAdapter with context attached.

    Example:
        logger = get_contextual_logger("pipeline", item_index=3)
        logger.info("Analysis started")  # Includes item_index in output
    """
    base_logger = get_logger(name)
    return LoggerAdapter(base_logger, context)


def setup_logging_from_settings() -> None:
    """Configure logging from application settings."""
    # Deferred: config is importable without logging side effects.
    from chesswire.utils.config import get_settings

    settings = get_settings()
    setup_logging(
        level=settings.logging.level.value,
        log_dir=settings.logging.dir,
        json_format=settings.logging.json_format,
        console_output=True,
    )
