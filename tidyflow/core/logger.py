"""
Logging Utilities

Centralized logging configuration for the modelling pipelines.
Console output always goes to stdout; a rotating file handler is optional.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"

# Libraries that log chatty DEBUG/INFO records while plotting or downloading
NOISY_LOGGERS = ("matplotlib", "PIL", "urllib3", "fontTools")

_loggers: Dict[str, logging.Logger] = {}


def setup_logging(
    config: Optional[Dict[str, Any]] = None,
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    log_format: Optional[str] = None
) -> None:
    """
    Set up logging for a pipeline run.

    Args:
        config: Logging configuration dictionary (level, format, handlers)
        log_level: Default log level
        log_file: Path to log file (optional)
        log_format: Log message format
    """
    log_format = log_format or DEFAULT_FORMAT
    handlers_config: Dict[str, Any] = {}

    if config:
        log_level = config.get('level', log_level)
        log_format = config.get('format', log_format)
        handlers_config = config.get('handlers', {})

    formatter = logging.Formatter(log_format, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers = []

    console_config = handlers_config.get('console', {'enabled': True})
    if console_config.get('enabled', True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_level = console_config.get('level', log_level)
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    file_config = handlers_config.get('file', {})
    if file_config.get('enabled', False) or log_file:
        file_path = log_file or file_config.get('path', 'logs/tidyflow.log')
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_config.get('max_bytes', 5 * 1024 * 1024),
            backupCount=file_config.get('backup_count', 3),
            encoding="utf-8",
        )
        file_level = file_config.get('level', log_level)
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get or create a logger with the given name.

    Args:
        name: Logger name (typically module or class name)

    Returns:
        Logger instance
    """
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)
    return _loggers[name]


class LoggerMixin:
    """
    Mixin that gives any class a ``logger`` named after the class.

    Usage:
        class StepDummy(LoggerMixin):
            def fit(self):
                self.logger.info("Learning levels")
    """

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class."""
        if not hasattr(self, '_logger'):
            self._logger = get_logger(self.__class__.__name__)
        return self._logger


class PipelineLogger:
    """
    Structured logger for pipeline execution.

    Prefixes every message with the current context (run id, pipeline name)
    and offers helpers for stage boundaries, metrics and data shapes.
    """

    def __init__(self, name: str):
        self.logger = get_logger(name)
        self._context: Dict[str, Any] = {}

    def set_context(self, **kwargs) -> None:
        """Set logging context (e.g., run_id, pipeline)."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        """Clear logging context."""
        self._context = {}

    def _format_message(self, message: str) -> str:
        if self._context:
            context_str = " ".join(f"{k}={v}" for k, v in self._context.items())
            return f"[{context_str}] {message}"
        return message

    def info(self, message: str, **kwargs) -> None:
        self.logger.info(self._format_message(message), **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self.logger.debug(self._format_message(message), **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(self._format_message(message), **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(self._format_message(message), **kwargs)

    def exception(self, message: str, **kwargs) -> None:
        """Log exception with traceback."""
        self.logger.exception(self._format_message(message), **kwargs)

    def step_start(self, step_name: str) -> None:
        """Log the start of a pipeline stage."""
        self.info(f"{'=' * 20} Starting: {step_name} {'=' * 20}")

    def step_complete(self, step_name: str, duration: Optional[float] = None) -> None:
        """Log the completion of a pipeline stage."""
        if duration is not None:
            self.info(f"{'=' * 20} Completed: {step_name} ({duration:.2f}s) {'=' * 20}")
        else:
            self.info(f"{'=' * 20} Completed: {step_name} {'=' * 20}")

    def metric(self, name: str, value: Any) -> None:
        """Log a metric."""
        self.info(f"METRIC | {name}: {value}")

    def data_stats(self, name: str, count: int, columns: Optional[int] = None) -> None:
        """Log the shape of a record set."""
        if columns:
            self.info(f"DATA | {name}: {count:,} rows, {columns} columns")
        else:
            self.info(f"DATA | {name}: {count:,} rows")
