"""Logging utilities for ccvm."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


_LOG_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "stacklevel",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Formatter with ISO timestamps and context."""

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return timestamp.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _LOG_RECORD_FIELDS and not key.startswith("_")
        }
        if extras:
            try:
                serialized = json.dumps(extras, sort_keys=True, ensure_ascii=True, default=str)
            except (TypeError, ValueError):
                serialized = str(extras)
            return f"{message} | {serialized}"
        return message


class CcvmLogger:
    """Logger for ccvm."""

    def __init__(
        self,
        name: str = "ccvm",
        log_dir: Optional[Path] = None,
        level_name: Optional[str] = None,
    ):
        self.logger = logging.getLogger(name)
        level_name = (level_name or os.getenv("CCVM_LOG_LEVEL", "WARNING")).upper()
        level = getattr(logging, level_name, logging.WARNING)
        # File handlers capture debug logs while the console respects the configured level.
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        if not self.logger.handlers:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
            self.logger.addHandler(console_handler)
        else:
            for handler in self.logger.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(
                    handler, logging.FileHandler
                ):
                    handler.setLevel(level)

        self._file_handler: Optional[logging.Handler] = None
        self._file_handler_path: Optional[Path] = None

        if log_dir:
            log_file = log_dir / f"ccvm_{datetime.now().strftime('%Y%m%d')}.log"
            self.attach_file_handler(log_file)

    def attach_file_handler(self, log_file: Path) -> Path:
        """Attach or replace a file handler for logging to disk."""
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if self._file_handler and self._file_handler_path == log_file:
            return log_file

        self.detach_file_handler()

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter("%(asctime)s [%(levelname)s] %(message)s"))
        self.logger.addHandler(file_handler)
        self._file_handler = file_handler
        self._file_handler_path = log_file
        return log_file

    def detach_file_handler(self) -> None:
        """Remove and close the file handler, if one is attached."""
        if self._file_handler is None:
            return
        self.logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None
        self._file_handler_path = None

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        self.logger.debug(message, *args, **kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        self.logger.warning(message, *args, **kwargs)


# Global logger instance
_logger: Optional[CcvmLogger] = None


def get_logger() -> CcvmLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = CcvmLogger()
    return _logger


def init_logger(log_dir: Optional[Path] = None, level_name: Optional[str] = None) -> CcvmLogger:
    """Initialize the global logger."""
    global _logger
    if _logger is not None:
        _logger.detach_file_handler()
    _logger = CcvmLogger(log_dir=log_dir, level_name=level_name)
    return _logger
