"""Logging utility with the [LOG] prefix used across notif."""

import logging
import sys
from datetime import datetime
from typing import Optional
from enum import Enum


class LogLevel(Enum):
    """Log levels for the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ColoredFormatter(logging.Formatter):
    """Formatter that adds the [LOG] prefix and colours the level name."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m',
        'BOLD': '\033[1m',
    }

    def __init__(self, show_timestamps: bool = False):
        super().__init__()
        self.show_timestamps = show_timestamps

    def format(self, record: logging.LogRecord) -> str:
        """Render a record as ``[LOG] [LEVEL] message``."""
        prefix = f"{self.COLORS['BOLD']}[LOG]{self.COLORS['RESET']}"
        if self.show_timestamps:
            stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
            prefix = f"{prefix} {stamp}"

        # INFO stays clean, everything else carries its level
        if record.levelname == 'INFO':
            return f"{prefix} {record.getMessage()}"

        level_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        return (
            f"{prefix} {level_color}[{record.levelname}]{self.COLORS['RESET']} "
            f"{record.getMessage()}"
        )


class AppLogger:
    """Process-wide logger for notif."""

    _instance: Optional['AppLogger'] = None
    _logger: Optional[logging.Logger] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._logger is None:
            self._setup_logger()

    def _setup_logger(self, level: str = "INFO", show_timestamps: bool = False):
        """Attach a single stdout handler to the ``notif`` logger."""
        self._logger = logging.getLogger("notif")
        self._logger.setLevel(getattr(logging, level))
        self._logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level))
        console_handler.setFormatter(ColoredFormatter(show_timestamps=show_timestamps))
        self._logger.addHandler(console_handler)

        self._logger.propagate = False

    def set_level(self, level: str):
        """Change the level of the logger and all of its handlers."""
        if self._logger:
            self._logger.setLevel(getattr(logging, level.upper()))
            for handler in self._logger.handlers:
                handler.setLevel(getattr(logging, level.upper()))

    def set_timestamps(self, enabled: bool):
        """Toggle the HH:MM:SS stamp on console output."""
        if self._logger:
            for handler in self._logger.handlers:
                handler.setFormatter(ColoredFormatter(show_timestamps=enabled))

    def log(self, message: str, level: LogLevel = LogLevel.INFO):
        if self._logger:
            log_func = getattr(self._logger, level.value.lower())
            log_func(message)

    def debug(self, message: str):
        self.log(message, LogLevel.DEBUG)

    def info(self, message: str):
        self.log(message, LogLevel.INFO)

    def warning(self, message: str):
        self.log(message, LogLevel.WARNING)

    def error(self, message: str):
        self.log(message, LogLevel.ERROR)


# Global logger instance
logger = AppLogger()


def setup_logging(level: str = "INFO", show_timestamps: bool = False):
    """Configure the notif logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        show_timestamps: Prepend HH:MM:SS to each line
    """
    logger.set_level(level)
    logger.set_timestamps(show_timestamps)
    logger.debug(f"Logger initialized at {level.upper()}")


def log_info(message: str):
    logger.info(message)


def log_debug(message: str):
    logger.debug(message)


def log_warning(message: str):
    logger.warning(message)


def log_error(message: str):
    logger.error(message)
