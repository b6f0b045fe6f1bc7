"""
Logging configuration and error taxonomy for mpdash.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m'
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')
        reset = self.COLORS['RESET']
        record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


def setup_logging(level: str = "WARNING", log_file: Optional[Union[str, Path]] = None,
                  console: bool = False) -> None:
    """Setup logging configuration for mpdash.

    The dashboard owns stdout while it runs, so the console handler is only
    installed for the one-shot command mode and it writes to stderr.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path
        console: Log to stderr as well
    """
    logger = logging.getLogger('mpdash')
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()
    logger.propagate = False

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, level.upper()))
        console_handler.setFormatter(ColoredFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(Path(log_file).expanduser())
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
        ))
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f'mpdash.{name}')


class MpdashError(Exception):
    """Base exception for mpdash."""
    pass


class DaemonConnectionError(MpdashError, ConnectionError):
    """The daemon could not be reached or the connection broke."""
    pass


class DaemonError(MpdashError):
    """The daemon rejected a command with an ACK line."""

    def __init__(self, code: int, index: int, command: str, message: str):
        super().__init__(f'[{code}@{index}] {{{command}}} {message}')
        self.code = code
        self.index = index
        self.command = command
        self.message = message


class ConfigError(MpdashError):
    """Configuration related errors."""
    pass
