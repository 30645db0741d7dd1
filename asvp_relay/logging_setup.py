"""
Logging configuration for the asvp_relay package.

Console output is coloured and human readable; when a log file is configured
a rotating JSON log is written alongside it.
"""

from logging.handlers import TimedRotatingFileHandler
from typing import Optional
import logging
import sys

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "asvp_relay"


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        # Work on a copy so other handlers see the plain record
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{self.BOLD}{record.levelname}{self.RESET}"
        record.msg = f"{color}{record.getMessage()}{self.RESET}"
        record.args = None
        return super().format(record)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        verbose: Show debug messages on the console
        log_file: Optional path for daily-rotated JSON logs

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Clear existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(ColoredFormatter(
        '%(asctime)s | %(levelname)s | [%(name)s] %(message)s',
        datefmt='%H:%M:%S'
    ))
    logger.addHandler(console_handler)

    if log_file:
        file_handler = TimedRotatingFileHandler(
            log_file, when="midnight", interval=1, backupCount=7, encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(jsonlogger.JsonFormatter(
            '%(asctime)s %(name)s %(levelname)s %(message)s %(lineno)d %(funcName)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        ))
        logger.addHandler(file_handler)

    return logger
