"""Simple logging utilities for cleaner console output."""

import logging
import sys

from .logging_config import NOISY_LOGGERS


class CleanFormatter(logging.Formatter):
    """Formatter that renders start/update/complete records compactly."""

    def format(self, record):
        module = record.name.split('.')[-1]
        progress_type = getattr(record, 'progress_type', None)

        if record.levelname == 'INFO':
            if progress_type == 'start':
                return f"▶ {module}: {record.getMessage()}"
            elif progress_type == 'update':
                return f"   · {record.getMessage()}"
            elif progress_type == 'complete':
                return f"✔ {module}: {record.getMessage()}"
            return f"INFO  | {module}: {record.getMessage()}"
        elif record.levelname == 'ERROR':
            return f"ERROR | {module}: {record.getMessage()}"
        elif record.levelname == 'WARNING':
            return f"WARN  | {module}: {record.getMessage()}"
        return f"{record.levelname:5s} | {module}: {record.getMessage()}"


def setup_logging(level: str = "INFO"):
    """Set up console logging with the clean format."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(CleanFormatter())
    root_logger.addHandler(console_handler)

    for lib in NOISY_LOGGERS:
        logging.getLogger(lib).setLevel(logging.WARNING)


def _log_progress(logger: logging.Logger, message: str, progress_type: str):
    if not logger.isEnabledFor(logging.INFO):
        return
    record = logger.makeRecord(
        logger.name, logging.INFO, "", 0, message, (), None
    )
    record.progress_type = progress_type
    logger.handle(record)


def log_start(logger: logging.Logger, message: str):
    """Log the start of a task."""
    _log_progress(logger, message, 'start')


def log_update(logger: logging.Logger, message: str):
    """Log a progress update."""
    _log_progress(logger, message, 'update')


def log_complete(logger: logging.Logger, message: str):
    """Log task completion."""
    _log_progress(logger, message, 'complete')
