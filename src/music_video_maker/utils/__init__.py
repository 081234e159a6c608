"""Utility helpers for Music Video Maker."""

from .logging_config import configure_logging
from .simple_logger import log_complete, log_start, log_update, setup_logging

__all__ = ["configure_logging", "setup_logging", "log_start", "log_update", "log_complete"]
