"""Centralized logging configuration for Music Video Maker."""

import logging
import sys
from typing import Optional


# Media libraries that log every frame or decode step at INFO/DEBUG
NOISY_LOGGERS = (
    "moviepy",
    "imageio",
    "imageio_ffmpeg",
    "proglog",
    "librosa",
    "numba",
    "audioread",
    "PIL",
    "matplotlib",
)


def configure_logging(
    level: str = "INFO",
    format: Optional[str] = None,
    suppress_external: bool = True
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        format: Custom format string, or None for default
        suppress_external: If True, suppress noisy media library logs
    """
    # Default format: levelname | time | filename:lineno | message
    if format is None:
        format = "%(levelname)-5s | %(asctime)s | %(filename)s:%(lineno)d | %(message)s"

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=format,
        datefmt="%H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    if suppress_external:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
