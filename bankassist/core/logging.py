"""
Logging utilities for the FastAPI application and the export scripts.

Provides a consistent logging format and configuration.
"""

import logging
import sys

# Imaging libraries emit per-chunk debug records while encoding page images.
_NOISY_LOGGERS: tuple[str, ...] = ("PIL", "reportlab", "google.auth", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))


__all__ = ["configure_logging"]
