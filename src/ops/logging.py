"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_path: str, log_level: str = "INFO", console: bool = True) -> None:
    """
    Configure root logging for the core.

    Args:
        log_path: Log file path; parent directories are created. Empty disables the file handler.
        log_level: Standard level name (DEBUG, INFO, ...).
        console: Also log to stderr.
    """
    handlers = []
    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))
    if console or not handlers:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
