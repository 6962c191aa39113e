"""Logging setup for sonarrimport.

Configures the ``sonarrimport`` logger once. Verbose output is enabled by the
CLI ``--verbose`` flag or the SONARRIMPORT_DEBUG environment variable.
"""

import logging
import os
from typing import Optional

LOGGER_NAME = "sonarrimport"

_logger: Optional[logging.Logger] = None


def debug_enabled() -> bool:
    return os.getenv("SONARRIMPORT_DEBUG", "0") == "1"


def setup_logger(verbose: bool = False) -> logging.Logger:
    """Return the package logger, attaching a stream handler on first use."""
    global _logger
    logger = _logger or logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("[%(levelname)s] %(asctime)s %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose or debug_enabled() else logging.INFO)
    _logger = logger
    return logger
