"""Centralized logging configuration for Live Pitch.

This module provides a consistent way to configure logging across the application.
"""

import logging
import sys
from typing import Optional

# Log levels for different modules
MODULE_LOG_LEVELS = {
    # Core modules
    "live_pitch": logging.INFO,
    "live_pitch.audio": logging.INFO,
    "live_pitch.audio.pitch_estimator": logging.INFO,  # DEBUG logs every buffer
    "live_pitch.core": logging.INFO,
    "live_pitch.cli": logging.WARNING,  # Console output is the readings line
    # Libraries/third-party
    "aubio": logging.ERROR,
    "sounddevice": logging.ERROR,
    # Root logger
    "": logging.ERROR,
}

# Shared console handler
_console_handler: Optional[logging.Handler] = None


def setup_logging(level: Optional[str] = None) -> None:
    """Set up logging configuration for the application.

    Args:
        level: If provided, override all 'live_pitch' log levels with this level (e.g., "DEBUG").
    """
    global _console_handler

    # Create a single, shared console handler if it doesn't exist
    if _console_handler is None:
        _console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        _console_handler.setFormatter(formatter)

    # Determine log levels
    log_levels = MODULE_LOG_LEVELS.copy()
    if level:
        numeric_level = logging.getLevelName(level.upper())
        if isinstance(numeric_level, int):
            for module_name in log_levels:
                if module_name.startswith("live_pitch"):
                    log_levels[module_name] = numeric_level
        else:
            logging.getLogger(__name__).error(f"Invalid log level: {level}")

    # Module loggers propagate up to "live_pitch", which owns the handler
    for module_name, module_level in log_levels.items():
        logger = logging.getLogger(module_name)
        logger.setLevel(module_level)

        if module_name in ("live_pitch", ""):
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
            logger.addHandler(_console_handler)
        logger.propagate = module_name != "live_pitch"

    logging.getLogger("live_pitch").debug("Logging configuration complete")
