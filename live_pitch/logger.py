"""Centralized lazy-loading logger lookup for Live Pitch."""
import logging
from typing import Dict

# Module-level cache for loggers
_logger_cache: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """
    Get a lazily initialized logger with the given name.

    Levels and handlers are applied later by
    :func:`live_pitch.logging_config.setup_logging`, so this is safe to call
    at import time.

    Args:
        name: The full module name (e.g., 'live_pitch.audio.pitch_estimator')

    Returns:
        A logger instance
    """
    if name not in _logger_cache:
        _logger_cache[name] = logging.getLogger(name)
    return _logger_cache[name]
