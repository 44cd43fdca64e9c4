"""Core components for the Live Pitch application."""

# Import interfaces for easier access
from .interfaces import (
    IAudioSource,
    IPitchEstimator,
    ITunerService,
)

__all__ = ["IAudioSource", "IPitchEstimator", "ITunerService"]
