"""Defines the core interfaces for the Live Pitch application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Callable

import numpy as np

from ..note_types import PitchEstimate, TunerReading

# Called with one mono buffer and the session's sample rate
BufferCallback = Callable[[np.ndarray, int], None]


class IAudioSource(ABC):
    """Interface for audio sources that deliver fixed-size mono buffers."""

    @abstractmethod
    def start(self, callback: BufferCallback) -> None:
        """Start capturing audio."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing audio."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if audio is running."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the audio stream."""
        pass


class IPitchEstimator(ABC):
    """Interface for single-buffer pitch detection algorithms."""

    @abstractmethod
    def estimate(
        self,
        buffer: np.ndarray,
        sample_rate: int,
        power_threshold: Optional[float] = None,
        clarity_threshold: Optional[float] = None,
    ) -> Optional[PitchEstimate]:
        """Estimate the fundamental of one buffer, or None if there is no clear pitch."""
        pass


class ITunerService(ABC):
    """Interface for the main tuner pipeline."""

    @abstractmethod
    def start(self, callback: Optional[Callable[[TunerReading], None]] = None) -> None:
        """Start the tuner service."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the tuner service."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """Check if the service is running."""
        pass
