"""Tuner service that connects an audio source to pitch and note detection."""

from __future__ import annotations
import time
from typing import Optional, Callable

import numpy as np

from ..logger import get_logger
from ..note_types import TunerReading
from ..note_utils import frequency_to_note
from ..core.events import TunerEvents
from ..core.interfaces import IAudioSource, IPitchEstimator, ITunerService
from .audio_input import AudioSourceError
from .pitch_estimator import YinPitchEstimator

logger = get_logger(__name__)


class TunerService(ITunerService):
    """Runs the per-buffer tuner pipeline.

    Every buffer the audio source delivers goes through the pitch estimator
    and, when a pitch is found, the note mapper. The resulting reading is
    emitted to listeners on the audio source's thread. Nothing is carried from
    one buffer to the next.
    """

    def __init__(
        self,
        audio_source: IAudioSource,
        pitch_estimator: Optional[IPitchEstimator] = None,
        power_threshold: Optional[float] = None,
        clarity_threshold: Optional[float] = None,
    ) -> None:
        """Initialize the tuner service.

        Args:
            audio_source: Source of mono buffers
            pitch_estimator: Estimator to use, or None for a default YIN estimator
            power_threshold: Per-session power gate, or None for the estimator's default
            clarity_threshold: Per-session clarity gate, or None for the estimator's default
        """
        self._audio_source = audio_source
        self._pitch_estimator = pitch_estimator or YinPitchEstimator()
        self._power_threshold = power_threshold
        self._clarity_threshold = clarity_threshold

        self.events = TunerEvents()
        self._running = False
        self._start_time = 0.0

    @property
    def audio_source(self) -> IAudioSource:
        return self._audio_source

    @property
    def pitch_estimator(self) -> IPitchEstimator:
        return self._pitch_estimator

    def on_buffer(self, samples: np.ndarray, sample_rate: int) -> Optional[TunerReading]:
        """Analyse one buffer and emit a reading if it holds a clear pitch.

        Args:
            samples: Mono samples for this buffer only
            sample_rate: Sample rate in Hz

        Returns:
            The emitted TunerReading, or None for silence or non-tonal input
        """
        estimate = self._pitch_estimator.estimate(
            samples,
            sample_rate,
            power_threshold=self._power_threshold,
            clarity_threshold=self._clarity_threshold,
        )
        if estimate is None:
            return None

        note = frequency_to_note(estimate.frequency)
        elapsed = time.monotonic() - self._start_time if self._running else 0.0
        reading = TunerReading(
            note_name=note.note_name,
            cents_offset=note.cents_offset,
            frequency=estimate.frequency,
            clarity=estimate.clarity,
            timestamp=elapsed,
        )

        logger.debug(
            f"[{elapsed:.2f}s] {reading.note_name} {reading.cents_offset:+.1f} cents "
            f"({reading.frequency:.2f}Hz, clarity: {reading.clarity:.2f})"
        )
        self.events.emit_reading(reading)
        return reading

    def start(self, callback: Optional[Callable[[TunerReading], None]] = None) -> None:
        """Start the audio source and begin emitting readings.

        Args:
            callback: Optional reading listener, registered before audio starts

        Raises:
            AudioSourceError: If the audio source fails to start
        """
        if self._running:
            logger.warning("Tuner already running")
            return

        if callback is not None:
            self.events.on_reading(callback)

        self._start_time = time.monotonic()
        self._running = True
        try:
            self._audio_source.start(self.on_buffer)
        except AudioSourceError as e:
            self._running = False
            logger.error(f"Failed to start audio source: {e}")
            self.events.emit_error(e)
            raise

        logger.info(f"Tuner started at {self._audio_source.sample_rate} Hz")

    def stop(self) -> None:
        """Stop the audio source."""
        if not self._running:
            return

        self._audio_source.stop()
        self._running = False
        logger.info("Tuner stopped")

    def is_running(self) -> bool:
        """Check if the tuner is running.

        Returns:
            True if the tuner is running, False otherwise
        """
        return self._running
