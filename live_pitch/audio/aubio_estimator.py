"""Pitch estimation backed by aubio's YIN implementation."""

from __future__ import annotations
from typing import Optional, ClassVar, Dict, Tuple, Any

import numpy as np

from ..logger import get_logger
from ..note_types import PitchEstimate
from .pitch_estimator import YinPitchEstimator, signal_power

logger = get_logger(__name__)


class AubioPitchEstimator(YinPitchEstimator):
    """Same contract as :class:`YinPitchEstimator`, with aubio doing the search.

    aubio is an optional dependency (``pip install live-pitch[aubio]``) and is
    imported when the first detector is built. Detectors are created with
    window size equal to hop size, so every call replaces aubio's whole
    analysis window and no samples carry over between buffers.
    """

    BACKEND_NAME: ClassVar[str] = "aubio"

    def __init__(self, method: str = "yin", **thresholds: float) -> None:
        super().__init__(**thresholds)
        self._method = method
        # One detector per (buffer size, sample rate), reused as scratch space
        self._detectors: Dict[Tuple[int, int], Any] = {}

    def _get_detector(self, size: int, sample_rate: int, tolerance: float):
        key = (size, sample_rate)
        detector = self._detectors.get(key)
        if detector is None:
            import aubio

            detector = aubio.pitch(self._method, size, size, sample_rate)
            detector.set_unit("Hz")
            self._detectors[key] = detector
            logger.info(f"Created aubio '{self._method}' detector: size={size}, sample_rate={sample_rate}")
        detector.set_tolerance(tolerance)
        return detector

    def estimate(
        self,
        buffer: np.ndarray,
        sample_rate: int,
        power_threshold: Optional[float] = None,
        clarity_threshold: Optional[float] = None,
    ) -> Optional[PitchEstimate]:
        samples, power_threshold, clarity_threshold = self._prepare(
            buffer, sample_rate, power_threshold, clarity_threshold
        )

        if signal_power(samples) < power_threshold:
            return None

        detector = self._get_detector(samples.size, int(sample_rate), 1.0 - clarity_threshold)
        frequency = float(detector(samples.astype(np.float32))[0])
        clarity = float(np.clip(detector.get_confidence(), 0.0, 1.0))

        if frequency <= 0 or clarity < clarity_threshold:
            logger.debug(f"aubio found no pitch (freq={frequency:.1f}, conf={clarity:.2f})")
            return None
        return PitchEstimate(frequency=frequency, clarity=clarity)
