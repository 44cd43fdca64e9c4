"""YIN pitch estimation for single audio buffers."""

from __future__ import annotations
from typing import Optional, ClassVar, Tuple

import numpy as np

from ..logger import get_logger
from ..note_types import PitchEstimate
from ..core.interfaces import IPitchEstimator

logger = get_logger(__name__)

# A period of two samples is the shortest the sample rate can represent
MIN_LAG = 2


def _check_threshold(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
    return value


def signal_power(buffer: np.ndarray) -> float:
    """Total power of a buffer: the sum of squared samples."""
    return float(np.dot(buffer, buffer))


def difference_function(buffer: np.ndarray) -> np.ndarray:
    """Squared difference between the buffer and its lagged copies.

    Step 1 of YIN (de Cheveigne & Kawahara 2002, eq. 6). Lags run from 0 to
    N // 2, each compared over the same window of N - N // 2 samples so that
    every lag sees the same amount of signal.

    Args:
        buffer: 1D float64 array of N samples

    Returns:
        Array of N // 2 + 1 values where index = lag
    """
    n = buffer.size
    tau_max = n // 2
    w = n - tau_max

    energy = np.concatenate(([0.0], np.cumsum(buffer * buffer)))
    taus = np.arange(tau_max + 1)

    # sum_{j<w} x[j+tau]^2 for every lag
    lagged_energy = energy[taus + w] - energy[taus]
    # sum_{j<w} x[j] * x[j+tau]
    cross = np.correlate(buffer, buffer[:w], mode="valid")

    diff = energy[w] + lagged_energy - 2.0 * cross
    # Rounding can leave tiny negative values where the true difference is 0
    return np.maximum(diff, 0.0)


def cumulative_mean_normalized_difference(diff: np.ndarray) -> np.ndarray:
    """Cumulative Mean Normalized Difference Function (CMNDF).

    Each d(tau) is divided by the mean of d(1..tau), which removes the
    zero-lag dip and puts every lag on a common 0..~2 scale. Lag 0 is 1 by
    definition, and lags whose running sum is still zero are set to 1.
    """
    cmndf = np.ones_like(diff)
    if diff.size < 2:
        return cmndf

    running_sum = np.cumsum(diff[1:])
    taus = np.arange(1, diff.size)
    nonzero = running_sum > 0
    cmndf[1:][nonzero] = diff[1:][nonzero] * taus[nonzero] / running_sum[nonzero]
    return cmndf


def absolute_threshold(cmndf: np.ndarray, threshold: float) -> Optional[int]:
    """Find the first dip of the CMNDF below threshold.

    Returns the lag of the local minimum that follows the first crossing,
    or None if the function never drops below the threshold.
    """
    candidates = np.flatnonzero(cmndf[1:] < threshold)
    if candidates.size == 0:
        return None

    tau = int(candidates[0]) + 1
    while tau + 1 < cmndf.size and cmndf[tau + 1] < cmndf[tau]:
        tau += 1
    return tau


def parabolic_interpolation(values: np.ndarray, index: int) -> Tuple[float, float]:
    """Fit a parabola through a trough and its two neighbours.

    Args:
        values: 1D array of y-values (e.g., difference function values)
        index: The index of the minimum point in values

    Returns:
        A tuple with the interpolated x & y coordinates of the minimum.
        The trough itself is returned at the array edges or when the fit
        would move it by a whole sample or more.
    """
    if index <= 0 or index >= values.size - 1:
        return float(index), float(values[index])

    alpha = values[index - 1]
    beta = values[index]
    gamma = values[index + 1]

    denominator = alpha - 2.0 * beta + gamma
    if denominator == 0:
        return float(index), float(beta)

    shift = 0.5 * (alpha - gamma) / denominator
    if not -1.0 < shift < 1.0:
        return float(index), float(beta)

    return float(index + shift), float(beta - 0.25 * (alpha - gamma) * shift)


def refine_lag(diff: np.ndarray, tau: int) -> float:
    """Sub-sample lag of the trough at tau in the raw difference function.

    Lag 1 has only the zero lag as its left neighbour and is left alone. The
    result is never below MIN_LAG, so the frequency stays at or under the
    Nyquist limit.
    """
    refined = float(tau)
    if tau >= MIN_LAG:
        refined, _ = parabolic_interpolation(diff, tau)
    return max(refined, float(MIN_LAG))


class YinPitchEstimator(IPitchEstimator):
    """Estimate the fundamental frequency of one buffer with the YIN method.

    The estimator keeps no history: each call analyses its own buffer from
    scratch, so two calls with the same arguments give the same result and
    one instance can be reused for a whole capture session.
    """

    DEFAULT_POWER_THRESHOLD: ClassVar[float] = 0.1  # Sum of squared samples below this is silence
    DEFAULT_CLARITY_THRESHOLD: ClassVar[float] = 0.7  # Minimum clarity to report a pitch
    MIN_BUFFER_SIZE: ClassVar[int] = 2
    BACKEND_NAME: ClassVar[str] = "YIN"

    def __init__(
        self,
        power_threshold: float = DEFAULT_POWER_THRESHOLD,
        clarity_threshold: float = DEFAULT_CLARITY_THRESHOLD,
    ) -> None:
        """Initialize the YIN estimator.

        Args:
            power_threshold: Default power gate, used when estimate() gets none
            clarity_threshold: Default clarity gate, used when estimate() gets none
        """
        self._power_threshold = _check_threshold("power_threshold", power_threshold)
        self._clarity_threshold = _check_threshold("clarity_threshold", clarity_threshold)

        logger.info(
            f"{self.BACKEND_NAME} estimator initialized: power_threshold={self._power_threshold}, "
            f"clarity_threshold={self._clarity_threshold}"
        )

    def _prepare(
        self,
        buffer: np.ndarray,
        sample_rate: int,
        power_threshold: Optional[float],
        clarity_threshold: Optional[float],
    ) -> Tuple[np.ndarray, float, float]:
        """Validate one call's arguments and fill in default thresholds."""
        power_threshold = _check_threshold(
            "power_threshold",
            self._power_threshold if power_threshold is None else power_threshold,
        )
        clarity_threshold = _check_threshold(
            "clarity_threshold",
            self._clarity_threshold if clarity_threshold is None else clarity_threshold,
        )
        if sample_rate <= 0:
            raise ValueError("Sample rate must be positive")

        samples = np.asarray(buffer, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"Buffer must be one-dimensional, got shape {samples.shape}")
        if samples.size < self.MIN_BUFFER_SIZE:
            raise ValueError(
                f"Buffer must hold at least {self.MIN_BUFFER_SIZE} samples, got {samples.size}"
            )
        if not np.all(np.isfinite(samples)):
            raise ValueError("Buffer contains non-finite samples")

        return samples, power_threshold, clarity_threshold

    def estimate(
        self,
        buffer: np.ndarray,
        sample_rate: int,
        power_threshold: Optional[float] = None,
        clarity_threshold: Optional[float] = None,
    ) -> Optional[PitchEstimate]:
        """Estimate the pitch of one buffer.

        Args:
            buffer: Mono samples, normally in [-1.0, 1.0]
            sample_rate: Sample rate of the buffer in Hz
            power_threshold: Minimum sum of squared samples, or None for the default
            clarity_threshold: Minimum clarity (0-1), or None for the default

        Returns:
            PitchEstimate if a clear pitch is present, None for silence or
            non-tonal input

        Raises:
            ValueError: If the buffer, sample rate or thresholds are invalid
        """
        samples, power_threshold, clarity_threshold = self._prepare(
            buffer, sample_rate, power_threshold, clarity_threshold
        )

        power = signal_power(samples)
        if power < power_threshold:
            logger.debug(f"Signal too weak: power={power:.4f} < {power_threshold}")
            return None

        diff = difference_function(samples)
        cmndf = cumulative_mean_normalized_difference(diff)
        tau = absolute_threshold(cmndf, 1.0 - clarity_threshold)
        if tau is None:
            logger.debug(f"No periodicity below {1.0 - clarity_threshold:.2f} (min={cmndf[1:].min():.3f})")
            return None

        refined_tau = refine_lag(diff, tau)
        frequency = sample_rate / refined_tau
        clarity = float(np.clip(1.0 - cmndf[tau], 0.0, 1.0))

        logger.debug(f"Pitch {frequency:.2f}Hz at lag {refined_tau:.2f} (clarity {clarity:.2f}, power {power:.3f})")
        return PitchEstimate(frequency=float(frequency), clarity=clarity)

    @property
    def power_threshold(self) -> float:
        """Get the default power threshold."""
        return self._power_threshold

    @power_threshold.setter
    def power_threshold(self, value: float) -> None:
        """Set the default power threshold."""
        self._power_threshold = _check_threshold("power_threshold", value)

    @property
    def clarity_threshold(self) -> float:
        """Get the default clarity threshold."""
        return self._clarity_threshold

    @clarity_threshold.setter
    def clarity_threshold(self, value: float) -> None:
        """Set the default clarity threshold."""
        self._clarity_threshold = _check_threshold("clarity_threshold", value)
