import numpy as np
import pytest

from live_pitch.audio.audio_input import AudioSourceError
from live_pitch.audio.pitch_estimator import YinPitchEstimator
from live_pitch.audio.tuner_service import TunerService
from live_pitch.core.interfaces import IAudioSource
from live_pitch.note_types import PitchEstimate, TunerReading


class FakeAudioSource(IAudioSource):
    """Delivers buffers only when a test pushes them."""

    def __init__(self, sample_rate=44100, fail=False):
        self._sample_rate = sample_rate
        self._fail = fail
        self._callback = None
        self._running = False
        self.stop_calls = 0

    def start(self, callback):
        if self._fail:
            raise AudioSourceError("no input device")
        self._callback = callback
        self._running = True

    def stop(self):
        self.stop_calls += 1
        self._running = False

    def is_running(self):
        return self._running

    @property
    def sample_rate(self):
        return self._sample_rate

    def push(self, samples):
        return self._callback(samples, self._sample_rate)


class RecordingEstimator(YinPitchEstimator):
    """YIN estimator that remembers the thresholds it was called with."""

    def __init__(self):
        super().__init__()
        self.calls = []

    def estimate(self, buffer, sample_rate, power_threshold=None, clarity_threshold=None):
        self.calls.append((power_threshold, clarity_threshold))
        return super().estimate(buffer, sample_rate, power_threshold, clarity_threshold)


@pytest.fixture
def source():
    return FakeAudioSource()


@pytest.fixture
def service(source):
    return TunerService(audio_source=source)


def test_sine_buffer_produces_reading(service, source, sine):
    readings = []
    service.start(readings.append)

    returned = source.push(sine(440.0, size=1024))

    assert len(readings) == 1
    reading = readings[0]
    assert reading is returned
    assert reading.note_name == "A4"
    assert reading.cents_offset == pytest.approx(0.0, abs=1.0)
    assert reading.frequency == pytest.approx(440.0, abs=5.0)
    assert reading.clarity > 0.9
    assert reading.timestamp >= 0.0


def test_reading_tuple_has_the_four_output_values(service, source, sine):
    service.start()
    reading = source.push(sine(261.63, size=2048))

    name, cents, frequency, clarity = reading.as_tuple()
    assert name == "C4"
    assert isinstance(cents, float)
    assert frequency == pytest.approx(261.63, rel=0.01)
    assert 0.0 <= clarity <= 1.0


def test_silence_produces_nothing(service, source):
    readings = []
    service.start(readings.append)

    assert source.push(np.zeros(1024, dtype=np.float32)) is None
    assert readings == []


def test_each_buffer_is_independent(service, source, sine):
    readings = []
    service.start(readings.append)

    source.push(sine(440.0, size=2048))
    source.push(np.zeros(2048))
    source.push(sine(110.0, size=2048))
    source.push(sine(440.0, size=2048))

    assert [r.note_name for r in readings] == ["A4", "A2", "A4"]
    assert readings[0].frequency == readings[2].frequency


def test_on_buffer_works_without_starting(service, sine):
    reading = service.on_buffer(sine(440.0, size=1024), 44100)

    assert reading.note_name == "A4"
    assert reading.timestamp == 0.0


def test_session_thresholds_are_passed_to_estimator(source, sine):
    estimator = RecordingEstimator()
    service = TunerService(source, estimator, power_threshold=0.5, clarity_threshold=0.9)
    service.start()

    # Power ~0.2 is below this session's 0.5 gate
    assert source.push(sine(440.0, size=1024, amplitude=0.02)) is None
    assert estimator.calls == [(0.5, 0.9)]


def test_contract_violations_propagate(service, source):
    service.start()

    with pytest.raises(ValueError):
        source.push(np.zeros(1))


def test_failing_listener_does_not_stop_others(service, source, sine):
    received = []

    def broken(reading):
        raise RuntimeError("display gone")

    service.events.on_reading(broken)
    service.start(received.append)

    source.push(sine(440.0))
    source.push(sine(440.0))

    assert len(received) == 2


def test_removed_listener_is_not_called(service, source, sine):
    received = []
    service.events.on_reading(received.append)
    service.events.off_reading(received.append)
    service.start()

    source.push(sine(440.0))

    assert received == []


def test_start_and_stop_drive_the_source(service, source):
    assert not service.is_running()

    service.start()
    assert service.is_running()
    assert source.is_running()

    service.stop()
    service.stop()
    assert not service.is_running()
    assert source.stop_calls == 1


def test_start_failure_is_reported(sine):
    errors = []
    service = TunerService(FakeAudioSource(fail=True))
    service.events.on_error(errors.append)

    with pytest.raises(AudioSourceError):
        service.start()

    assert not service.is_running()
    assert len(errors) == 1
    assert isinstance(errors[0], AudioSourceError)


def test_reading_is_only_built_from_an_estimate(source, sine):
    class FixedEstimator(YinPitchEstimator):
        def estimate(self, buffer, sample_rate, power_threshold=None, clarity_threshold=None):
            return PitchEstimate(frequency=466.16, clarity=0.95)

    service = TunerService(source, FixedEstimator())
    service.start()
    reading = source.push(np.zeros(4))

    assert isinstance(reading, TunerReading)
    assert reading.note_name == "A#4"
    assert reading.clarity == 0.95
