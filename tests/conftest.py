import numpy as np
import pytest
import soundfile as sf


def make_sine(frequency, sample_rate=44100, size=1024, amplitude=1.0, phase=0.0):
    """A pure sine tone, as float32 like a capture device delivers."""
    t = np.arange(size) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t + phase)).astype(np.float32)


@pytest.fixture
def sine():
    return make_sine


@pytest.fixture
def write_wav(tmp_path):
    """Write samples to a WAV file under tmp_path and return its path."""

    def _write(name, samples, sample_rate=44100):
        path = tmp_path / name
        sf.write(str(path), samples, sample_rate)
        return str(path)

    return _write
