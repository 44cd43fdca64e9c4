import types

import numpy as np
import pytest

from live_pitch.audio import audio_input
from live_pitch.audio.audio_input import (
    AudioSourceError,
    SoundDeviceInput,
    WavFileInput,
    list_input_devices,
)


class FakePortAudioError(Exception):
    pass


class FakeInputStream:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True


DEVICES = [
    {"name": "Speakers", "max_input_channels": 0, "max_output_channels": 2, "default_samplerate": 44100.0},
    {"name": "Fake Mic", "max_input_channels": 1, "max_output_channels": 0, "default_samplerate": 48000.0},
    {"name": "USB Interface", "max_input_channels": 2, "max_output_channels": 2, "default_samplerate": 96000.0},
]


def make_fake_sounddevice(check_error=None):
    def query_devices(device=None, kind=None):
        if kind is None:
            return DEVICES
        if device is None:
            return DEVICES[1]
        return DEVICES[device]

    def check_input_settings(**kwargs):
        if check_error:
            raise check_error

    return types.SimpleNamespace(
        query_devices=query_devices,
        check_input_settings=check_input_settings,
        InputStream=FakeInputStream,
        PortAudioError=FakePortAudioError,
        default=types.SimpleNamespace(device=[1, 0]),
    )


@pytest.fixture
def fake_sd(monkeypatch):
    FakeInputStream.instances = []
    fake = make_fake_sounddevice()
    monkeypatch.setattr(audio_input, "_sounddevice", lambda: fake)
    return fake


class TestSoundDeviceInput:
    def test_uses_device_default_sample_rate(self, fake_sd):
        source = SoundDeviceInput()

        assert source.sample_rate == 48000
        assert source.device_name == "Fake Mic"
        assert source.frames_per_buffer == 1024

    def test_explicit_settings(self, fake_sd):
        source = SoundDeviceInput(device_id=2, sample_rate=44100, frames_per_buffer=0)

        assert source.device_name == "USB Interface"
        assert source.sample_rate == 44100
        assert source.frames_per_buffer == 0

    def test_start_opens_mono_float_stream(self, fake_sd):
        source = SoundDeviceInput(frames_per_buffer=512)
        source.start(lambda samples, rate: None)

        stream = FakeInputStream.instances[-1]
        assert stream.started
        assert stream.kwargs["channels"] == 1
        assert stream.kwargs["dtype"] == "float32"
        assert stream.kwargs["blocksize"] == 512
        assert stream.kwargs["samplerate"] == 48000
        assert source.is_running()

    def test_callback_delivers_first_channel_and_rate(self, fake_sd):
        received = []
        source = SoundDeviceInput()
        source.start(lambda samples, rate: received.append((samples.copy(), rate)))

        indata = np.arange(8, dtype=np.float32).reshape(4, 2)
        stream = FakeInputStream.instances[-1]
        stream.kwargs["callback"](indata, 4, None, None)

        samples, rate = received[0]
        np.testing.assert_array_equal(samples, [0.0, 2.0, 4.0, 6.0])
        assert rate == 48000

    def test_stop_closes_stream(self, fake_sd):
        source = SoundDeviceInput()
        source.start(lambda samples, rate: None)
        stream = FakeInputStream.instances[-1]

        source.stop()

        assert stream.closed
        assert not source.is_running()

    def test_start_failure_raises_audio_source_error(self, monkeypatch):
        fake = make_fake_sounddevice(check_error=FakePortAudioError("Invalid sample rate"))
        monkeypatch.setattr(audio_input, "_sounddevice", lambda: fake)
        source = SoundDeviceInput(sample_rate=12345)

        with pytest.raises(AudioSourceError, match="Invalid sample rate"):
            source.start(lambda samples, rate: None)
        assert not source.is_running()

    def test_missing_device_raises_audio_source_error(self, monkeypatch):
        fake = make_fake_sounddevice()

        def no_device(device=None, kind=None):
            raise FakePortAudioError("No default input device")

        fake.query_devices = no_device
        monkeypatch.setattr(audio_input, "_sounddevice", lambda: fake)

        with pytest.raises(AudioSourceError, match="No input device available"):
            SoundDeviceInput()

    def test_negative_buffer_size_is_rejected(self, fake_sd):
        with pytest.raises(ValueError):
            SoundDeviceInput(frames_per_buffer=-1)


def test_list_input_devices(fake_sd):
    inputs = list_input_devices()

    assert [d["name"] for d in inputs] == ["Fake Mic", "USB Interface"]
    assert inputs[0]["id"] == 1
    assert inputs[0]["is_default"] is True
    assert inputs[1]["is_default"] is False


class TestWavFileInput:
    def test_delivers_whole_buffers(self, write_wav, sine):
        path = write_wav("a4.wav", sine(440.0, sample_rate=22050, size=22050, amplitude=0.5), 22050)
        buffers = []

        source = WavFileInput(path, frames_per_buffer=1000)
        source.start(lambda samples, rate: buffers.append((len(samples), rate)))

        assert source.wait(timeout=10)
        assert len(buffers) == 22
        assert set(buffers) == {(1000, 22050)}
        assert source.error is None
        assert not source.is_running()

    def test_reports_file_properties(self, write_wav):
        path = write_wav("silence.wav", np.zeros(8000), 16000)
        source = WavFileInput(path)

        assert source.sample_rate == 16000
        assert source.duration == pytest.approx(0.5)
        assert source.frames_per_buffer == 2048
        assert source.device_name == path

    def test_stereo_file_uses_first_channel(self, write_wav):
        stereo = np.zeros((4096, 2))
        stereo[:, 0] = 0.25
        stereo[:, 1] = -0.25
        path = write_wav("stereo.wav", stereo)
        buffers = []

        source = WavFileInput(path, frames_per_buffer=2048)
        source.start(lambda samples, rate: buffers.append(samples.copy()))
        source.wait(timeout=10)

        assert len(buffers) == 2
        assert buffers[0].ndim == 1
        assert np.allclose(buffers[0], 0.25, atol=1e-3)

    def test_gain_is_applied(self, write_wav):
        path = write_wav("quiet.wav", np.full(2048, 0.1))
        buffers = []

        source = WavFileInput(path, frames_per_buffer=2048, gain=4.0)
        source.start(lambda samples, rate: buffers.append(samples.copy()))
        source.wait(timeout=10)

        assert np.allclose(buffers[0], 0.4, atol=1e-3)

    def test_position_tracks_buffer_start(self, write_wav):
        path = write_wav("positions.wav", np.zeros(4000), 1000)
        positions = []

        source = WavFileInput(path, frames_per_buffer=1000)
        source.start(lambda samples, rate: positions.append(source.position))
        source.wait(timeout=10)

        assert positions == [0.0, 1.0, 2.0, 3.0]

    def test_callback_errors_are_kept(self, write_wav):
        path = write_wav("boom.wav", np.zeros(4096))

        def explode(samples, rate):
            raise ValueError("bad buffer")

        source = WavFileInput(path)
        source.start(explode)
        source.wait(timeout=10)

        assert isinstance(source.error, ValueError)

    def test_missing_file_raises_audio_source_error(self, tmp_path):
        with pytest.raises(AudioSourceError):
            WavFileInput(str(tmp_path / "missing.wav"))

    def test_tiny_buffer_is_rejected(self, write_wav):
        path = write_wav("x.wav", np.zeros(100))
        with pytest.raises(ValueError):
            WavFileInput(path, frames_per_buffer=1)
