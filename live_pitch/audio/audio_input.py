"""Audio sources that feed fixed-size mono buffers to the tuner."""

from __future__ import annotations
import threading
import time
from typing import Optional, ClassVar, List, Dict, Any

import numpy as np
import soundfile as sf

from ..logger import get_logger
from ..core.interfaces import IAudioSource, BufferCallback

logger = get_logger(__name__)


class AudioSourceError(Exception):
    """Raised when an audio source cannot be opened or started."""


def _sounddevice():
    """Import sounddevice on first use; importing it loads the PortAudio library."""
    try:
        import sounddevice
    except OSError as e:
        raise AudioSourceError(f"Audio input is unavailable: {e}") from e
    return sounddevice


def list_input_devices() -> List[Dict[str, Any]]:
    """List the audio devices that can record.

    Returns:
        One dict per input device with its id, name, channel count, default
        sample rate and whether it is the system default input
    """
    sd = _sounddevice()
    try:
        devices = sd.query_devices()
        default_input = sd.default.device[0]
    except sd.PortAudioError as e:
        raise AudioSourceError(f"Could not query audio devices: {e}") from e

    inputs = []
    for device_id, device in enumerate(devices):
        if device["max_input_channels"] > 0:
            inputs.append(
                {
                    "id": device_id,
                    "name": device["name"],
                    "channels": device["max_input_channels"],
                    "default_samplerate": device["default_samplerate"],
                    "is_default": device_id == default_input,
                }
            )
    return inputs


class AudioInputHandler(IAudioSource):
    """Shared state for audio sources."""

    _running: bool = False
    _sample_rate: int = 0

    def is_running(self) -> bool:
        """Check if audio input is running.

        Returns:
            True if audio input is running, False otherwise
        """
        return self._running

    @property
    def sample_rate(self) -> int:
        return self._sample_rate


class SoundDeviceInput(AudioInputHandler):
    """Live microphone input using the sounddevice library."""

    # Audio configuration
    FRAMES_PER_BUFFER: ClassVar[int] = 1024  # 0 lets PortAudio pick (variable size)
    CHANNELS: ClassVar[int] = 1  # Mono audio

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frames_per_buffer: Optional[int] = None,
    ) -> None:
        """Initialize the audio input handler.

        Args:
            device_id: Audio input device ID, or None for the system default
            sample_rate: Sample rate in Hz, or None for the device's default rate
            frames_per_buffer: Buffer size in frames, or None for default (1024)
        """
        self._device_id = device_id
        self._frames_per_buffer = (
            self.FRAMES_PER_BUFFER if frames_per_buffer is None else frames_per_buffer
        )
        if self._frames_per_buffer < 0:
            raise ValueError("frames_per_buffer must not be negative")

        self._stream: Optional[Any] = None
        self._callback: Optional[BufferCallback] = None
        self._running = False

        self._device_info = self._query_device()
        self._sample_rate = int(sample_rate or self._device_info["default_samplerate"])

    def _query_device(self) -> Dict[str, Any]:
        """Look up the selected input device, failing if there is none."""
        sd = _sounddevice()
        try:
            return sd.query_devices(self._device_id, "input")
        except (sd.PortAudioError, ValueError) as e:
            raise AudioSourceError(f"No input device available: {e}") from e

    @property
    def device_name(self) -> str:
        return self._device_info["name"]

    @property
    def frames_per_buffer(self) -> int:
        return self._frames_per_buffer

    def _audio_callback(
        self,
        indata: np.ndarray,
        _frames: int,
        _time_info: Any,
        status: Any,
    ) -> None:
        """Callback for processing audio data from the input stream.

        Note:
            This is called from PortAudio's capture thread, so it should be
            fast and avoid any blocking operations to prevent audio glitches.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        if self._callback:
            # Extract mono audio data (take first channel if multi-channel)
            audio_data = indata[:, 0] if indata.ndim > 1 else indata
            self._callback(audio_data, self._sample_rate)

    def start(self, callback: BufferCallback) -> None:
        """Start capturing audio and pass each buffer to the callback.

        Args:
            callback: Function called with (samples, sample_rate) per buffer

        Raises:
            AudioSourceError: If the stream cannot be opened
        """
        if self._running:
            logger.warning("Audio input already running")
            return

        self._callback = callback
        sd = _sounddevice()
        try:
            sd.check_input_settings(
                device=self._device_id,
                channels=self.CHANNELS,
                dtype="float32",
                samplerate=self._sample_rate,
            )
            self._stream = sd.InputStream(
                device=self._device_id,
                samplerate=self._sample_rate,
                blocksize=self._frames_per_buffer,
                channels=self.CHANNELS,
                dtype="float32",
                callback=self._audio_callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            if self._stream is not None:
                self._stream.close()
                self._stream = None
            raise AudioSourceError(
                f"Could not start audio input on '{self.device_name}' at {self._sample_rate} Hz: {e}"
            ) from e

        self._running = True
        logger.info(
            f"Audio input started: device='{self.device_name}', rate={self._sample_rate}Hz, "
            f"blocksize={self._frames_per_buffer}"
        )

    def stop(self) -> None:
        """Stop capturing audio."""
        if not self._running:
            return

        sd = _sounddevice()
        try:
            if self._stream:
                self._stream.stop()
                self._stream.close()
        except sd.PortAudioError as e:
            logger.error(f"Error stopping audio input: {e}")
        finally:
            self._stream = None
            self._running = False
        logger.info("Audio input stopped")


class WavFileInput(AudioInputHandler):
    """Replays a sound file as if it were a live input device."""

    FRAMES_PER_BUFFER: ClassVar[int] = 2048

    def __init__(
        self,
        file_path: str,
        frames_per_buffer: Optional[int] = None,
        realtime: bool = False,
        loop: bool = False,
        gain: float = 1.0,
    ) -> None:
        """Initialize the file source.

        Args:
            file_path: Path to any file libsndfile can read (WAV, FLAC, ...)
            frames_per_buffer: Buffer size in frames, or None for default (2048)
            realtime: If True, pace buffers at the file's sample rate
            loop: If True, restart from the beginning at end of file
            gain: Linear gain applied to every sample
        """
        self._file_path = file_path
        self._frames_per_buffer = frames_per_buffer or self.FRAMES_PER_BUFFER
        if self._frames_per_buffer < 2:
            raise ValueError("frames_per_buffer must be at least 2")
        self._realtime = realtime
        self._loop = loop
        self._gain = gain

        self._callback: Optional[BufferCallback] = None
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[Exception] = None
        # Start time in seconds of the buffer currently being delivered
        self.position = 0.0

        try:
            info = sf.info(self._file_path)
        except (RuntimeError, OSError) as e:
            raise AudioSourceError(f"Could not open {self._file_path}: {e}") from e
        self._sample_rate = int(info.samplerate)
        self._channels = info.channels
        self._frames = info.frames

    @property
    def device_name(self) -> str:
        return str(self._file_path)

    @property
    def frames_per_buffer(self) -> int:
        return self._frames_per_buffer

    @property
    def duration(self) -> float:
        """Length of the file in seconds."""
        return self._frames / self._sample_rate if self._sample_rate else 0.0

    def start(self, callback: BufferCallback) -> None:
        if self._running:
            logger.warning("File input already running")
            return

        self._callback = callback
        self.error = None
        self._running = True
        self._thread = threading.Thread(
            target=self._stream_data, name="live-pitch-file", daemon=True
        )
        self._thread.start()
        logger.info(f"Replaying {self._file_path} ({self._sample_rate} Hz, {self._channels} ch)")

    def stop(self) -> None:
        self._running = False
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the file has been fully delivered.

        Returns:
            True if the replay finished, False if the timeout expired first
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _stream_data(self) -> None:
        interval = self._frames_per_buffer / self._sample_rate
        try:
            with sf.SoundFile(self._file_path) as f:
                while self._running:
                    data = f.read(self._frames_per_buffer, dtype="float32", always_2d=True)
                    # Only whole buffers are delivered, like a capture device
                    if len(data) < self._frames_per_buffer:
                        if self._loop and f.frames >= self._frames_per_buffer:
                            f.seek(0)
                            continue
                        break

                    self.position = (f.tell() - len(data)) / self._sample_rate
                    audio_data = data[:, 0]
                    if self._gain != 1.0:
                        audio_data = audio_data * self._gain

                    if self._callback:
                        self._callback(audio_data, self._sample_rate)

                    if self._realtime:
                        time.sleep(interval)
        except Exception as e:
            logger.error(f"Error streaming {self._file_path}: {e}", exc_info=True)
            self.error = e
        finally:
            self._running = False
