"""Factory for creating Live Pitch components."""

from typing import Optional, Dict, Type

from ..logger import get_logger
from ..audio.aubio_estimator import AubioPitchEstimator
from ..audio.audio_input import SoundDeviceInput, WavFileInput
from ..audio.pitch_estimator import YinPitchEstimator
from ..audio.tuner_service import TunerService
from .config import ConfigManager
from .interfaces import IAudioSource, IPitchEstimator

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating Live Pitch components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.pitch_estimator_classes: Dict[str, Type[IPitchEstimator]] = {
            "yin": YinPitchEstimator,
            "aubio": AubioPitchEstimator,
        }

        self.audio_source_classes: Dict[str, Type[IAudioSource]] = {
            "sounddevice": SoundDeviceInput,
            "file": WavFileInput,
        }

    def create_pitch_estimator(
        self, implementation: str = "yin", **kwargs
    ) -> IPitchEstimator:
        """Create a pitch estimator.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Threshold overrides; None values keep the configured default

        Returns:
            Pitch estimator instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.pitch_estimator_classes:
            raise ValueError(f"Unknown pitch estimator implementation: {implementation}")

        config = self.config_manager.get_config("pitch_estimator")
        config.update({k: v for k, v in kwargs.items() if v is not None})

        cls = self.pitch_estimator_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created pitch estimator: {implementation}")
        return instance

    def create_audio_source(
        self, implementation: str = "sounddevice", **kwargs
    ) -> IAudioSource:
        """Create an audio source.

        The live input takes its defaults from the 'audio_input' configuration;
        the file source only takes what is passed in.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Audio source instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.audio_source_classes:
            raise ValueError(f"Unknown audio source implementation: {implementation}")

        config = {}
        if implementation == "sounddevice":
            config = self.config_manager.get_config("audio_input")
        config.update({k: v for k, v in kwargs.items() if v is not None})

        cls = self.audio_source_classes[implementation]
        instance = cls(**config)

        logger.info(f"Created audio source: {implementation}")
        return instance

    def create_tuner_service(
        self,
        audio_source: Optional[IAudioSource] = None,
        pitch_estimator: Optional[IPitchEstimator] = None,
    ) -> TunerService:
        """Create a tuner service.

        Args:
            audio_source: Audio source, or None to create the default live input
            pitch_estimator: Estimator, or None to create the default YIN estimator

        Returns:
            Tuner service instance
        """
        if audio_source is None:
            audio_source = self.create_audio_source()

        if pitch_estimator is None:
            pitch_estimator = self.create_pitch_estimator()

        instance = TunerService(audio_source=audio_source, pitch_estimator=pitch_estimator)

        logger.info("Created tuner service")
        return instance
