"""Live Pitch: real-time pitch detection and tuning offsets from audio buffers."""

from .note_types import PitchEstimate, NoteResult, TunerReading
from .note_utils import frequency_to_note, get_note_name
from .audio.pitch_estimator import YinPitchEstimator
from .audio.tuner_service import TunerService

__version__ = "0.1.0"

__all__ = [
    "PitchEstimate",
    "NoteResult",
    "TunerReading",
    "frequency_to_note",
    "get_note_name",
    "YinPitchEstimator",
    "TunerService",
]
