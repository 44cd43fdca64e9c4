"""Type definitions for the Live Pitch project."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PitchEstimate:
    """A fundamental frequency found in one audio buffer."""

    frequency: float  # Frequency in Hz, always > 0
    clarity: float  # Periodicity confidence (0-1), 1.0 is a perfect repeat


@dataclass(frozen=True)
class NoteResult:
    """The nearest equal-tempered note for a frequency."""

    note_name: str  # Pitch class plus octave (e.g., 'A4', 'C#-1')
    cents_offset: float  # Signed deviation from the note, positive is sharp
    midi_note: int  # MIDI note number of the nearest note (A4 = 69)


@dataclass(frozen=True)
class TunerReading:
    """One successful detection, as handed to display collaborators."""

    note_name: str
    cents_offset: float
    frequency: float
    clarity: float
    timestamp: float = 0.0  # Seconds since the tuner service started

    def as_tuple(self) -> Tuple[str, float, float, float]:
        return (self.note_name, self.cents_offset, self.frequency, self.clarity)
