"""Utility functions for working with musical notes and frequencies."""

import math

import numpy as np

from .note_types import NoteResult

# Standard reference: A4 = 440Hz, MIDI note 69
A4_FREQUENCY = 440.0
A4_MIDI = 69

NOTE_NAMES = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]


def _check_frequency(freq: float) -> float:
    if isinstance(freq, bool) or not isinstance(freq, (int, float, np.floating, np.integer)):
        raise ValueError(f"Frequency must be a real number, got {freq!r}")
    freq = float(freq)
    if not math.isfinite(freq) or freq <= 0:
        raise ValueError(f"Frequency must be positive and finite, got {freq}")
    return freq


def nearest_midi_note(midi_float: float) -> int:
    """Round a fractional MIDI number to the nearest note.

    Exact halves round away from zero (69.5 -> 70, -0.5 -> -1). Python's
    built-in ``round`` and ``np.round`` round halves to even, which would send
    a tone exactly between two notes to whichever neighbour happens to be even.

    Args:
        midi_float: Fractional MIDI note number

    Returns:
        The nearest integer MIDI note number
    """
    rounded = math.floor(abs(midi_float) + 0.5)
    return int(rounded) if midi_float >= 0 else -int(rounded)


def frequency_to_midi(freq: float) -> float:
    """Convert a frequency in Hz to a fractional MIDI note number.

    Raises:
        ValueError: If the frequency is not a positive, finite number
    """
    freq = _check_frequency(freq)
    return float(12 * np.log2(freq / A4_FREQUENCY) + A4_MIDI)


def midi_to_frequency(midi_note: float) -> float:
    """Return the equal-tempered frequency of a (possibly fractional) MIDI note."""
    return float(A4_FREQUENCY * 2.0 ** ((midi_note - A4_MIDI) / 12.0))


def midi_to_note_name(midi_note: int) -> str:
    """Name a MIDI note number in Scientific Pitch Notation (60 -> 'C4').

    Floor division and modulo keep the pitch class in range for negative
    numbers, so MIDI -1 is 'B-2' rather than an index error.
    """
    note_index = midi_note % 12
    octave = midi_note // 12 - 1
    return f"{NOTE_NAMES[note_index]}{octave}"


def frequency_to_note(freq: float) -> NoteResult:
    """Convert a frequency to the nearest note name and its cents offset.

    Args:
        freq: Frequency in Hz

    Returns:
        NoteResult with the note name (e.g., 'A4', 'G#-1'), the signed cents
        offset from that note's exact frequency and its MIDI number

    Raises:
        ValueError: If the frequency is not a positive, finite number

    Note:
        - Middle C is C4 (261.63 Hz), MIDI 60
        - The offset is within +/-50 cents. A tie rounds away from zero:
          above MIDI 0 the upper note wins at -50, below it the lower note
          wins at +50
    """
    midi_float = frequency_to_midi(freq)
    midi_note = nearest_midi_note(midi_float)

    standard_freq = midi_to_frequency(midi_note)
    cents_offset = float(1200 * np.log2(float(freq) / standard_freq))

    return NoteResult(
        note_name=midi_to_note_name(midi_note),
        cents_offset=cents_offset,
        midi_note=midi_note,
    )


def get_note_name(freq: float) -> str:
    """Convert frequency to note name using Scientific Pitch Notation (SPN).

    Args:
        freq: Frequency in Hz

    Returns:
        Note name with octave in SPN (e.g., 'A4', 'C#4')
    """
    return frequency_to_note(freq).note_name
