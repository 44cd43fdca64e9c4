"""Console presentation of tuner readings."""

from typing import IO, Optional

import click

from ..note_types import TunerReading

READING_FORMAT = (
    "Note: {note:<4} | Offset: {cents:>+5.1f} cents | Freq: {freq:>7.2f} Hz | Clarity: {clarity:.2f}"
)


def format_reading(reading: TunerReading) -> str:
    """Render a reading as a fixed-width status line."""
    return READING_FORMAT.format(
        note=reading.note_name,
        cents=reading.cents_offset,
        freq=reading.frequency,
        clarity=reading.clarity,
    )


class ConsoleDisplay:
    """Writes readings to the terminal.

    In overwrite mode each reading replaces the previous one on the same line,
    like a tuner needle; otherwise one line is printed per reading with its
    timestamp.
    """

    def __init__(self, overwrite: bool = True, file: Optional[IO[str]] = None) -> None:
        self._overwrite = overwrite
        self._file = file
        self.count = 0

    def show(self, reading: TunerReading, at: Optional[float] = None) -> None:
        """Print one reading, stamped with `at` seconds if given."""
        line = format_reading(reading)
        if self._overwrite:
            # Trailing spaces clear leftovers from a longer previous line
            click.echo(f"\r{line}   ", nl=False, file=self._file)
        else:
            stamp = reading.timestamp if at is None else at
            click.echo(f"[{stamp:7.2f}s] {line}", file=self._file)
        self.count += 1

    def finish(self) -> None:
        """End the in-place line so later output starts on a fresh one."""
        if self._overwrite and self.count:
            click.echo("", file=self._file)
