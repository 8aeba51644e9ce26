"""Note data class - one transcribed note event."""

import math
from dataclasses import dataclass

import numpy as np

from .constants import MIDI_MAX, MIDI_MIN, PITCH_NAMES
from .errors import InvalidInputError


@dataclass
class Note:
    """A note with absolute timing in seconds."""

    pitch: int  # MIDI pitch (0-127)
    onset: float  # Start time in seconds
    duration: float  # Length in seconds
    velocity: int = 64  # MIDI velocity (0-127)

    @property
    def offset(self) -> float:
        """Note end time in seconds."""
        return self.onset + self.duration

    @property
    def pitch_name(self) -> str:
        """Scientific pitch name, e.g. 'C4' or 'A#3'."""
        return f"{PITCH_NAMES[self.pitch % 12]}{self.pitch // 12 - 1}"

    def validate(self) -> "Note":
        """
        Check that the note can be written to a MIDI file.

        Raises:
            InvalidInputError: On out-of-range pitch or velocity, or
                negative or non-finite timing
        """
        if not MIDI_MIN <= self.pitch <= MIDI_MAX:
            raise InvalidInputError(f"Pitch out of range: {self.pitch}")
        if not MIDI_MIN <= self.velocity <= MIDI_MAX:
            raise InvalidInputError(f"Velocity out of range: {self.velocity}")
        if not (math.isfinite(self.onset) and math.isfinite(self.duration)):
            raise InvalidInputError(f"Non-finite note timing: {self}")
        if self.onset < 0 or self.duration < 0:
            raise InvalidInputError(f"Negative note timing: {self}")
        return self

    @staticmethod
    def freq_to_midi(freq: float) -> int:
        """Nearest MIDI pitch for a frequency in Hz (0 for non-positive input)."""
        if not freq > 0:
            return 0
        return int(round(69 + 12 * np.log2(freq / 440.0)))

    @staticmethod
    def midi_to_freq(midi: int) -> float:
        """Equal-tempered frequency (A4 = 440 Hz) of a MIDI pitch."""
        return 440.0 * 2 ** ((midi - 69) / 12.0)
