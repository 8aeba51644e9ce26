"""Core types and constants for audio2midi."""

from .note import Note
from .config import TranscriptionConfig
from .errors import Audio2MidiError, InvalidInputError, EncodingOverflowError
from .constants import (
    PITCH_NAMES,
    DEFAULT_TEMPO,
    DEFAULT_TICKS_PER_QUARTER,
    NOTE_MIN,
    NOTE_MAX,
)

__all__ = [
    "Note",
    "TranscriptionConfig",
    "Audio2MidiError",
    "InvalidInputError",
    "EncodingOverflowError",
    "PITCH_NAMES",
    "DEFAULT_TEMPO",
    "DEFAULT_TICKS_PER_QUARTER",
    "NOTE_MIN",
    "NOTE_MAX",
]
