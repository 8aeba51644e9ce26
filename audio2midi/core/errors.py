"""Error types raised by audio2midi."""


class Audio2MidiError(Exception):
    """Base class for all audio2midi errors."""


class InvalidInputError(Audio2MidiError, ValueError):
    """Raised when a sample buffer, configuration or note list is unusable."""


class EncodingOverflowError(Audio2MidiError, OverflowError):
    """Raised when a value does not fit a 4-byte variable-length quantity."""
