"""Input layer - Sample buffers and audio files.

The core pipeline consumes decoded PCM; file decoding is delegated to
librosa for the command line front end.
"""

from .loader import AudioLoader, validate_samples

__all__ = [
    "AudioLoader",
    "validate_samples",
]
