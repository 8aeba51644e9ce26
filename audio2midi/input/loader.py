"""Audio loading and sample buffer validation."""

import numbers

import numpy as np
import librosa
from pathlib import Path
from typing import Tuple, Optional

from ..core import InvalidInputError


def validate_samples(samples, sample_rate) -> Tuple[np.ndarray, int]:
    """
    Check a decoded PCM buffer and coerce it to a 1-D float32 array.

    Args:
        samples: Sequence of amplitudes, nominally in [-1, 1]
        sample_rate: Sample rate in Hz

    Returns:
        Tuple of (float32 array, integer sample rate)

    Raises:
        InvalidInputError: If the buffer is empty or not 1-D, or the sample
            rate is not a positive integer
    """
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, numbers.Integral):
        raise InvalidInputError(f"Sample rate must be an integer, got {sample_rate!r}")
    if sample_rate <= 0:
        raise InvalidInputError(f"Sample rate must be positive, got {sample_rate}")

    audio = np.asarray(samples, dtype=np.float32)
    if audio.ndim != 1:
        raise InvalidInputError(
            f"Expected a single channel buffer, got shape {audio.shape}"
        )
    if audio.size == 0:
        raise InvalidInputError("Sample buffer is empty")

    return audio, int(sample_rate)


class AudioLoader:
    """Loads audio files into a single-channel sample buffer."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".mp4"}

    def __init__(
        self,
        target_sr: Optional[int] = None,
        normalize: bool = False,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the native rate)
            normalize: Peak-normalize audio amplitude if True
        """
        self.target_sr = target_sr
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load an audio file and return its first channel.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (audio array, sample rate)

        Raises:
            InvalidInputError: If file format not supported or the file holds no samples
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise InvalidInputError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        audio, sr = librosa.load(str(path), sr=self.target_sr, mono=False)

        # Multi-channel files come back as (channels, samples)
        if audio.ndim > 1:
            audio = audio[0]

        if self.normalize:
            audio = self._normalize(audio)

        return validate_samples(audio, int(sr))

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if audio.size else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    @staticmethod
    def get_duration(audio: np.ndarray, sr: int) -> float:
        """Get duration in seconds."""
        return len(audio) / sr
