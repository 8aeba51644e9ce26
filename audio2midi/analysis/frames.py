"""Frame extraction - overlapping Hamming-tapered analysis windows."""

from dataclasses import dataclass
from typing import Iterator

import numpy as np
import librosa

from ..core import InvalidInputError
from ..input import validate_samples


@dataclass
class Frame:
    """One tapered analysis window."""

    index: int
    start: int  # First sample index
    time: float  # Start time in seconds
    samples: np.ndarray


class FrameExtractor:
    """Slice a sample buffer into overlapping, tapered frames."""

    def __init__(self, window_size: int = 4096, hop_size: int = 512):
        """
        Initialize FrameExtractor.

        Args:
            window_size: Frame length in samples
            hop_size: Step between frame starts in samples (<= window_size)
        """
        if window_size < 2:
            raise InvalidInputError(f"window_size must be at least 2, got {window_size}")
        if hop_size < 1:
            raise InvalidInputError(f"hop_size must be positive, got {hop_size}")
        if hop_size > window_size:
            raise InvalidInputError(
                f"hop_size ({hop_size}) must not exceed window_size ({window_size})"
            )

        self.window_size = window_size
        self.hop_size = hop_size
        # Symmetric Hamming: 0.54 - 0.46 * cos(2*pi*j / (W - 1))
        self.window = librosa.filters.get_window(
            "hamming", window_size, fftbins=False
        ).astype(np.float32)

    def count(self, n_samples: int) -> int:
        """Number of whole frames that fit in a buffer of n_samples."""
        if n_samples < self.window_size:
            return 0
        return 1 + (n_samples - self.window_size) // self.hop_size

    def check(self, samples, sample_rate: int):
        """Validate a buffer against this frame geometry."""
        audio, sr = validate_samples(samples, sample_rate)
        if self.window_size > len(audio):
            raise InvalidInputError(
                f"window_size ({self.window_size}) exceeds buffer length ({len(audio)})"
            )
        return audio, sr

    def frames(self, samples, sample_rate: int) -> Iterator[Frame]:
        """
        Yield tapered frames starting at 0, H, 2H, ... while they fit.

        Validation happens eagerly; the frames themselves are produced
        lazily and each call returns a fresh generator.

        Raises:
            InvalidInputError: If the buffer is empty, the sample rate is
                invalid, or the window is longer than the buffer
        """
        audio, sr = self.check(samples, sample_rate)
        return self._iter_frames(audio, sr)

    def _iter_frames(self, audio: np.ndarray, sr: int) -> Iterator[Frame]:
        for index in range(self.count(len(audio))):
            start = index * self.hop_size
            chunk = audio[start:start + self.window_size] * self.window
            yield Frame(index=index, start=start, time=start / sr, samples=chunk)
