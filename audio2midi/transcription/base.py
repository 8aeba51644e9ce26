"""Transcriber interface and result type."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ..core import Note
from ..analysis import PitchFrame, TempoInfo
from ..analysis.pitch import ProgressCallback


@dataclass
class Transcription:
    """Notes and tempo recovered from one buffer."""

    notes: List[Note]
    tempo: TempoInfo
    pitch_frames: List[PitchFrame] = field(default_factory=list, repr=False)
    merged_notes: int = 0


class Transcriber(ABC):
    """Turns a mono sample buffer into notes and a tempo."""

    @abstractmethod
    def analyze(
        self,
        audio: np.ndarray,
        sr: int,
        progress: Optional[ProgressCallback] = None,
    ) -> Transcription:
        """
        Run the full analysis on one buffer.

        Args:
            audio: Audio array (mono)
            sr: Sample rate
            progress: Optional callback receiving the fraction of work done

        Returns:
            Transcription with notes sorted by onset
        """

    def transcribe(self, audio: np.ndarray, sr: int) -> List[Note]:
        """Notes only, without tempo or per-frame data."""
        return self.analyze(audio, sr).notes
