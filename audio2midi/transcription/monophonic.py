"""Monophonic transcription using YIN pitch tracking and onset-based tempo."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from ..core import TranscriptionConfig
from ..analysis import FrameExtractor, PitchAnalyzer, TempoAnalyzer
from ..analysis.pitch import ProgressCallback
from ..processing import NoteBuilder, NoteCleanup
from .base import Transcriber, Transcription

logger = logging.getLogger(__name__)


class MonophonicTranscriber(Transcriber):
    """Transcribes monophonic audio with frame-wise YIN and note consolidation."""

    def __init__(self, config: Optional[TranscriptionConfig] = None):
        """
        Initialize MonophonicTranscriber.

        Args:
            config: Tuning configuration (defaults to TranscriptionConfig())
        """
        self.config = (config or TranscriptionConfig()).validate()
        self.pitch_analyzer = PitchAnalyzer(self.config)
        self.tempo_analyzer = TempoAnalyzer(self.config)
        self.cleaner = NoteCleanup(self.config)

    def analyze(
        self,
        audio: np.ndarray,
        sr: int,
        progress: Optional[ProgressCallback] = None,
    ) -> Transcription:
        """
        Run pitch tracking and tempo estimation, then build notes.

        The two analysis passes share no data and run on separate threads;
        note building starts once both are done.

        Args:
            audio: Audio array (mono)
            sr: Sample rate
            progress: Optional callback receiving the fraction of pitch
                frames analyzed

        Returns:
            Transcription with notes and tempo

        Raises:
            InvalidInputError: If the buffer or sample rate is unusable
        """
        extractor = FrameExtractor(self.config.window_size, self.config.hop_size)
        audio, sr = extractor.check(audio, sr)

        logger.info(
            "Transcribing %d samples at %d Hz (%.2fs)", len(audio), sr, len(audio) / sr
        )

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="audio2midi") as pool:
            tempo_future = pool.submit(self.tempo_analyzer.estimate, audio, sr)
            pitch_future = pool.submit(self.pitch_analyzer.track, audio, sr, progress)
            pitch_frames = pitch_future.result()
            tempo = tempo_future.result()

        builder = NoteBuilder.for_sample_rate(sr, self.config)
        notes = builder.build(pitch_frames)

        merged = 0
        if self.config.merge_pass:
            notes, merged = self.cleaner.merge_adjacent(notes)

        logger.info("Detected %d notes at %.0f BPM", len(notes), tempo.bpm)
        return Transcription(
            notes=notes,
            tempo=tempo,
            pitch_frames=pitch_frames,
            merged_notes=merged,
        )
