"""End-to-end conversion: PCM samples to notes, tempo and MIDI bytes.

`AudioToMidiConverter.convert` runs synchronously. `submit` runs a
conversion on a background executor and reports a tagged result so a
caller's own thread is never blocked and never sees a raised exception.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .core import Audio2MidiError, Note, TranscriptionConfig
from .analysis import TempoInfo
from .analysis.pitch import ProgressCallback
from .output import MIDIEncoder
from .transcription import MonophonicTranscriber

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Notes, tempo and the encoded MIDI file for one buffer."""

    notes: List[Note]
    tempo: TempoInfo
    midi: bytes

    @property
    def bpm(self) -> float:
        return self.tempo.bpm


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of a background conversion: a result or an error, never both."""

    success: bool
    result: Optional[ConversionResult] = None
    error: Optional[Audio2MidiError] = None

    @classmethod
    def ok(cls, result: ConversionResult) -> "WorkerResult":
        return cls(success=True, result=result)

    @classmethod
    def failed(cls, error: Audio2MidiError) -> "WorkerResult":
        return cls(success=False, error=error)


class AudioToMidiConverter:
    """Convert a decoded sample buffer into a Standard MIDI File."""

    def __init__(
        self,
        config: Optional[TranscriptionConfig] = None,
        embed_tempo: bool = False,
    ):
        """
        Initialize AudioToMidiConverter.

        Args:
            config: Tuning configuration
            embed_tempo: Write the detected tempo into the MIDI file and
                place events on that tempo's tick grid
        """
        self.config = (config or TranscriptionConfig()).validate()
        self.embed_tempo = embed_tempo
        self.transcriber = MonophonicTranscriber(self.config)

    def encoder_for(self, tempo: TempoInfo) -> MIDIEncoder:
        return MIDIEncoder(
            ticks_per_quarter=self.config.ticks_per_quarter,
            release_velocity=self.config.release_velocity,
            tempo=tempo.bpm if self.embed_tempo else None,
        )

    def convert(
        self,
        samples: np.ndarray,
        sample_rate: int,
        progress: Optional[ProgressCallback] = None,
    ) -> ConversionResult:
        """
        Convert samples to notes, tempo and MIDI bytes.

        Args:
            samples: Mono PCM samples in [-1, 1]
            sample_rate: Sample rate in Hz
            progress: Optional pitch-tracking progress callback

        Returns:
            ConversionResult. A buffer without pitched content gives an
            empty note list and a valid, event-free MIDI file.

        Raises:
            InvalidInputError: If the buffer or configuration is unusable
            EncodingOverflowError: If a delta time cannot be encoded
        """
        transcription = self.transcriber.analyze(samples, sample_rate, progress=progress)
        midi = self.encoder_for(transcription.tempo).encode(transcription.notes)
        return ConversionResult(
            notes=transcription.notes,
            tempo=transcription.tempo,
            midi=midi,
        )

    def convert_safely(
        self,
        samples: np.ndarray,
        sample_rate: int,
        progress: Optional[ProgressCallback] = None,
    ) -> WorkerResult:
        """Like convert, but report failures as a WorkerResult."""
        try:
            return WorkerResult.ok(self.convert(samples, sample_rate, progress))
        except Audio2MidiError as e:
            logger.warning("Conversion failed: %s", e)
            return WorkerResult.failed(e)


def convert(
    samples: np.ndarray,
    sample_rate: int,
    config: Optional[TranscriptionConfig] = None,
    embed_tempo: bool = False,
) -> ConversionResult:
    """Convert samples with a one-off converter."""
    return AudioToMidiConverter(config, embed_tempo=embed_tempo).convert(samples, sample_rate)


def submit(
    samples: np.ndarray,
    sample_rate: int,
    config: Optional[TranscriptionConfig] = None,
    executor: Optional[Executor] = None,
    embed_tempo: bool = False,
    progress: Optional[ProgressCallback] = None,
) -> "Future[WorkerResult]":
    """
    Run a conversion in the background.

    Args:
        samples: Mono PCM samples
        sample_rate: Sample rate in Hz
        config: Tuning configuration
        executor: Executor to run on. A private single-worker thread pool
            is used, and shut down afterwards, when omitted.
        embed_tempo: See AudioToMidiConverter
        progress: Optional progress callback, invoked on the worker thread

    Returns:
        Future resolving to a WorkerResult. Dropping the future abandons
        the conversion.
    """
    converter = AudioToMidiConverter(config, embed_tempo=embed_tempo)
    # The caller's buffer must not change while the worker reads it
    buffer = np.array(samples, dtype=np.float32, copy=True)

    if executor is not None:
        return executor.submit(converter.convert_safely, buffer, sample_rate, progress)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="audio2midi-worker")
    future = own_executor.submit(converter.convert_safely, buffer, sample_rate, progress)
    own_executor.shutdown(wait=False)
    return future
