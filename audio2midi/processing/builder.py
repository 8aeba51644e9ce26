"""Note building - turn per-frame pitch estimates into discrete notes."""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..core import InvalidInputError, Note, TranscriptionConfig
from ..analysis.pitch import PitchFrame


def velocity_from_amplitude(
    amplitude: float,
    scale: float = 300.0,
    offset: float = 0.0,
    low: int = 20,
    high: int = 127,
) -> int:
    """Map an RMS amplitude to a MIDI velocity, saturating at both ends."""
    if not math.isfinite(amplitude):
        return low
    return int(min(high, max(low, math.floor(amplitude * scale + offset))))


@dataclass
class _Accumulator:
    """Note being extended frame by frame."""

    onset: float
    duration: float
    velocity: int
    votes: Counter = field(default_factory=Counter)

    @property
    def pitch(self) -> int:
        # Most frequent frame pitch; Counter keeps first-seen order on ties
        return self.votes.most_common(1)[0][0]

    @property
    def end(self) -> float:
        return self.onset + self.duration

    def to_note(self) -> Note:
        return Note(
            pitch=self.pitch,
            onset=self.onset,
            duration=self.duration,
            velocity=self.velocity,
        )


class NoteBuilder:
    """Consolidate a time-ordered pitch track into notes.

    A frame continues the current note when its pitch is within
    pitch_tolerance semitones of the note and it starts no later than
    gap_tolerance seconds after the note ends. Anything else closes the
    note (dropped if shorter than min_duration) and opens a new one.
    """

    def __init__(
        self,
        frame_duration: float,
        config: Optional[TranscriptionConfig] = None,
    ):
        """
        Initialize NoteBuilder.

        Args:
            frame_duration: Seconds covered by one frame (hop / sample rate);
                see for_sample_rate
            config: Tuning configuration
        """
        if not (math.isfinite(frame_duration) and frame_duration > 0):
            raise InvalidInputError(f"frame_duration must be positive, got {frame_duration}")
        self.config = (config or TranscriptionConfig()).validate()
        self.frame_duration = frame_duration
        self._current: Optional[_Accumulator] = None
        self._notes: List[Note] = []

    @classmethod
    def for_sample_rate(
        cls, sample_rate: int, config: Optional[TranscriptionConfig] = None
    ) -> "NoteBuilder":
        config = (config or TranscriptionConfig()).validate()
        return cls(config=config, frame_duration=config.hop_size / sample_rate)

    def map_velocity(self, amplitude: float) -> int:
        cfg = self.config
        return velocity_from_amplitude(
            amplitude,
            scale=cfg.velocity_scale,
            offset=cfg.velocity_offset,
            low=cfg.velocity_min,
            high=cfg.velocity_max,
        )

    def add(self, time: float, frequency: Optional[float], amplitude: float) -> None:
        """Consume one frame."""
        cfg = self.config
        if frequency is None or not math.isfinite(frequency) or frequency <= 0:
            return
        if not math.isfinite(amplitude) or amplitude < cfg.amplitude_floor:
            return

        pitch = Note.freq_to_midi(frequency)
        if not cfg.min_pitch <= pitch <= cfg.max_pitch:
            return

        velocity = self.map_velocity(amplitude)
        current = self._current

        if (
            current is not None
            and abs(pitch - current.pitch) <= cfg.pitch_tolerance
            and time - current.end <= cfg.gap_tolerance
        ):
            current.duration = time + self.frame_duration - current.onset
            current.velocity = max(current.velocity, velocity)
            current.votes[pitch] += 1
            return

        self._finalize()
        self._current = _Accumulator(
            onset=max(0.0, time),
            duration=self.frame_duration,
            velocity=velocity,
            votes=Counter({pitch: 1}),
        )

    def _finalize(self) -> None:
        current = self._current
        self._current = None
        if current is not None and current.duration >= self.config.min_duration:
            self._notes.append(current.to_note())

    def finish(self) -> List[Note]:
        """Close any pending note and return all notes sorted by onset."""
        self._finalize()
        notes = sorted(self._notes, key=lambda n: n.onset)
        self._notes = []
        return notes

    def build(self, pitch_frames: Iterable[PitchFrame]) -> List[Note]:
        """
        Build notes from a whole pitch track.

        Args:
            pitch_frames: Time-ordered PitchFrame sequence

        Returns:
            List of notes sorted by onset
        """
        for frame in pitch_frames:
            self.add(frame.time, frame.frequency, frame.amplitude)
        return self.finish()
