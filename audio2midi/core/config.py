"""Tuning configuration for the transcription pipeline."""

import math
from dataclasses import dataclass, fields, replace as dataclass_replace

from .constants import (
    DEFAULT_AMPLITUDE_FLOOR,
    DEFAULT_HOP_SIZE,
    DEFAULT_MAX_FREQ,
    DEFAULT_MIN_FREQ,
    DEFAULT_RELEASE_VELOCITY,
    DEFAULT_TEMPO,
    DEFAULT_TEMPO_HOP,
    DEFAULT_TEMPO_WINDOW,
    DEFAULT_TICKS_PER_QUARTER,
    DEFAULT_WINDOW_SIZE,
    DEFAULT_YIN_THRESHOLD,
    MAX_TEMPO,
    MIDI_MAX,
    MIDI_MIN,
    MIN_TEMPO,
    NOTE_MAX,
    NOTE_MIN,
    VELOCITY_MIN,
)
from .errors import InvalidInputError

# Tolerances and thresholds that only make sense as finite, non-negative values
_NON_NEGATIVE = (
    "yin_threshold",
    "amplitude_floor",
    "pitch_tolerance",
    "gap_tolerance",
    "min_duration",
    "onset_threshold",
    "onset_energy_floor",
    "min_onset_separation",
    "min_interval",
    "max_interval",
    "cluster_tolerance",
)


@dataclass(frozen=True)
class TranscriptionConfig:
    """Configuration for audio to MIDI conversion.

    Tolerances and thresholds are tuning knobs rather than contracts; the
    defaults follow the worker-based YIN pipeline.

    Attributes:
        window_size: Pitch analysis frame length in samples (default: 4096)
        hop_size: Step between pitch frame starts in samples (default: 512)
        min_freq: Lowest detectable fundamental in Hz (default: 80)
        max_freq: Highest detectable fundamental in Hz (default: 2000)
        yin_threshold: Absolute threshold on the normalized difference (default: 0.1)
        amplitude_floor: Frame RMS below which a frame is silent (default: 0.01)
        min_pitch: Lowest MIDI pitch kept (default: 36)
        max_pitch: Highest MIDI pitch kept (default: 96)
        pitch_tolerance: Semitones a frame may deviate and still continue a note (default: 1)
        gap_tolerance: Seconds between a note end and the next frame to still continue it (default: 0.1)
        min_duration: Minimum note duration in seconds (default: 0.05)
        velocity_scale: Amplitude multiplier for velocity mapping (default: 300)
        velocity_offset: Constant added before velocity clamping (default: 0)
        velocity_min: Lowest mapped velocity (default: 20)
        velocity_max: Highest mapped velocity (default: 127)
        merge_pass: Run the note consolidation pass after frame building (default: True)
        tempo_window: Onset analysis frame length in samples (default: 2048)
        tempo_hop: Onset analysis hop in samples (default: 512)
        onset_threshold: Fraction of peak flux an onset must exceed (default: 0.3)
        onset_energy_floor: Frame RMS an onset must exceed (default: 0.02)
        min_onset_separation: Seconds between kept onsets (default: 0.1)
        min_interval: Shortest usable inter-onset interval in seconds (default: 0.2)
        max_interval: Longest usable inter-onset interval in seconds (default: 3.0)
        cluster_tolerance: Interval clustering tolerance in seconds (default: 0.1)
        min_tempo: Lower tempo clamp in BPM (default: 60)
        max_tempo: Upper tempo clamp in BPM (default: 180)
        default_tempo: Tempo used without enough onsets (default: 120)
        ticks_per_quarter: MIDI file time resolution (default: 480)
        release_velocity: Note-off velocity byte (default: 0x40)
        progress_interval: Frames between progress callbacks (default: 64)
    """

    window_size: int = DEFAULT_WINDOW_SIZE
    hop_size: int = DEFAULT_HOP_SIZE
    min_freq: float = DEFAULT_MIN_FREQ
    max_freq: float = DEFAULT_MAX_FREQ
    yin_threshold: float = DEFAULT_YIN_THRESHOLD
    amplitude_floor: float = DEFAULT_AMPLITUDE_FLOOR
    min_pitch: int = NOTE_MIN
    max_pitch: int = NOTE_MAX
    pitch_tolerance: int = 1
    gap_tolerance: float = 0.1
    min_duration: float = 0.05
    velocity_scale: float = 300.0
    velocity_offset: float = 0.0
    velocity_min: int = VELOCITY_MIN
    velocity_max: int = MIDI_MAX
    merge_pass: bool = True
    tempo_window: int = DEFAULT_TEMPO_WINDOW
    tempo_hop: int = DEFAULT_TEMPO_HOP
    onset_threshold: float = 0.3
    onset_energy_floor: float = 0.02
    min_onset_separation: float = 0.1
    min_interval: float = 0.2
    max_interval: float = 3.0
    cluster_tolerance: float = 0.1
    min_tempo: float = MIN_TEMPO
    max_tempo: float = MAX_TEMPO
    default_tempo: float = DEFAULT_TEMPO
    ticks_per_quarter: int = DEFAULT_TICKS_PER_QUARTER
    release_velocity: int = DEFAULT_RELEASE_VELOCITY
    progress_interval: int = 64

    def validate(self) -> "TranscriptionConfig":
        """Check the configuration, raising InvalidInputError on bad values."""
        if self.window_size < 2:
            raise InvalidInputError(f"window_size must be at least 2, got {self.window_size}")
        if self.hop_size < 1:
            raise InvalidInputError(f"hop_size must be positive, got {self.hop_size}")
        if self.hop_size > self.window_size:
            raise InvalidInputError(
                f"hop_size ({self.hop_size}) must not exceed window_size ({self.window_size})"
            )
        if not 0 < self.min_freq < self.max_freq:
            raise InvalidInputError(
                f"Invalid frequency range: {self.min_freq}-{self.max_freq} Hz"
            )
        if not MIDI_MIN <= self.min_pitch <= self.max_pitch <= MIDI_MAX:
            raise InvalidInputError(
                f"Invalid pitch range: {self.min_pitch}-{self.max_pitch}"
            )
        if not MIDI_MIN <= self.velocity_min <= self.velocity_max <= MIDI_MAX:
            raise InvalidInputError(
                f"Invalid velocity range: {self.velocity_min}-{self.velocity_max}"
            )
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if not (math.isfinite(value) and value >= 0):
                raise InvalidInputError(f"{name} must be finite and non-negative, got {value}")
        if not (math.isfinite(self.velocity_scale) and math.isfinite(self.velocity_offset)):
            raise InvalidInputError(
                f"Invalid velocity mapping: scale {self.velocity_scale}, offset {self.velocity_offset}"
            )
        if not self.min_interval < self.max_interval:
            raise InvalidInputError(
                f"Invalid interval range: {self.min_interval}-{self.max_interval} s"
            )
        if self.tempo_hop < 1 or self.tempo_window < self.tempo_hop:
            raise InvalidInputError(
                f"Invalid tempo framing: window {self.tempo_window}, hop {self.tempo_hop}"
            )
        if not 0 < self.min_tempo <= self.default_tempo <= self.max_tempo:
            raise InvalidInputError(
                f"Invalid tempo bounds: {self.min_tempo}-{self.max_tempo} "
                f"(default {self.default_tempo})"
            )
        if not 0 < self.ticks_per_quarter <= 0x7FFF:
            raise InvalidInputError(
                f"ticks_per_quarter must be in 1-32767, got {self.ticks_per_quarter}"
            )
        if not MIDI_MIN <= self.release_velocity <= MIDI_MAX:
            raise InvalidInputError(
                f"release_velocity must be in 0-127, got {self.release_velocity}"
            )
        if self.progress_interval < 1:
            raise InvalidInputError(
                f"progress_interval must be positive, got {self.progress_interval}"
            )
        return self

    def replace(self, **overrides) -> "TranscriptionConfig":
        """Return a copy with the given fields changed. None values are ignored."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise InvalidInputError(f"Unknown config fields: {sorted(unknown)}")
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclass_replace(self, **changes)
