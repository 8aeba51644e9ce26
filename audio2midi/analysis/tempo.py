"""Tempo analysis from spectral-flux onsets."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
import librosa
from librosa.util.exceptions import ParameterError

from ..core import TranscriptionConfig
from ..input import validate_samples

logger = logging.getLogger(__name__)


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    onset_times: np.ndarray = field(default_factory=lambda: np.zeros(0))
    confidence: float = 0.0  # Share of intervals supporting bpm, 0 for the default


@dataclass
class IntervalCluster:
    """Inter-onset intervals grouped around a common period."""

    intervals: List[float] = field(default_factory=list)

    @property
    def mean(self) -> float:
        return float(np.mean(self.intervals))

    def __len__(self) -> int:
        return len(self.intervals)


class TempoAnalyzer:
    """Estimate a single global tempo from onset spacing."""

    def __init__(self, config: Optional[TranscriptionConfig] = None):
        self.config = (config or TranscriptionConfig()).validate()

    def detect_onsets(self, audio: np.ndarray, sr: int) -> np.ndarray:
        """
        Detect note onsets using spectral flux.

        Onsets are local maxima of the flux envelope above
        onset_threshold * max(flux) with enough RMS energy in the analysis
        window that follows them.

        Returns:
            Array of onset times in seconds
        """
        cfg = self.config
        audio = np.nan_to_num(np.asarray(audio, dtype=np.float32), nan=0.0, posinf=0.0, neginf=0.0)

        onset_env = librosa.onset.onset_strength(
            y=audio, sr=sr, n_fft=cfg.tempo_window, hop_length=cfg.tempo_hop
        )
        if onset_env.size == 0 or onset_env.max() <= 0:
            return np.zeros(0)

        energy = librosa.feature.rms(
            y=audio, frame_length=cfg.tempo_window, hop_length=cfg.tempo_hop
        )[0]
        n = min(len(onset_env), len(energy))
        onset_env, energy = onset_env[:n], energy[:n]

        # A flux peak can sit just before its sound fills a frame, so gate on
        # the loudest frame within one analysis window ahead
        span = max(1, cfg.tempo_window // cfg.tempo_hop)
        padded = np.pad(energy, (0, span - 1), mode="edge")
        energy = sliding_window_view(padded, span).max(axis=1)

        peaks = librosa.util.localmax(onset_env)
        peaks &= onset_env > cfg.onset_threshold * onset_env.max()
        peaks &= energy > cfg.onset_energy_floor

        candidates = librosa.frames_to_time(
            np.flatnonzero(peaks), sr=sr, hop_length=cfg.tempo_hop
        )

        onsets = []
        for t in candidates:
            if onsets and t - onsets[-1] < cfg.min_onset_separation:
                continue
            onsets.append(float(t))

        return np.asarray(onsets)

    def intervals(self, onset_times: np.ndarray) -> np.ndarray:
        """Inter-onset intervals inside the plausible beat range."""
        if len(onset_times) < 2:
            return np.zeros(0)
        iois = np.diff(np.asarray(onset_times, dtype=float))
        keep = (iois > self.config.min_interval) & (iois < self.config.max_interval)
        return iois[keep]

    def cluster_intervals(self, intervals: np.ndarray) -> List[IntervalCluster]:
        """Group sorted intervals that lie within cluster_tolerance of a cluster mean."""
        clusters: List[IntervalCluster] = []
        for interval in np.sort(intervals):
            if clusters and abs(interval - clusters[-1].mean) <= self.config.cluster_tolerance:
                clusters[-1].intervals.append(float(interval))
            else:
                clusters.append(IntervalCluster([float(interval)]))
        return clusters

    def estimate(self, audio: np.ndarray, sr: int) -> TempoInfo:
        """
        Perform full tempo analysis.

        Args:
            audio: Audio array
            sr: Sample rate

        Returns:
            TempoInfo with bpm clamped to [min_tempo, max_tempo]
        """
        audio, sr = validate_samples(audio, sr)
        cfg = self.config

        try:
            onsets = self.detect_onsets(audio, sr)
        except (ParameterError, ValueError, FloatingPointError) as e:
            logger.debug("Onset detection failed; using default tempo: %s", e)
            return TempoInfo(bpm=cfg.default_tempo)

        if len(onsets) < 3:
            logger.debug("Only %d onsets found; using default tempo", len(onsets))
            return TempoInfo(bpm=cfg.default_tempo, onset_times=onsets)

        iois = self.intervals(onsets)
        if iois.size == 0:
            logger.debug("No usable inter-onset intervals; using default tempo")
            return TempoInfo(bpm=cfg.default_tempo, onset_times=onsets)

        clusters = self.cluster_intervals(iois)
        # max() keeps the first (shortest-interval) cluster on ties
        best = max(clusters, key=len)

        bpm = 60.0 / best.mean
        bpm = float(round(min(cfg.max_tempo, max(cfg.min_tempo, bpm))))

        return TempoInfo(
            bpm=bpm,
            onset_times=onsets,
            confidence=len(best) / iois.size,
        )

    def detect(self, audio: np.ndarray, sr: int) -> float:
        """Detect tempo in BPM."""
        return self.estimate(audio, sr).bpm
