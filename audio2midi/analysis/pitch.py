"""Pitch analysis - YIN fundamental frequency estimation per frame."""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
import librosa

from ..core import TranscriptionConfig
from .frames import Frame, FrameExtractor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


@dataclass
class PitchFrame:
    """Pitch and loudness estimate for one analysis frame."""

    time: float  # Frame start in seconds
    frequency: Optional[float]  # Hz, None when unpitched
    amplitude: float  # RMS of the tapered frame

    @property
    def voiced(self) -> bool:
        return self.frequency is not None


def rms(frame: np.ndarray) -> float:
    """Root mean square amplitude of a frame."""
    if len(frame) == 0:
        return 0.0
    x = np.asarray(frame, dtype=np.float64)
    return float(np.sqrt(np.mean(x * x)))


def difference_function(frame: np.ndarray, max_lag: int) -> np.ndarray:
    """
    Squared difference d(tau) = sum_i (x[i] - x[i + tau])^2 for tau in [0, max_lag].

    Uses d(tau) = E[0:n-tau] + E[tau:n] - 2 * r(tau), with r the linear
    autocorrelation, so the cost is one FFT instead of one pass per lag.
    """
    x = np.asarray(frame, dtype=np.float64)
    n = len(x)
    max_lag = min(max_lag, n - 1)

    energy = np.concatenate(([0.0], np.cumsum(x * x)))
    acf = librosa.autocorrelate(x, max_size=max_lag + 1)
    taus = np.arange(max_lag + 1)

    d = energy[n - taus] + (energy[n] - energy[taus]) - 2.0 * acf
    # FFT round-off can leave tiny negatives
    return np.maximum(d, 0.0)


def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """d'(0) = 1, d'(tau) = d(tau) * tau / sum_{k=1..tau} d(k)."""
    cmnd = np.ones_like(d, dtype=np.float64)
    if len(d) < 2:
        return cmnd

    running = np.cumsum(d[1:])
    taus = np.arange(1, len(d))
    valid = running > np.finfo(np.float64).tiny
    cmnd[1:][valid] = d[1:][valid] * taus[valid] / running[valid]
    return cmnd


def parabolic_interpolation(values: np.ndarray, tau: int) -> float:
    """Refine the position of a minimum at tau using its two neighbours."""
    if tau <= 0 or tau >= len(values) - 1:
        return float(tau)

    s0, s1, s2 = values[tau - 1], values[tau], values[tau + 1]
    denominator = 2.0 * (2.0 * s1 - s2 - s0)
    if abs(denominator) < 1e-12:
        return float(tau)

    shift = (s2 - s0) / denominator
    # A true local minimum never moves more than one sample
    if not np.isfinite(shift) or abs(shift) > 1.0:
        return float(tau)
    return tau + float(shift)


def estimate_pitch(
    frame: np.ndarray,
    sample_rate: int,
    min_freq: float = 80.0,
    max_freq: float = 2000.0,
    threshold: float = 0.1,
) -> Optional[float]:
    """
    Estimate the fundamental frequency of one frame with YIN.

    Args:
        frame: Tapered frame samples
        sample_rate: Sample rate in Hz
        min_freq: Lowest detectable frequency in Hz
        max_freq: Highest detectable frequency in Hz
        threshold: Absolute threshold on the normalized difference

    Returns:
        Frequency in Hz, or None when no lag dips below the threshold
    """
    min_lag = max(1, int(sample_rate // max_freq))
    # One extra lag is needed to the right for interpolation
    max_lag = min(int(sample_rate // min_freq), len(frame) - 2)
    if min_lag >= max_lag:
        return None

    d = difference_function(frame, max_lag + 1)
    cmnd = cumulative_mean_normalized_difference(d)

    below = np.flatnonzero(cmnd[min_lag:max_lag + 1] < threshold)
    if below.size == 0:
        return None

    tau = min_lag + int(below[0])
    while tau < max_lag and cmnd[tau + 1] < cmnd[tau]:
        tau += 1

    period = parabolic_interpolation(cmnd, tau)
    if not np.isfinite(period) or period <= 0:
        return None
    return sample_rate / period


class PitchAnalyzer:
    """Frame-by-frame YIN pitch tracking."""

    def __init__(self, config: Optional[TranscriptionConfig] = None):
        self.config = (config or TranscriptionConfig()).validate()
        self.extractor = FrameExtractor(
            window_size=self.config.window_size,
            hop_size=self.config.hop_size,
        )

    def analyze_frame(self, frame: Frame, sample_rate: int) -> PitchFrame:
        """
        Estimate pitch and amplitude for one frame.

        Frames under the amplitude floor are reported unpitched. A frame
        that breaks the estimator (e.g. non-finite samples) is also reported
        unpitched instead of failing the whole track.
        """
        with np.errstate(invalid="ignore", over="ignore"):
            amplitude = rms(frame.samples)
        if not np.isfinite(amplitude):
            logger.debug("Frame %d at %.3fs has non-finite samples", frame.index, frame.time)
            return PitchFrame(time=frame.time, frequency=None, amplitude=0.0)

        if amplitude < self.config.amplitude_floor:
            return PitchFrame(time=frame.time, frequency=None, amplitude=amplitude)

        try:
            with np.errstate(divide="raise", invalid="raise", over="raise"):
                frequency = estimate_pitch(
                    frame.samples,
                    sample_rate,
                    min_freq=self.config.min_freq,
                    max_freq=self.config.max_freq,
                    threshold=self.config.yin_threshold,
                )
        except (FloatingPointError, ValueError, ZeroDivisionError) as e:
            logger.debug("Pitch estimation failed at %.3fs: %s", frame.time, e)
            frequency = None

        return PitchFrame(time=frame.time, frequency=frequency, amplitude=amplitude)

    def track(
        self,
        audio: np.ndarray,
        sr: int,
        progress: Optional[ProgressCallback] = None,
    ) -> List[PitchFrame]:
        """
        Run pitch estimation over every frame of a buffer.

        Args:
            audio: Audio array (mono)
            sr: Sample rate
            progress: Optional callback receiving the fraction of frames done.
                Only called between whole frames.

        Returns:
            List of PitchFrame in time order
        """
        total = self.extractor.count(len(audio))
        interval = self.config.progress_interval
        results = []

        for frame in self.extractor.frames(audio, sr):
            results.append(self.analyze_frame(frame, sr))
            if progress is not None and (frame.index + 1) % interval == 0:
                progress((frame.index + 1) / total)

        if progress is not None:
            progress(1.0)

        voiced = sum(1 for r in results if r.voiced)
        logger.debug("Pitch track: %d frames, %d voiced", len(results), voiced)
        return results
