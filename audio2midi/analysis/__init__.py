"""Analysis layer - Low-level signal analysis.

This layer extracts features from raw audio:
- Tapered analysis frames
- Pitch detection (YIN)
- Onsets and tempo
"""

from .frames import Frame, FrameExtractor
from .pitch import PitchAnalyzer, PitchFrame, estimate_pitch
from .tempo import TempoAnalyzer, TempoInfo

__all__ = [
    "Frame",
    "FrameExtractor",
    "PitchAnalyzer",
    "PitchFrame",
    "estimate_pitch",
    "TempoAnalyzer",
    "TempoInfo",
]
