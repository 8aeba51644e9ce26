"""audio2midi - Monophonic audio to MIDI transcription.

Architecture Layers:
    1. core/          - Note type, configuration, errors
    2. input/         - Sample buffer validation and audio loading
    3. analysis/      - Frames, YIN pitch, onset-based tempo
    4. processing/    - Note building and consolidation
    5. transcription/ - Pitch + tempo orchestration
    6. output/        - Export (Standard MIDI File, JSON)
"""

__version__ = "0.3.0"

# Core types
from .core import (
    Note,
    TranscriptionConfig,
    Audio2MidiError,
    InvalidInputError,
    EncodingOverflowError,
)

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import FrameExtractor, PitchAnalyzer, TempoAnalyzer

# Processing layer
from .processing import NoteBuilder, NoteCleanup

# Transcription layer
from .transcription import MonophonicTranscriber

# Output layer
from .output import MIDIEncoder, NotesJSONExporter

# Pipeline
from .pipeline import (
    AudioToMidiConverter,
    ConversionResult,
    WorkerResult,
    convert,
    submit,
)

__all__ = [
    # Core
    "Note",
    "TranscriptionConfig",
    "Audio2MidiError",
    "InvalidInputError",
    "EncodingOverflowError",
    # Input
    "AudioLoader",
    # Analysis
    "FrameExtractor",
    "PitchAnalyzer",
    "TempoAnalyzer",
    # Processing
    "NoteBuilder",
    "NoteCleanup",
    # Transcription
    "MonophonicTranscriber",
    # Output
    "MIDIEncoder",
    "NotesJSONExporter",
    # Pipeline
    "AudioToMidiConverter",
    "ConversionResult",
    "WorkerResult",
    "convert",
    "submit",
]
