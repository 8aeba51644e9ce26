"""Transcription modules."""

from .base import Transcriber, Transcription
from .monophonic import MonophonicTranscriber

__all__ = ["Transcriber", "MonophonicTranscriber", "Transcription"]
