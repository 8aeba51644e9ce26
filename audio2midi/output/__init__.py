"""Output layer - Export to various formats.

This layer handles exporting transcribed notes to:
- Standard MIDI Files (Type 0)
- JSON note lists
"""

from .midi import MIDIEncoder, encode_variable_length, read_variable_length
from .notes_json import NotesJSONExporter

__all__ = [
    "MIDIEncoder",
    "encode_variable_length",
    "read_variable_length",
    "NotesJSONExporter",
]
