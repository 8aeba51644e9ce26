"""JSON export of transcribed notes for piano-roll style consumers."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pretty_midi

from ..core import Note


class NotesJSONExporter:
    """Export notes and tempo as a JSON document."""

    def __init__(self, tempo: float = 120.0, indent: int = 2):
        """
        Initialize NotesJSONExporter.

        Args:
            tempo: Tempo in BPM
            indent: JSON indentation
        """
        self.tempo = tempo
        self.indent = indent

    def to_dict(
        self, notes: List[Note], meta: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        return {
            "meta": dict(meta or {}),
            "tempo": self.tempo,
            "notes": [
                {
                    "pitch": n.pitch,
                    "name": pretty_midi.note_number_to_name(n.pitch),
                    "onset": n.onset,
                    "duration": n.duration,
                    "offset": n.offset,
                    "velocity": n.velocity,
                }
                for n in notes
            ],
        }

    def export(
        self,
        notes: List[Note],
        output_path: str,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Export notes to a JSON file.

        Args:
            notes: List of Note objects
            output_path: Path to output JSON file
            meta: Extra metadata stored under "meta"
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = self.to_dict(notes, meta)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=self.indent), encoding="utf-8")
