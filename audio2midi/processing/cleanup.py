"""Note cleanup - merge fragments split by short amplitude dips."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..core import Note, TranscriptionConfig


@dataclass
class CleanupStats:
    """Statistics from cleanup operations."""

    original_count: int = 0
    final_count: int = 0
    merged_notes: int = 0
    passes: int = 0


class NoteCleanup:
    """Second consolidation pass over built notes.

    Applies the frame-level continuation rule to whole notes: two
    neighbouring notes within pitch_tolerance whose gap is at most
    gap_tolerance become one note. Passes repeat until nothing merges.
    """

    def __init__(self, config: Optional[TranscriptionConfig] = None):
        self.config = (config or TranscriptionConfig()).validate()

    def _mergeable(self, first: Note, second: Note) -> bool:
        return (
            abs(first.pitch - second.pitch) <= self.config.pitch_tolerance
            and second.onset - first.offset <= self.config.gap_tolerance
        )

    def _merge_once(self, notes: List[Note]) -> Tuple[List[Note], int]:
        merged: List[Note] = []
        count = 0

        for note in notes:
            if merged and self._mergeable(merged[-1], note):
                previous = merged[-1]
                end = max(previous.offset, note.offset)
                merged[-1] = Note(
                    pitch=previous.pitch,
                    onset=previous.onset,
                    duration=end - previous.onset,
                    velocity=max(previous.velocity, note.velocity),
                )
                count += 1
            else:
                merged.append(note)

        return merged, count

    def merge_adjacent(self, notes: List[Note]) -> Tuple[List[Note], int]:
        """
        Merge neighbouring notes of equal or adjacent pitch.

        Args:
            notes: Notes in any order

        Returns:
            Tuple of (merged notes sorted by onset, number of merges)
        """
        result, stats = self.cleanup(notes, return_stats=True)
        return result, stats.merged_notes

    def cleanup(self, notes: List[Note], return_stats: bool = False):
        """
        Run merge passes until stable.

        Args:
            notes: Notes to clean
            return_stats: Also return CleanupStats

        Returns:
            Cleaned notes, or (notes, stats) if return_stats is True
        """
        stats = CleanupStats(original_count=len(notes))
        result = sorted(notes, key=lambda n: (n.onset, n.pitch))

        while True:
            result, count = self._merge_once(result)
            stats.passes += 1
            stats.merged_notes += count
            if count == 0:
                break

        stats.final_count = len(result)
        if return_stats:
            return result, stats
        return result
