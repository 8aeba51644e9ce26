"""Processing layer - Note-level consolidation.

This layer turns frame estimates into notes:
- Frame-by-frame note building
- Velocity mapping
- Merging fragments split by amplitude dips
"""

from .builder import NoteBuilder, velocity_from_amplitude
from .cleanup import NoteCleanup, CleanupStats

__all__ = [
    "NoteBuilder",
    "velocity_from_amplitude",
    "NoteCleanup",
    "CleanupStats",
]
