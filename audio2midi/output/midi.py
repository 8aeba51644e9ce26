"""MIDI export - Standard MIDI File Type 0 encoding."""

import heapq
import math
import struct
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..core import Note, InvalidInputError, EncodingOverflowError
from ..core.constants import (
    DEFAULT_RELEASE_VELOCITY,
    DEFAULT_TICKS_PER_QUARTER,
    MAX_VARIABLE_LENGTH,
    MIDI_MAX,
)

HEADER_MAGIC = b"MThd"
TRACK_MAGIC = b"MTrk"
END_OF_TRACK = b"\x00\xff\x2f\x00"

NOTE_ON = 0x90
NOTE_OFF = 0x80


def encode_variable_length(value: int) -> bytes:
    """
    Encode an integer as a MIDI variable-length quantity.

    Seven bits per byte, most significant group first, continuation bit set
    on every byte but the last.

    Raises:
        EncodingOverflowError: If value is negative or above 2**28 - 1
    """
    if value < 0 or value > MAX_VARIABLE_LENGTH:
        raise EncodingOverflowError(
            f"Value {value} does not fit a 4-byte variable-length quantity"
        )

    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def read_variable_length(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a variable-length quantity, returning (value, next offset)."""
    value = 0
    for i in range(4):
        if offset + i >= len(data):
            raise InvalidInputError("Truncated variable-length quantity")
        byte = data[offset + i]
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, offset + i + 1
    raise EncodingOverflowError("Variable-length quantity longer than 4 bytes")


class MIDIEncoder:
    """Serialize notes into a single-track Standard MIDI File."""

    def __init__(
        self,
        ticks_per_quarter: int = DEFAULT_TICKS_PER_QUARTER,
        release_velocity: int = DEFAULT_RELEASE_VELOCITY,
        channel: int = 0,
        tempo: Optional[float] = None,
    ):
        """
        Initialize MIDIEncoder.

        Args:
            ticks_per_quarter: Time resolution written to the header
            release_velocity: Velocity byte of note-off events
            channel: MIDI channel (0-15)
            tempo: If given, a Set Tempo event is written and seconds are
                converted to ticks at this BPM. Otherwise one second maps
                to one quarter note's worth of ticks.
        """
        if not 0 < ticks_per_quarter <= 0x7FFF:
            raise InvalidInputError(
                f"ticks_per_quarter must be in 1-32767, got {ticks_per_quarter}"
            )
        if not 0 <= release_velocity <= MIDI_MAX:
            raise InvalidInputError(f"Invalid release velocity: {release_velocity}")
        if not 0 <= channel <= 15:
            raise InvalidInputError(f"Invalid MIDI channel: {channel}")
        if tempo is not None and not (math.isfinite(tempo) and tempo > 0):
            raise InvalidInputError(f"Invalid tempo: {tempo}")

        self.ticks_per_quarter = ticks_per_quarter
        self.release_velocity = release_velocity
        self.channel = channel
        self.tempo = tempo

    @property
    def ticks_per_second(self) -> float:
        if self.tempo is None:
            return float(self.ticks_per_quarter)
        return self.ticks_per_quarter * self.tempo / 60.0

    def seconds_to_ticks(self, seconds: float) -> int:
        return int(round(seconds * self.ticks_per_second))

    def header(self) -> bytes:
        """14-byte MThd chunk: format 0, one track."""
        return struct.pack(">4sIHHH", HEADER_MAGIC, 6, 0, 1, self.ticks_per_quarter)

    def _tempo_event(self) -> bytes:
        microseconds = int(round(60_000_000 / self.tempo))
        microseconds = min(microseconds, 0xFFFFFF)
        return b"\x00\xff\x51\x03" + microseconds.to_bytes(3, "big")

    def encode_track(self, notes: Sequence[Note]) -> bytes:
        """
        Encode the MTrk payload: timed note events plus end of track.

        Pending note-offs sit in a min-heap and are flushed before any
        note-on at the same or a later tick, so delta times never go
        negative even when notes overlap.
        """
        for note in notes:
            note.validate()

        ordered = sorted(notes, key=lambda n: (n.onset, n.pitch))
        events = bytearray()
        if self.tempo is not None:
            events += self._tempo_event()

        pending: List[Tuple[int, int, int]] = []  # (tick, sequence, pitch)
        last_tick = 0

        def emit(tick: int, status: int, pitch: int, velocity: int) -> None:
            nonlocal last_tick
            events.extend(encode_variable_length(tick - last_tick))
            events.extend((status | self.channel, pitch, velocity))
            last_tick = tick

        for sequence, note in enumerate(ordered):
            on_tick = self.seconds_to_ticks(note.onset)
            while pending and pending[0][0] <= on_tick:
                off_tick, _, pitch = heapq.heappop(pending)
                emit(off_tick, NOTE_OFF, pitch, self.release_velocity)

            emit(on_tick, NOTE_ON, note.pitch, note.velocity)
            off_tick = max(self.seconds_to_ticks(note.offset), on_tick + 1)
            heapq.heappush(pending, (off_tick, sequence, note.pitch))

        while pending:
            off_tick, _, pitch = heapq.heappop(pending)
            emit(off_tick, NOTE_OFF, pitch, self.release_velocity)

        events += END_OF_TRACK
        return bytes(events)

    def encode(self, notes: Sequence[Note]) -> bytes:
        """
        Encode notes into a complete Type 0 MIDI file.

        Args:
            notes: Notes in any order

        Returns:
            File bytes (header chunk followed by one track chunk)

        Raises:
            InvalidInputError: If a note has out-of-range pitch, velocity or timing
            EncodingOverflowError: If a delta time needs more than 4 bytes
        """
        track = self.encode_track(notes)
        chunk = struct.pack(">4sI", TRACK_MAGIC, len(track)) + track
        return self.header() + chunk

    def export(self, notes: Sequence[Note], output_path: str) -> bytes:
        """
        Export notes to a MIDI file.

        Args:
            notes: List of Note objects
            output_path: Path to output MIDI file

        Returns:
            The bytes written
        """
        data = self.encode(notes)

        # Ensure output directory exists
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

        return data
