"""Tests for Standard MIDI File encoding and JSON export."""

import io
import json

import pretty_midi
import pytest

from audio2midi.core import EncodingOverflowError, InvalidInputError, Note
from audio2midi.output import (
    MIDIEncoder,
    NotesJSONExporter,
    encode_variable_length,
    read_variable_length,
)


EMPTY_FILE = (
    b"MThd\x00\x00\x00\x06\x00\x00\x00\x01\x01\xe0"
    b"MTrk\x00\x00\x00\x04\x00\xff\x2f\x00"
)


def decode(data: bytes) -> pretty_midi.PrettyMIDI:
    return pretty_midi.PrettyMIDI(io.BytesIO(data))


class TestVariableLength:
    """Variable-length quantity encoding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, b"\x00"),
            (0x40, b"\x40"),
            (0x7F, b"\x7f"),
            (0x80, b"\x81\x00"),
            (0x3FFF, b"\xff\x7f"),
            (0x4000, b"\x81\x80\x00"),
            (0x0FFFFFFF, b"\xff\xff\xff\x7f"),
        ],
    )
    def test_known_encodings(self, value, expected):
        assert encode_variable_length(value) == expected

    def test_read_back(self):
        data = b"\x90" + encode_variable_length(0x4000) + b"\x00"
        assert read_variable_length(data, 1) == (0x4000, 4)

    def test_overflow(self):
        with pytest.raises(EncodingOverflowError):
            encode_variable_length(0x10000000)
        with pytest.raises(OverflowError):
            encode_variable_length(-1)

    def test_truncated_read(self):
        with pytest.raises(InvalidInputError):
            read_variable_length(b"\x81")

    def test_over_long_read(self):
        with pytest.raises(EncodingOverflowError):
            read_variable_length(b"\xff\xff\xff\xff\x7f")


class TestMIDIEncoder:
    """Type 0 file layout."""

    def test_empty_file(self):
        data = MIDIEncoder().encode([])

        assert data == EMPTY_FILE
        assert len(data) == 26

    def test_header(self):
        assert MIDIEncoder(ticks_per_quarter=96).header() == (
            b"MThd\x00\x00\x00\x06\x00\x00\x00\x01\x00\x60"
        )

    def test_single_note_bytes(self):
        data = MIDIEncoder().encode([Note(pitch=60, onset=0.0, duration=1.0, velocity=100)])

        track = (
            b"\x00\x90\x3c\x64"
            b"\x83\x60\x80\x3c\x40"
            b"\x00\xff\x2f\x00"
        )
        assert data[14:22] == b"MTrk" + len(track).to_bytes(4, "big")
        assert data[22:] == track

    def test_overlapping_notes_keep_deltas_non_negative(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=1.0),
            Note(pitch=64, onset=0.5, duration=1.0),
        ]

        track = MIDIEncoder().encode_track(notes)

        assert track == (
            b"\x00\x90\x3c\x40"
            b"\x81\x70\x90\x40\x40"
            b"\x81\x70\x80\x3c\x40"
            b"\x81\x70\x80\x40\x40"
            b"\x00\xff\x2f\x00"
        )

    def test_note_off_precedes_note_on_at_same_tick(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=0.5),
            Note(pitch=60, onset=0.5, duration=0.5),
        ]

        track = MIDIEncoder().encode_track(notes)

        assert track[4:8] == b"\x81\x70\x80\x3c"
        assert track[9:13] == b"\x00\x90\x3c\x40"

    def test_zero_duration_note_lasts_one_tick(self):
        track = MIDIEncoder().encode_track([Note(pitch=60, onset=0.0, duration=0.0)])
        assert track[4:8] == b"\x01\x80\x3c\x40"

    def test_input_order_does_not_matter(self):
        notes = [
            Note(pitch=67, onset=1.0, duration=0.5),
            Note(pitch=60, onset=0.0, duration=0.5),
            Note(pitch=64, onset=0.5, duration=0.5),
        ]
        encoder = MIDIEncoder()

        assert encoder.encode(notes) == encoder.encode(sorted(notes, key=lambda n: n.onset))

    def test_encoding_is_deterministic(self):
        notes = [Note(pitch=60 + i, onset=i * 0.25, duration=0.3) for i in range(8)]
        encoder = MIDIEncoder()
        assert encoder.encode(notes) == encoder.encode(notes)

    def test_tempo_event(self):
        data = MIDIEncoder(tempo=120.0).encode([])
        assert data[22:] == b"\x00\xff\x51\x03\x07\xa1\x20\x00\xff\x2f\x00"

    def test_release_velocity(self):
        track = MIDIEncoder(release_velocity=0).encode_track(
            [Note(pitch=60, onset=0.0, duration=1.0)]
        )
        assert track[4:9] == b"\x83\x60\x80\x3c\x00"

    @pytest.mark.parametrize(
        "note",
        [
            Note(pitch=128, onset=0.0, duration=1.0),
            Note(pitch=60, onset=0.0, duration=1.0, velocity=-1),
            Note(pitch=60, onset=float("nan"), duration=1.0),
            Note(pitch=60, onset=-0.5, duration=1.0),
        ],
    )
    def test_invalid_notes(self, note):
        with pytest.raises(InvalidInputError):
            MIDIEncoder().encode([note])

    def test_delta_overflow(self):
        with pytest.raises(EncodingOverflowError):
            MIDIEncoder().encode([Note(pitch=60, onset=1e6, duration=1.0)])

    @pytest.mark.parametrize("kwargs", [
        {"ticks_per_quarter": 0},
        {"ticks_per_quarter": 0x8000},
        {"release_velocity": 128},
        {"channel": 16},
        {"tempo": 0.0},
    ])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(InvalidInputError):
            MIDIEncoder(**kwargs)

    def test_decodes_with_pretty_midi(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=0.5, velocity=80),
            Note(pitch=64, onset=0.5, duration=0.5, velocity=90),
            Note(pitch=67, onset=1.0, duration=1.0, velocity=100),
        ]

        midi = decode(MIDIEncoder(tempo=120.0).encode(notes))

        decoded = midi.instruments[0].notes
        assert [n.pitch for n in decoded] == [60, 64, 67]
        assert [n.velocity for n in decoded] == [80, 90, 100]
        for original, note in zip(notes, decoded):
            assert note.start == pytest.approx(original.onset, abs=1e-3)
            assert note.end == pytest.approx(original.offset, abs=1e-3)

    def test_without_tempo_one_second_is_one_quarter(self):
        # Readers assume 120 BPM, so one quarter reads back as half a second
        midi = decode(MIDIEncoder().encode([Note(pitch=69, onset=1.0, duration=2.0)]))

        note = midi.instruments[0].notes[0]
        assert note.start == pytest.approx(0.5, abs=1e-3)
        assert note.end == pytest.approx(1.5, abs=1e-3)

    def test_export_writes_file(self, tmp_path):
        path = tmp_path / "out" / "melody.mid"
        notes = [Note(pitch=60, onset=0.0, duration=1.0)]

        data = MIDIEncoder().export(notes, str(path))

        assert path.read_bytes() == data
        assert data.startswith(b"MThd")


class TestNotesJSONExporter:
    """Note list as JSON."""

    def test_to_dict(self):
        notes = [Note(pitch=69, onset=0.5, duration=1.0, velocity=90)]

        payload = NotesJSONExporter(tempo=100.0).to_dict(notes, {"source": "a.wav"})

        assert payload["tempo"] == 100.0
        assert payload["meta"] == {"source": "a.wav"}
        assert payload["notes"] == [{
            "pitch": 69,
            "name": "A4",
            "onset": 0.5,
            "duration": 1.0,
            "offset": 1.5,
            "velocity": 90,
        }]

    def test_export(self, tmp_path):
        path = tmp_path / "notes.json"

        NotesJSONExporter().export([Note(pitch=60, onset=0.0, duration=0.25)], str(path))

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["tempo"] == 120.0
        assert data["notes"][0]["name"] == "C4"
