"""Tests for note building and consolidation."""

import pytest

from audio2midi.analysis import PitchFrame
from audio2midi.core import InvalidInputError, Note, TranscriptionConfig
from audio2midi.processing import NoteBuilder, NoteCleanup, velocity_from_amplitude


HOP = 0.01  # Frame duration used throughout
A4 = 440.0
C4 = Note.midi_to_freq(60)


def frames(freq, start, count, amplitude=0.2, hop=HOP):
    return [PitchFrame(time=start + i * hop, frequency=freq, amplitude=amplitude) for i in range(count)]


def builder(**overrides) -> NoteBuilder:
    return NoteBuilder(frame_duration=HOP, config=TranscriptionConfig().replace(**overrides))


class TestVelocityMapping:
    """Amplitude to velocity."""

    def test_monotonic(self):
        amplitudes = [0.0, 0.05, 0.1, 0.2, 0.3, 0.4, 0.5, 1.0]
        velocities = [velocity_from_amplitude(a) for a in amplitudes]
        assert velocities == sorted(velocities)

    def test_saturates_at_both_ends(self):
        assert velocity_from_amplitude(0.0) == 20
        assert velocity_from_amplitude(0.001) == 20
        assert velocity_from_amplitude(1.0) == 127
        assert velocity_from_amplitude(50.0) == 127

    def test_affine_in_the_middle(self):
        assert velocity_from_amplitude(0.2, scale=300, offset=0) == 60
        assert velocity_from_amplitude(0.2, scale=100, offset=10) == 30


class TestNoteBuilder:
    """Frame-by-frame consolidation."""

    def test_continuous_frames_make_one_note(self):
        notes = builder().build(frames(A4, 0.5, 20))

        assert len(notes) == 1
        note = notes[0]
        assert note.pitch == 69
        assert note.onset == pytest.approx(0.5)
        assert note.duration == pytest.approx(20 * HOP)
        assert note.velocity == 60

    def test_velocity_is_maximum_over_frames(self):
        track = frames(A4, 0.0, 10, amplitude=0.1) + frames(A4, 0.1, 10, amplitude=0.25)
        notes = builder().build(track)

        assert len(notes) == 1
        assert notes[0].velocity == 75

    def test_pitch_change_starts_new_note(self):
        track = frames(A4, 0.0, 10) + frames(C4, 0.1, 10)
        notes = builder().build(track)

        assert [n.pitch for n in notes] == [69, 60]
        assert notes[1].onset == pytest.approx(0.1)

    def test_adjacent_semitone_continues(self):
        track = frames(A4, 0.0, 10) + frames(Note.midi_to_freq(70), 0.1, 5)
        notes = builder().build(track)

        assert len(notes) == 1
        assert notes[0].pitch == 69

    def test_small_gap_is_bridged(self):
        track = frames(A4, 0.0, 10) + frames(A4, 0.15, 10)
        notes = builder(gap_tolerance=0.1).build(track)

        assert len(notes) == 1
        assert notes[0].duration == pytest.approx(0.15 + 10 * HOP)

    def test_large_gap_splits(self):
        track = frames(A4, 0.0, 10) + frames(A4, 0.5, 10)
        notes = builder(gap_tolerance=0.1).build(track)

        assert len(notes) == 2

    def test_short_notes_are_dropped(self):
        track = frames(A4, 0.0, 3) + frames(C4, 0.5, 10)
        notes = builder(min_duration=0.05).build(track)

        assert [n.pitch for n in notes] == [60]

    def test_out_of_band_pitches_are_dropped_not_clamped(self):
        low = Note.midi_to_freq(30)
        high = Note.midi_to_freq(100)
        track = frames(low, 0.0, 10) + frames(high, 0.2, 10) + frames(A4, 0.4, 10)

        notes = builder().build(track)

        assert [n.pitch for n in notes] == [69]

    def test_unpitched_and_quiet_frames_are_skipped(self):
        track = (
            frames(None, 0.0, 10)
            + frames(A4, 0.1, 10, amplitude=0.001)
            + frames(A4, 0.5, 10)
        )
        notes = builder().build(track)

        assert len(notes) == 1
        assert notes[0].onset == pytest.approx(0.5)

    def test_majority_pitch_wins(self):
        # One stray 70 at the attack, then a steady 69
        track = frames(Note.midi_to_freq(70), 0.0, 1) + frames(A4, HOP, 15)
        notes = builder().build(track)

        assert len(notes) == 1
        assert notes[0].pitch == 69
        assert notes[0].onset == pytest.approx(0.0)

    def test_empty_track(self):
        assert builder().build([]) == []

    def test_output_sorted_by_onset(self):
        track = frames(A4, 0.0, 10) + frames(C4, 0.2, 10) + frames(A4, 0.5, 10)
        notes = builder().build(track)

        onsets = [n.onset for n in notes]
        assert onsets == sorted(onsets)

    def test_incremental_add_and_finish(self):
        b = builder()
        for f in frames(A4, 0.0, 10):
            b.add(f.time, f.frequency, f.amplitude)

        assert len(b.finish()) == 1
        assert b.finish() == []

    def test_for_sample_rate_uses_hop(self):
        config = TranscriptionConfig(hop_size=441)
        b = NoteBuilder.for_sample_rate(44100, config)
        assert b.frame_duration == pytest.approx(0.01)

    @pytest.mark.parametrize("frame_duration", [0.0, -0.01, float("nan")])
    def test_frame_duration_must_be_positive(self, frame_duration):
        with pytest.raises(InvalidInputError):
            NoteBuilder(frame_duration=frame_duration)

    def test_frame_duration_is_required(self):
        with pytest.raises(TypeError):
            NoteBuilder()


class TestNoteCleanup:
    """Second consolidation pass."""

    def test_merges_same_pitch_across_short_gap(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=0.5, velocity=70),
            Note(pitch=60, onset=0.55, duration=0.5, velocity=90),
        ]

        merged, count = NoteCleanup().merge_adjacent(notes)

        assert count == 1
        assert len(merged) == 1
        assert merged[0].onset == 0.0
        assert merged[0].duration == pytest.approx(1.05)
        assert merged[0].velocity == 90

    def test_keeps_distinct_pitches(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=0.5),
            Note(pitch=64, onset=0.55, duration=0.5),
        ]

        merged, count = NoteCleanup().merge_adjacent(notes)

        assert count == 0
        assert len(merged) == 2

    def test_keeps_distant_notes(self):
        notes = [
            Note(pitch=60, onset=0.0, duration=0.5),
            Note(pitch=60, onset=1.0, duration=0.5),
        ]
        merged, _ = NoteCleanup().merge_adjacent(notes)
        assert len(merged) == 2

    def test_chain_merges_in_one_call(self):
        notes = [Note(pitch=60, onset=i * 0.3, duration=0.25) for i in range(5)]

        merged, stats = NoteCleanup().cleanup(notes, return_stats=True)

        assert len(merged) == 1
        assert merged[0].offset == pytest.approx(1.45)
        assert stats.merged_notes == 4
        assert stats.original_count == 5
        assert stats.final_count == 1

    def test_sorts_unordered_input(self):
        notes = [
            Note(pitch=72, onset=2.0, duration=0.5),
            Note(pitch=60, onset=0.0, duration=0.5),
        ]
        merged = NoteCleanup().cleanup(notes)
        assert [n.onset for n in merged] == [0.0, 2.0]
