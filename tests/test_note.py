"""Tests for notes, frequency frames and peak confidence."""

import math

import numpy as np
import pytest

from voicescale.core import (
    FrequencyFrame,
    InvalidAudioData,
    Note,
    NoteFound,
    NoteNotFound,
    as_optional,
    note_from_frequency,
    note_from_midi,
    note_from_name,
    peak_confidence,
)


def make_frame(peak_index: int, n_bins: int = 512, sr: float = 44100.0, window: int = 1024):
    """Frame with a single non-zero bin."""
    frequencies = np.arange(n_bins) * sr / window
    magnitudes = np.zeros(n_bins)
    magnitudes[peak_index] = 1.0
    return FrequencyFrame(frequencies, magnitudes, sr, window)


class TestNoteMapping:
    """Test frequency / MIDI / name to note conversion."""

    def test_a4_is_440(self):
        note = as_optional(note_from_frequency(440.0))
        assert note is not None
        assert note.name == "A4"
        assert note.midi_number == 69
        assert note.pitch_class == 9
        assert note.octave == 4
        assert abs(note.deviation_cents) < 1e-9

    @pytest.mark.parametrize("midi", [0, 21, 48, 60, 69, 100, 127])
    def test_midi_round_trip(self, midi):
        """midi -> frequency -> midi recovers the pitch with negligible deviation."""
        note = as_optional(note_from_midi(midi))
        again = as_optional(note_from_frequency(note.frequency))
        assert again.midi_number == midi, f"Expected {midi}, got {again.midi_number}"
        assert abs(again.deviation_cents) < 1.0

    def test_deviation_in_cents(self):
        # A quarter of a semitone sharp of A4
        note = as_optional(note_from_frequency(440.0 * 2 ** (0.25 / 12)))
        assert note.name == "A4"
        assert note.deviation_cents == pytest.approx(25.0, abs=1e-6)

    @pytest.mark.parametrize("freq", [0.0, -10.0, float("nan"), float("inf")])
    def test_invalid_frequency_not_found(self, freq):
        result = note_from_frequency(freq)
        assert isinstance(result, NoteNotFound)
        assert not result.found
        assert result.reason

    def test_out_of_midi_range_not_found(self):
        assert isinstance(note_from_frequency(20000.0), NoteNotFound)
        assert isinstance(note_from_midi(128), NoteNotFound)

    def test_found_wraps_note(self):
        result = note_from_frequency(261.63)
        assert isinstance(result, NoteFound)
        assert result.found
        assert result.note.name == "C4"

    def test_names_with_flats_map_to_sharps(self):
        note = as_optional(note_from_name("Bb3"))
        assert note.name == "A#3"
        assert note.midi_number == 58

    def test_unparseable_name(self):
        assert isinstance(note_from_name("H4"), NoteNotFound)

    def test_amplitude_is_clamped(self):
        note = as_optional(note_from_frequency(440.0, amplitude=3.0))
        assert note.amplitude == 1.0

    def test_optional_constructors(self):
        assert Note.from_frequency(-1.0) is None
        assert Note.from_midi(60).name == "C4"
        assert Note.from_name("E4").pitch_class == 4

    def test_transposition(self):
        a4 = Note.from_midi(69)
        assert a4.sharpened.name == "A#4"
        assert a4.octave_down.name == "A3"
        assert Note.from_midi(127).sharpened is None


class TestFrequencyFrame:
    """Test spectral peak lookup on frames."""

    def test_peak_frequency_matches_dominant_bin(self):
        for index in (3, 10, 40, 200):
            frame = make_frame(index)
            assert frame.peak_index == index
            assert frame.peak_frequency == pytest.approx(frame.frequencies[index])

    def test_dc_bin_is_ignored(self):
        frame = make_frame(10)
        magnitudes = frame.magnitudes.copy()
        magnitudes[0] = 50.0
        frame = FrequencyFrame(frame.frequencies, magnitudes, 44100.0, 1024)
        assert frame.peak_index == 10

    def test_silent_frame_has_no_peak(self):
        frame = FrequencyFrame(np.arange(512) * 43.0, np.zeros(512), 44100.0, 1024)
        assert frame.peak_frequency is None
        assert frame.peak_magnitude is None
        assert not frame.is_valid_signal

    def test_length_mismatch_rejected(self):
        with pytest.raises(InvalidAudioData):
            FrequencyFrame(np.arange(10.0), np.zeros(9), 44100.0, 1024)

    def test_valid_signal_needs_voice_range(self):
        # Bin 10 is ~430 Hz (voiced), bin 100 is ~4.3 kHz (too high)
        assert make_frame(10).is_valid_signal
        assert not make_frame(100).is_valid_signal


class TestPeakConfidence:
    """Test confidence of a frame's spectral peak."""

    def test_isolated_peak_is_fully_confident(self):
        assert peak_confidence(make_frame(20)) == pytest.approx(1.0)

    def test_no_peak_means_zero(self):
        frame = FrequencyFrame(np.arange(512) * 43.0, np.zeros(512), 44100.0, 1024)
        assert peak_confidence(frame) == 0.0

    def test_flat_spectrum_is_not_confident(self):
        frequencies = np.arange(512) * 44100.0 / 1024
        frame = FrequencyFrame(frequencies, np.ones(512), 44100.0, 1024)
        confidence = peak_confidence(frame)
        assert confidence < 0.2, f"Flat spectrum confidence too high: {confidence}"
        assert not math.isnan(confidence)
