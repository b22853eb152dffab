"""Tests for syllable segmentation inside speech segments."""

import numpy as np
import pytest

from voicescale.analysis import (
    SegmentationConfig,
    SegmentationMethod,
    SpectralAnalyzer,
    SyllableSegmenter,
    VADSegment,
)
from voicescale.core import peak_confidence

from generate_test_audio import generate_silence, generate_sine_wave


def speech(start: float, end: float) -> VADSegment:
    return VADSegment(start, end, True, 0.9, 0.5)


class TestSegmentationConfig:
    """Test configuration presets."""

    def test_default_values(self):
        config = SegmentationConfig.default()
        assert config.energy_change_threshold == 0.3
        assert config.centroid_change_threshold == 150.0
        assert config.min_syllable_duration == 0.08
        assert config.max_syllable_duration == 0.6
        assert config.smoothing_window == 3
        assert config.adaptive_thresholds

    def test_significant_change_only(self):
        config = SegmentationConfig.significant_change_only()
        assert config.min_syllable_duration == 0.2
        assert config.min_inter_syllable_gap == 0.1
        assert config.smoothing_window == 7


class TestSyllableSegmenter:
    """Test boundary detection and refinement."""

    @pytest.fixture
    def sample_rate(self):
        return 44100

    def test_short_segment_has_no_syllables(self, sample_rate):
        segmenter = SyllableSegmenter(SegmentationConfig.default(), sample_rate)
        audio = generate_sine_wave(440.0, 0.05, sample_rate)

        result = segmenter.segment_into_syllables(speech(0.0, 0.05), audio)

        assert result.boundaries == []
        assert result.syllable_count == 0
        assert result.windows == []
        assert result.confidence == 0.0

    def test_boundaries_bracket_segment(self, sample_rate):
        segmenter = SyllableSegmenter(SegmentationConfig.default(), sample_rate)
        audio = generate_sine_wave(440.0, 1.0, sample_rate)

        result = segmenter.segment_into_syllables(speech(2.0, 3.0), audio)

        assert result.boundaries[0] == 2.0
        assert result.boundaries[-1] == 3.0
        assert result.boundaries == sorted(result.boundaries)
        assert result.method == SegmentationMethod.HYBRID

    def test_windows_respect_minimum_duration(self, sample_rate):
        config = SegmentationConfig.fine()
        segmenter = SyllableSegmenter(config, sample_rate)
        audio = np.concatenate([
            generate_sine_wave(300.0, 0.15, sample_rate),
            generate_sine_wave(600.0, 0.05, sample_rate, amplitude=0.1),
            generate_sine_wave(900.0, 0.3, sample_rate),
            generate_sine_wave(300.0, 0.5, sample_rate, amplitude=0.2),
        ])
        duration = len(audio) / sample_rate

        result = segmenter.segment_into_syllables(speech(0.0, duration), audio)

        for start, end in result.windows:
            assert end - start >= config.min_syllable_duration - 1e-9, (
                f"Window {start:.3f}-{end:.3f} shorter than minimum"
            )

    def test_long_segment_is_split(self, sample_rate):
        config = SegmentationConfig.default()
        segmenter = SyllableSegmenter(config, sample_rate)
        audio = generate_sine_wave(440.0, 2.0, sample_rate)

        result = segmenter.segment_into_syllables(speech(0.0, 2.0), audio)

        # A steady two-second tone has no natural boundaries, only even splits
        assert result.syllable_count >= 4
        assert 0.0 < result.confidence <= 1.0

    def test_invalid_ranges_are_skipped(self, sample_rate):
        segmenter = SyllableSegmenter(sample_rate=sample_rate)
        audio = generate_sine_wave(440.0, 1.0, sample_rate)

        results = segmenter.segment_speech_segments(
            [speech(0.2, 0.8), speech(0.5, 2.0)], audio
        )

        assert len(results) == 1
        assert results[0].segment.start_time == 0.2

    def test_energy_profile_is_exposed(self, sample_rate):
        segmenter = SyllableSegmenter(sample_rate=sample_rate)
        result = segmenter.segment_into_syllables(
            speech(0.0, 0.5), generate_sine_wave(440.0, 0.5, sample_rate)
        )
        assert len(result.energy_profile) > 0
        assert len(result.centroid_profile) == len(result.energy_profile)
        assert result.mean_energy == pytest.approx(0.5 / np.sqrt(2), abs=0.05)


class TestBuildSyllables:
    """Test conversion of segmentation windows into syllables."""

    @pytest.fixture
    def sample_rate(self):
        return 44100

    def test_tone_windows_map_to_its_note(self, sample_rate):
        segmenter = SyllableSegmenter(SegmentationConfig.default(), sample_rate)
        audio = generate_sine_wave(440.0, 1.5, sample_rate)
        result = segmenter.segment_into_syllables(speech(0.0, 1.5), audio)

        syllables = segmenter.build_syllables(result, audio, SpectralAnalyzer(), start_index=5)

        assert len(syllables) == result.syllable_count
        assert [s.index for s in syllables] == list(range(5, 5 + len(syllables)))
        assert all(s.note_name == "A4" for s in syllables), [s.note_name for s in syllables]
        for s in syllables:
            assert s.confidence == pytest.approx(peak_confidence(s.frame))
            # A clean tone clears the default quality threshold of 0.6
            assert s.confidence > 0.6, f"Low confidence {s.confidence:.2f} for a clean tone"

    def test_silent_windows_are_skipped(self, sample_rate):
        segmenter = SyllableSegmenter(SegmentationConfig.default(), sample_rate)
        audio = generate_silence(1.0, sample_rate)
        result = segmenter.segment_into_syllables(speech(0.0, 1.0), audio)

        assert segmenter.build_syllables(result, audio, SpectralAnalyzer()) == []

    def test_syllable_times_follow_boundaries(self, sample_rate):
        segmenter = SyllableSegmenter(SegmentationConfig.default(), sample_rate)
        audio = np.concatenate([
            generate_silence(0.5, sample_rate),
            generate_sine_wave(330.0, 1.0, sample_rate),
        ])
        segment = speech(0.5, 1.5)
        result = segmenter.segment_speech_segments([segment], audio)[0]

        syllables = segmenter.build_syllables(result, audio, SpectralAnalyzer())

        assert syllables
        assert syllables[0].start_time == pytest.approx(0.5)
        assert syllables[-1].end_time == pytest.approx(1.5)
        for syllable in syllables:
            assert syllable.frame.timestamp >= syllable.start_time
