"""Tests for windowed FFT analysis and frame helpers."""

import numpy as np
import pytest

from voicescale.analysis import (
    SpectralAnalyzer,
    average_peak_frequency,
    filter_noise,
    restrict_range,
)
from voicescale.core import InvalidAudioData

from generate_test_audio import generate_sine_wave, generate_silence


class TestSpectralAnalyzer:
    """Test single-window analysis."""

    @pytest.fixture
    def sample_rate(self):
        # 8 Hz bins with a 1024-point FFT
        return 8192

    def test_fft_size_must_be_power_of_two(self):
        with pytest.raises(ValueError):
            SpectralAnalyzer(fft_size=1000)

    def test_overlap_is_clamped(self):
        analyzer = SpectralAnalyzer(fft_size=1024, overlap=0.99)
        assert analyzer.overlap == pytest.approx(0.9)
        assert analyzer.hop_size == 102

        analyzer = SpectralAnalyzer(fft_size=1024, overlap=-1.0)
        assert analyzer.hop_size == 1024

    def test_peak_of_bin_centred_tone(self, sample_rate):
        analyzer = SpectralAnalyzer(fft_size=1024)
        frame = analyzer.analyze(generate_sine_wave(440.0, 0.125, sample_rate), sample_rate)

        assert frame.peak_frequency == pytest.approx(440.0)
        assert len(frame.magnitudes) == 512
        assert frame.is_valid_signal

    def test_magnitude_is_normalized_by_window_length(self, sample_rate):
        analyzer = SpectralAnalyzer(fft_size=1024)
        frame = analyzer.analyze(generate_sine_wave(440.0, 0.125, sample_rate, amplitude=1.0), sample_rate)

        # Hamming window mean is ~0.54, a unit sine puts half of it in one bin
        assert frame.peak_magnitude == pytest.approx(0.27, abs=0.01)

    def test_short_input_is_zero_padded(self, sample_rate):
        analyzer = SpectralAnalyzer(fft_size=1024)
        frame = analyzer.analyze(np.ones(100), sample_rate, timestamp=1.5)
        assert len(frame.frequencies) == 512
        assert frame.timestamp == 1.5

    def test_empty_input_rejected(self, sample_rate):
        with pytest.raises(InvalidAudioData):
            SpectralAnalyzer().analyze(np.array([]), sample_rate)

    def test_non_positive_sample_rate_rejected(self):
        with pytest.raises(InvalidAudioData):
            SpectralAnalyzer().analyze(np.ones(1024), 0)

    def test_nan_input_gives_finite_magnitudes(self, sample_rate):
        samples = generate_sine_wave(440.0, 0.125, sample_rate)
        samples[100] = np.nan
        frame = SpectralAnalyzer().analyze(samples, sample_rate)
        assert np.all(np.isfinite(frame.magnitudes))

    def test_frequency_bins(self, sample_rate):
        bins = SpectralAnalyzer(fft_size=1024).frequency_bins(sample_rate)
        assert bins[0] == 0.0
        assert bins[1] == pytest.approx(8.0)
        assert len(bins) == 512


class TestAnalyzeSegments:
    """Test lazy multi-window analysis."""

    @pytest.fixture
    def sample_rate(self):
        return 44100

    def test_frame_count_and_timestamps(self, sample_rate):
        analyzer = SpectralAnalyzer(fft_size=1024, overlap=0.5)
        frames = list(analyzer.analyze_segments(np.ones(4096), sample_rate))

        assert len(frames) == 7
        for i, frame in enumerate(frames):
            assert frame.timestamp == pytest.approx(i * 512 / sample_rate)

    def test_start_time_offsets_timestamps(self, sample_rate):
        analyzer = SpectralAnalyzer(fft_size=1024, overlap=0.5)
        frames = list(analyzer.analyze_segments(np.ones(2048), sample_rate, start_time=2.0))
        assert frames[0].timestamp == pytest.approx(2.0)

    def test_validation_is_eager(self, sample_rate):
        """Invalid input raises before any frame is requested."""
        with pytest.raises(InvalidAudioData):
            SpectralAnalyzer().analyze_segments(np.array([]), sample_rate)

    def test_is_restartable(self, sample_rate):
        analyzer = SpectralAnalyzer()
        samples = generate_sine_wave(440.0, 0.2, sample_rate)

        first = [f.peak_frequency for f in analyzer.analyze_segments(samples, sample_rate)]
        second = [f.peak_frequency for f in analyzer.analyze_segments(samples, sample_rate)]
        assert first == second
        assert len(first) > 0

    def test_valid_only_skips_silence(self, sample_rate):
        analyzer = SpectralAnalyzer()
        samples = np.concatenate([
            generate_silence(0.2, sample_rate),
            generate_sine_wave(440.0, 0.2, sample_rate),
        ])
        all_frames = list(analyzer.analyze_segments(samples, sample_rate))
        valid = list(analyzer.analyze_segments(samples, sample_rate, valid_only=True))

        assert 0 < len(valid) < len(all_frames)
        assert all(f.is_valid_signal for f in valid)

    def test_shorter_than_window_yields_nothing(self, sample_rate):
        assert list(SpectralAnalyzer(fft_size=1024).analyze_segments(np.ones(500), sample_rate)) == []


class TestFrameHelpers:
    """Test frame list helpers."""

    @pytest.fixture
    def frames(self):
        analyzer = SpectralAnalyzer()
        sr = 44100
        return [
            analyzer.analyze(generate_sine_wave(440.0, 0.05, sr), sr),
            analyzer.analyze(generate_silence(0.05, sr), sr),
            analyzer.analyze(generate_sine_wave(220.0, 0.05, sr), sr),
        ]

    def test_filter_noise_drops_silent_frames(self, frames):
        kept = filter_noise(frames)
        assert len(kept) == 2

    def test_restrict_range(self, frames):
        restricted = restrict_range(frames, 100.0, 1000.0)
        for frame in restricted:
            assert frame.frequencies.min() >= 100.0
            assert frame.frequencies.max() <= 1000.0

    def test_average_peak_frequency(self, frames):
        average = average_peak_frequency(frames)
        expected = np.mean([frames[0].peak_frequency, frames[2].peak_frequency])
        assert average == pytest.approx(expected)
        assert average_peak_frequency([frames[1]]) is None
