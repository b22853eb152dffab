"""Tests for voice activity detection."""

import numpy as np
import pytest

from voicescale.analysis import (
    VADConfig,
    VADSegment,
    VADState,
    VoiceActivityDetector,
    speech_ratio,
    vad_step,
)
from voicescale.analysis.features import (
    frame_energy,
    smooth,
    spectral_flux,
    zero_crossing_rate,
)

from generate_test_audio import generate_noise, generate_silence, generate_sine_wave


class TestFrameFeatures:
    """Test per-frame features."""

    def test_energy_of_silence_is_zero(self):
        assert frame_energy(np.zeros(1024)) == 0.0

    def test_energy_of_full_scale_square_is_one(self):
        assert frame_energy(np.ones(1024)) == pytest.approx(1.0)

    def test_zero_crossing_rate_of_sine(self):
        sr = 44100
        zcr = zero_crossing_rate(generate_sine_wave(441.0, 0.1, sr), sr)
        assert zcr == pytest.approx(441.0, rel=0.02)

    def test_spectral_flux_without_history(self):
        assert spectral_flux(np.ones(10), None) == 0.0
        assert spectral_flux(np.ones(10), np.ones(5)) == 0.0

    def test_spectral_flux_counts_increases_only(self):
        previous = np.array([1.0, 2.0, 3.0, 4.0])
        current = np.array([2.0, 2.0, 1.0, 4.0])
        assert spectral_flux(current, previous) == pytest.approx(0.25)

    def test_smooth_keeps_edges(self):
        values = np.array([0.0, 3.0, 0.0, 3.0, 0.0])
        smoothed = smooth(values, 3)
        assert smoothed[0] == 0.0
        assert smoothed[-1] == 0.0
        assert smoothed[2] == pytest.approx(2.0)

    @pytest.mark.parametrize("window", [3, 4, 5, 6])
    def test_smooth_preserves_constant_signal(self, window):
        smoothed = smooth(np.ones(10), window)
        assert np.allclose(smoothed, 1.0), f"window {window} gave {smoothed}"


class TestVoiceActivityDetector:
    """Test detection on synthetic signals."""

    @pytest.fixture
    def sample_rate(self):
        return 44100

    def test_silence_is_not_speech(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate)
        results = vad.detect_voice_activity(generate_silence(1.0, sample_rate))

        ratio = speech_ratio(results)
        assert ratio < 0.2, f"Silence detected as speech: {ratio:.2f}"

    def test_tone_is_speech(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate)
        results = vad.detect_voice_activity(generate_sine_wave(440.0, 1.0, sample_rate))

        ratio = speech_ratio(results)
        assert ratio > 0.7, f"Tone not detected as speech: {ratio:.2f}"

    def test_mixed_signal_has_separate_speech_segments(self, sample_rate):
        audio = np.concatenate([
            generate_sine_wave(200.0, 0.3, sample_rate),
            generate_silence(0.1, sample_rate),
            generate_noise(0.2, sample_rate),
            generate_sine_wave(300.0, 0.3, sample_rate),
            generate_silence(0.1, sample_rate),
        ])
        vad = VoiceActivityDetector(VADConfig.short_pauses(), sample_rate)

        segments = vad.create_segments(vad.detect_voice_activity(audio))
        speech = [s for s in segments if s.is_speech]
        assert len(speech) >= 2, f"Expected at least 2 speech segments, got {len(speech)}"

    def test_segments_are_contiguous_and_alternate(self, sample_rate):
        audio = np.concatenate([
            generate_silence(0.3, sample_rate),
            generate_sine_wave(300.0, 0.4, sample_rate),
            generate_silence(0.3, sample_rate),
            generate_sine_wave(500.0, 0.4, sample_rate),
            generate_silence(0.3, sample_rate),
        ])
        vad = VoiceActivityDetector(VADConfig.default(), sample_rate)
        segments = vad.create_segments(vad.detect_voice_activity(audio))

        assert len(segments) >= 2
        for a, b in zip(segments[:-1], segments[1:]):
            assert a.end_time == pytest.approx(b.start_time)
            assert a.is_speech != b.is_speech

    def test_segments_meet_minimum_durations(self, sample_rate):
        # Alternating 40 ms bursts and gaps are too short for either class
        pieces = []
        for _ in range(10):
            pieces.append(generate_sine_wave(300.0, 0.04, sample_rate))
            pieces.append(generate_silence(0.04, sample_rate))
        audio = np.concatenate(pieces)

        config = VADConfig(hangover_time=0.0, min_speech_duration=0.1, min_silence_duration=0.1)
        vad = VoiceActivityDetector(config, sample_rate)
        segments = vad.create_segments(vad.detect_voice_activity(audio))

        if len(segments) > 1:
            for segment in segments:
                minimum = config.min_speech_duration if segment.is_speech else config.min_silence_duration
                assert segment.duration >= minimum - 1e-9, f"Segment too short: {segment}"

    def test_create_segments_of_nothing(self, sample_rate):
        assert VoiceActivityDetector(sample_rate=sample_rate).create_segments([]) == []

    def test_short_buffer_gives_no_frames(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate, frame_size=1024)
        assert vad.detect_voice_activity(np.ones(500)) == []

    def test_speech_segments_require_confidence(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate)
        segments = [
            VADSegment(0.0, 0.5, True, 0.9, 0.5),
            VADSegment(0.5, 1.0, False, 0.9, 0.0),
            VADSegment(1.0, 1.5, True, 0.2, 0.5),
        ]
        assert vad.speech_segments(segments) == [segments[0]]

    def test_reset_restores_initial_state(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate)
        vad.detect_voice_activity(generate_sine_wave(440.0, 0.5, sample_rate))
        assert vad.state.frames_seen > 0

        vad.reset()
        assert vad.state.frames_seen == 0
        assert vad.state.noise_frame_count == 0
        assert vad.state.previous_spectrum is None
        assert vad.state.frames_since_speech is None

    def test_hangover_extends_speech(self, sample_rate):
        audio = np.concatenate([
            generate_sine_wave(440.0, 0.3, sample_rate),
            generate_silence(0.5, sample_rate),
        ])
        with_hangover = VoiceActivityDetector(VADConfig(hangover_time=0.2), sample_rate)
        without = VoiceActivityDetector(VADConfig(hangover_time=0.0), sample_rate)

        long_ratio = speech_ratio(with_hangover.detect_voice_activity(audio))
        short_ratio = speech_ratio(without.detect_voice_activity(audio))
        assert long_ratio > short_ratio

    def test_nan_frames_do_not_raise(self, sample_rate):
        vad = VoiceActivityDetector(sample_rate=sample_rate)
        frame = np.full(1024, np.nan)
        result = vad.process_frame(frame)
        assert not result.is_speech


class TestVadStep:
    """Test the pure per-frame update."""

    def test_input_state_is_not_mutated(self):
        config = VADConfig.default()
        state = VADState()
        frame = generate_sine_wave(440.0, 1024 / 44100, 44100)

        next_state, result = vad_step(config, 44100, 512, state, frame, 0.0)

        assert state.frames_seen == 0
        assert state.previous_spectrum is None
        assert next_state.frames_seen == 1
        assert next_state.previous_spectrum is not None
        assert result.is_speech

    def test_quiet_frames_feed_noise_estimate(self):
        config = VADConfig.default()
        state = VADState()
        for _ in range(3):
            state, _ = vad_step(config, 44100, 512, state, np.zeros(1024), 0.0)

        assert state.noise_frame_count == 3
        assert state.noise_energy == 0.0

    def test_confidence_in_unit_range(self):
        config = VADConfig.default()
        state = VADState()
        for frame in (np.zeros(1024), generate_noise(1024 / 44100), np.ones(1024)):
            state, result = vad_step(config, 44100, 512, state, frame, 0.0)
            assert 0.0 <= result.confidence <= 1.0


class TestVADConfig:
    """Test configuration presets."""

    def test_presets_get_stricter(self):
        default = VADConfig.default()
        significant = VADConfig.significant_change_only()
        daily = VADConfig.daily_environment()

        assert default.energy_threshold < significant.energy_threshold < daily.energy_threshold
        assert default.hangover_time >= significant.hangover_time > daily.hangover_time

    def test_default_hangover(self):
        assert VADConfig().hangover_time == pytest.approx(0.1)

    def test_short_pauses_hangover_fits_inside_gap(self):
        config = VADConfig.short_pauses()
        hop = 512
        hangover_frames = int(config.hangover_time * 44100 / hop)
        # A 0.1 s pause leaves about six hops of fully silent frames
        assert hangover_frames < 6
        assert config.min_silence_duration < 0.1 - config.hangover_time

    def test_segment_must_have_positive_duration(self):
        with pytest.raises(ValueError):
            VADSegment(1.0, 1.0, True, 0.5, 0.5)
