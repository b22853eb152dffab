"""Voice activity detection.

Each frame is scored on three features (normalized energy, zero-crossing
rate, spectral flux) against thresholds that adapt to a noise floor
learned from the start of the recording. A hangover keeps short dips
inside speech from splitting it, and segment creation enforces minimum
speech/silence durations.

The per-frame update is a pure function over an immutable ``VADState``;
``VoiceActivityDetector`` is a thin single-owner wrapper around it.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np
import librosa

from ..core.constants import DEFAULT_SR, DEFAULT_FFT_SIZE
from .features import frame_energy, zero_crossing_rate, magnitude_spectrum, spectral_flux

logger = logging.getLogger(__name__)

# Frames below this normalized energy count toward the noise floor
NOISE_ENERGY_CEILING = 0.1

# Feature weights in the speech score
ENERGY_WEIGHT = 0.5
ZCR_WEIGHT = 0.3
FLUX_WEIGHT = 0.2


@dataclass
class VADConfig:
    """Configuration for voice activity detection.

    Attributes:
        energy_threshold: Normalized energy above which a frame looks voiced (default: 0.01)
        zcr_threshold: Zero-crossing rate threshold in Hz (default: 50)
        spectral_flux_threshold: Spectral flux threshold (default: 0.02)
        min_speech_duration: Shortest speech segment kept, seconds (default: 0.1)
        min_silence_duration: Shortest silence segment kept, seconds (default: 0.05)
        hangover_time: Speech extension after the last voiced frame, seconds (default: 0.1)
        use_adaptive_threshold: Raise thresholds above the learned noise floor (default: True)
        noise_estimation_time: Initial span used to learn the noise floor, seconds (default: 0.5)
    """

    energy_threshold: float = 0.01
    zcr_threshold: float = 50.0
    spectral_flux_threshold: float = 0.02
    min_speech_duration: float = 0.1
    min_silence_duration: float = 0.05
    hangover_time: float = 0.1
    use_adaptive_threshold: bool = True
    noise_estimation_time: float = 0.5

    @classmethod
    def default(cls) -> "VADConfig":
        return cls()

    @classmethod
    def significant_change_only(cls) -> "VADConfig":
        """Strict preset that only reacts to clear, sustained voicing."""
        return cls(
            energy_threshold=0.08,
            zcr_threshold=80.0,
            spectral_flux_threshold=0.1,
            min_speech_duration=0.25,
            min_silence_duration=0.15,
            hangover_time=0.1,
            use_adaptive_threshold=True,
            noise_estimation_time=1.0,
        )

    @classmethod
    def daily_environment(cls) -> "VADConfig":
        """Preset for noisy everyday surroundings."""
        return cls(
            energy_threshold=0.12,
            zcr_threshold=100.0,
            spectral_flux_threshold=0.15,
            min_speech_duration=0.3,
            min_silence_duration=0.2,
            hangover_time=0.05,
            use_adaptive_threshold=True,
            noise_estimation_time=1.5,
        )

    @classmethod
    def short_pauses(cls) -> "VADConfig":
        """Preset that splits phrases separated by pauses of about 0.1 s.

        The hangover must end inside the pause's run of fully silent
        frames, so it is kept to about one hop.
        """
        return cls(
            min_speech_duration=0.1,
            min_silence_duration=0.03,
            hangover_time=0.02,
        )


@dataclass(frozen=True)
class VADFrameResult:
    """Classification of a single analysis frame."""

    energy_level: float  # 0.0 - 1.0
    zero_crossing_rate: float  # Hz
    spectral_flux: float
    confidence: float  # 0.0 - 1.0
    is_speech: bool
    frame_time: float  # Frame start, seconds


@dataclass(frozen=True)
class VADSegment:
    """A run of frames with the same speech/non-speech class."""

    start_time: float
    end_time: float
    is_speech: bool
    average_confidence: float
    average_energy: float
    frame_count: int = 0

    def __post_init__(self):
        if not self.end_time > self.start_time:
            raise ValueError(
                f"VAD segment must end after it starts: "
                f"{self.start_time:.3f} >= {self.end_time:.3f}"
            )

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True, eq=False)
class VADState:
    """Detector state carried from one frame to the next."""

    noise_energy_sum: float = 0.0
    noise_zcr_sum: float = 0.0
    noise_frame_count: int = 0
    frames_seen: int = 0
    previous_spectrum: Optional[np.ndarray] = field(default=None, repr=False)
    frames_since_speech: Optional[int] = None  # None until the first voiced frame

    @property
    def noise_energy(self) -> float:
        if self.noise_frame_count == 0:
            return 0.0
        return self.noise_energy_sum / self.noise_frame_count

    @property
    def noise_zcr(self) -> float:
        if self.noise_frame_count == 0:
            return 0.0
        return self.noise_zcr_sum / self.noise_frame_count


def vad_step(
    config: VADConfig,
    sample_rate: float,
    hop_size: int,
    state: VADState,
    frame: np.ndarray,
    timestamp: float,
) -> Tuple[VADState, VADFrameResult]:
    """
    Classify one frame.

    Args:
        config: Detection thresholds
        sample_rate: Sample rate in Hz
        hop_size: Samples between consecutive frame starts
        state: State after the previous frame
        frame: Frame samples
        timestamp: Frame start in seconds

    Returns:
        Tuple of (next state, frame result). ``state`` is left untouched.
    """
    frame = np.nan_to_num(np.asarray(frame, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)

    energy = frame_energy(frame)
    zcr = zero_crossing_rate(frame, sample_rate)
    spectrum = magnitude_spectrum(frame)
    flux = spectral_flux(spectrum, state.previous_spectrum)

    # Noise floor from quiet frames at the start of the recording
    noise_energy_sum = state.noise_energy_sum
    noise_zcr_sum = state.noise_zcr_sum
    noise_count = state.noise_frame_count
    estimation_frames = int(config.noise_estimation_time * sample_rate / hop_size)
    if state.frames_seen < estimation_frames and energy < NOISE_ENERGY_CEILING:
        noise_energy_sum += energy
        noise_zcr_sum += zcr
        noise_count += 1

    energy_threshold = config.energy_threshold
    zcr_threshold = config.zcr_threshold
    if config.use_adaptive_threshold and noise_count > 0:
        energy_threshold = max(energy_threshold, 2.0 * noise_energy_sum / noise_count)
        zcr_threshold = max(zcr_threshold, 1.5 * noise_zcr_sum / noise_count)

    score = (
        ENERGY_WEIGHT * (energy > energy_threshold)
        + ZCR_WEIGHT * (zcr > zcr_threshold)
        + FLUX_WEIGHT * (flux > config.spectral_flux_threshold)
    )
    is_speech = score > 0.5
    confidence = score if is_speech else 1.0 - score

    hangover_frames = int(config.hangover_time * sample_rate / hop_size)
    frames_since_speech = state.frames_since_speech
    if is_speech:
        frames_since_speech = 0
    elif frames_since_speech is not None:
        frames_since_speech += 1
        if frames_since_speech <= hangover_frames:
            is_speech = True
            confidence *= 0.5

    next_state = replace(
        state,
        noise_energy_sum=noise_energy_sum,
        noise_zcr_sum=noise_zcr_sum,
        noise_frame_count=noise_count,
        frames_seen=state.frames_seen + 1,
        previous_spectrum=spectrum,
        frames_since_speech=frames_since_speech,
    )
    result = VADFrameResult(
        energy_level=energy,
        zero_crossing_rate=zcr,
        spectral_flux=flux,
        confidence=float(np.clip(confidence, 0.0, 1.0)),
        is_speech=bool(is_speech),
        frame_time=timestamp,
    )
    return next_state, result


@dataclass
class _Run:
    is_speech: bool
    start_time: float
    end_time: float
    frames: List[VADFrameResult]

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class VoiceActivityDetector:
    """Frame-by-frame speech detector for one recording.

    The detector learns a noise floor and tracks hangover between frames,
    so an instance must not be shared between recordings. Call ``reset()``
    before reusing it on unrelated audio.
    """

    def __init__(
        self,
        config: Optional[VADConfig] = None,
        sample_rate: float = DEFAULT_SR,
        frame_size: int = DEFAULT_FFT_SIZE,
    ):
        """
        Initialize VoiceActivityDetector.

        Args:
            config: Detection thresholds (default: VADConfig.default())
            sample_rate: Sample rate in Hz
            frame_size: Frame length in samples (hop is half a frame)
        """
        self.config = config or VADConfig.default()
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = max(1, frame_size // 2)
        self.state = VADState()

    def reset(self):
        """Forget the noise floor, spectral history and hangover."""
        self.state = VADState()

    def process_frame(self, frame: np.ndarray, timestamp: float = 0.0) -> VADFrameResult:
        """Classify one frame and advance the detector state."""
        self.state, result = vad_step(
            self.config, self.sample_rate, self.hop_size, self.state, frame, timestamp
        )
        return result

    def detect_voice_activity(
        self, samples: np.ndarray, start_time: float = 0.0
    ) -> List[VADFrameResult]:
        """
        Classify every full frame of a buffer.

        Args:
            samples: Mono samples
            start_time: Time of the first sample in seconds

        Returns:
            One result per frame (empty when the buffer is shorter than a frame)
        """
        samples = np.nan_to_num(
            np.ascontiguousarray(samples, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0
        )
        if len(samples) < self.frame_size:
            logger.debug("Buffer shorter than one frame (%d < %d)", len(samples), self.frame_size)
            return []

        frames = librosa.util.frame(
            samples, frame_length=self.frame_size, hop_length=self.hop_size, axis=0
        )
        results = []
        for i, frame in enumerate(frames):
            timestamp = start_time + i * self.hop_size / self.sample_rate
            results.append(self.process_frame(frame, timestamp))

        logger.debug(
            "VAD: %d frames, speech ratio %.1f%%", len(results), 100.0 * speech_ratio(results)
        )
        return results

    def create_segments(self, results: Sequence[VADFrameResult]) -> List[VADSegment]:
        """
        Group frame results into alternating speech/non-speech segments.

        Runs shorter than their class minimum are absorbed, shortest first
        (earliest on ties), by flipping their class so they merge with both
        neighbours. Merging stops when every segment meets its minimum or a
        single segment is left, so applying it again changes nothing.

        Args:
            results: Frame results in time order

        Returns:
            Contiguous segments covering the first frame start to the last
            frame end
        """
        if not results:
            return []

        runs = self._runs(results)
        runs = self._absorb_short_runs(runs)
        segments = [self._to_segment(run) for run in runs]

        logger.debug(
            "VAD segments: %d total, %d speech",
            len(segments),
            sum(1 for s in segments if s.is_speech),
        )
        return segments

    def speech_segments(self, segments: Sequence[VADSegment]) -> List[VADSegment]:
        """Speech segments with average confidence above 0.3."""
        return [s for s in segments if s.is_speech and s.average_confidence > 0.3]

    def _min_duration(self, is_speech: bool) -> float:
        if is_speech:
            return self.config.min_speech_duration
        return self.config.min_silence_duration

    def _runs(self, results: Sequence[VADFrameResult]) -> List[_Run]:
        frame_duration = self.frame_size / self.sample_rate
        runs: List[_Run] = []
        for result in results:
            if runs and runs[-1].is_speech == result.is_speech:
                runs[-1].frames.append(result)
                continue
            if runs:
                runs[-1].end_time = result.frame_time
            runs.append(_Run(result.is_speech, result.frame_time, result.frame_time, [result]))
        runs[-1].end_time = results[-1].frame_time + frame_duration
        return runs

    def _absorb_short_runs(self, runs: List[_Run]) -> List[_Run]:
        while len(runs) > 1:
            short = [
                i for i, run in enumerate(runs)
                if run.duration < self._min_duration(run.is_speech)
            ]
            if not short:
                break

            # min() keeps the earliest index on equal durations
            i = min(short, key=lambda k: runs[k].duration)
            lo = max(0, i - 1)
            hi = min(len(runs), i + 2)
            merged = _Run(
                is_speech=not runs[i].is_speech,
                start_time=runs[lo].start_time,
                end_time=runs[hi - 1].end_time,
                frames=[f for run in runs[lo:hi] for f in run.frames],
            )
            runs = runs[:lo] + [merged] + runs[hi:]
        return runs

    @staticmethod
    def _to_segment(run: _Run) -> VADSegment:
        return VADSegment(
            start_time=run.start_time,
            end_time=run.end_time,
            is_speech=run.is_speech,
            average_confidence=float(np.mean([f.confidence for f in run.frames])),
            average_energy=float(np.mean([f.energy_level for f in run.frames])),
            frame_count=len(run.frames),
        )


def speech_ratio(results: Sequence[VADFrameResult]) -> float:
    """Fraction of frames classified as speech (0.0 for no frames)."""
    if not results:
        return 0.0
    return sum(1 for r in results if r.is_speech) / len(results)
