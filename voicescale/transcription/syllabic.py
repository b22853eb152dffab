"""Syllable transcription - voice recording to per-syllable notes.

Batch pipeline:
    samples -> VAD -> speech segments -> syllable windows
            -> dominant spectral frame per window -> Note -> quality filter

A realtime session classifies one buffer at a time and returns a
single-frame syllable when the buffer is voiced.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from ..core import Note
from ..core.constants import DEFAULT_FFT_SIZE
from ..core.errors import (
    AnalysisCancelled,
    AnalysisError,
    AnalysisTimeout,
    InsufficientData,
    InvalidAudioData,
)
from ..core.segment import (
    QualityGrade,
    SyllableSegment,
    average_confidence,
    frequency_range,
    speech_segments,
    total_speech_duration,
)
from ..analysis.spectral import SpectralAnalyzer
from ..analysis.vad import VADConfig, VoiceActivityDetector
from ..analysis.segmentation import SegmentationConfig, SyllableSegmenter
from ..processing.quality import QualityFilter, QualityFilterConfig
from .base import Transcriber, prepare_audio

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Configuration for the batch and realtime pipelines.

    Attributes:
        fft_size: Spectral window in samples, power of two (default: 1024)
        overlap: Spectral window overlap (default: 0.75)
        vad: Voice activity thresholds (default: significant-change preset)
        segmentation: Syllable boundary thresholds (default: significant-change preset)
        quality: Syllable quality filter (default: no background-noise floor,
            which keeps only the loudest of near-equal sung notes)
    """

    fft_size: int = DEFAULT_FFT_SIZE
    overlap: float = 0.75
    vad: VADConfig = field(default_factory=VADConfig.significant_change_only)
    segmentation: SegmentationConfig = field(
        default_factory=SegmentationConfig.significant_change_only
    )
    quality: QualityFilterConfig = field(
        default_factory=lambda: QualityFilterConfig(remove_background_noise=False)
    )

    @classmethod
    def default(cls) -> "PipelineConfig":
        """Permissive detection for clean studio recordings."""
        return cls(vad=VADConfig.default(), segmentation=SegmentationConfig.default())

    @classmethod
    def significant_change_only(cls) -> "PipelineConfig":
        return cls()

    @classmethod
    def daily_environment(cls) -> "PipelineConfig":
        """Stricter detection for noisy everyday surroundings."""
        return cls(
            vad=VADConfig.daily_environment(),
            segmentation=SegmentationConfig.daily_environment(),
            quality=QualityFilterConfig(),
        )

    @classmethod
    def from_preset(cls, name: str) -> "PipelineConfig":
        """
        Look up a preset by name: 'default', 'significant' or 'daily'.

        Raises:
            ValueError: Unknown preset name
        """
        presets = {
            "default": cls.default,
            "significant": cls.significant_change_only,
            "daily": cls.daily_environment,
        }
        if name not in presets:
            raise ValueError(f"Unknown preset {name!r}, expected one of {sorted(presets)}")
        return presets[name]()


class OverallQualityGrade(Enum):
    """Quality of a whole analysis."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def color(self) -> str:
        """Display colour for console output."""
        return {
            OverallQualityGrade.EXCELLENT: "green",
            OverallQualityGrade.GOOD: "blue",
            OverallQualityGrade.FAIR: "yellow",
            OverallQualityGrade.POOR: "red",
        }[self]


@dataclass(frozen=True)
class AnalysisMetadata:
    """Counts and summary statistics collected during an analysis."""

    total_segments: int = 0  # VAD segments, speech and non-speech
    valid_segments: int = 0  # VAD speech segments passed to segmentation
    average_energy: float = 0.0  # Mean energy of the final syllables
    frequency_range: Optional[Tuple[float, float]] = None
    window_duration: float = 0.0  # Spectral window length, seconds
    raw_syllable_count: int = 0  # Syllables before quality filtering


@dataclass
class AnalysisResult:
    """Syllables detected in one recording."""

    syllables: List[SyllableSegment]  # Time order, indexed 0..n-1
    duration: float  # Recording length, seconds
    sample_rate: float
    metadata: AnalysisMetadata = field(default_factory=AnalysisMetadata)
    processing_time: float = 0.0  # Seconds

    @property
    def valid_syllables(self) -> List[SyllableSegment]:
        return speech_segments(self.syllables)

    @property
    def notes(self) -> List[Note]:
        """Notes of the valid syllables, in time order."""
        return [s.note for s in self.valid_syllables if s.note is not None]

    @property
    def note_names(self) -> List[str]:
        return [note.name for note in self.notes]

    @property
    def overall_confidence(self) -> float:
        return average_confidence(self.syllables)

    @property
    def total_speech_duration(self) -> float:
        return total_speech_duration(self.syllables)

    @property
    def speech_ratio(self) -> float:
        """Speech time over recording time."""
        if self.duration <= 0:
            return 0.0
        return self.total_speech_duration / self.duration

    @property
    def frequency_range(self) -> Optional[Tuple[float, float]]:
        return frequency_range(self.syllables)

    @property
    def average_frequency(self) -> Optional[float]:
        frequencies = [
            s.primary_frequency for s in self.valid_syllables
            if s.primary_frequency is not None
        ]
        if not frequencies:
            return None
        return float(np.mean(frequencies))

    @property
    def quality_grade(self) -> OverallQualityGrade:
        confidence = self.overall_confidence
        ratio = self.speech_ratio
        count = len(self.valid_syllables)

        if confidence > 0.8 and ratio > 0.5 and count >= 3:
            return OverallQualityGrade.EXCELLENT
        elif confidence > 0.6 and ratio > 0.3 and count >= 2:
            return OverallQualityGrade.GOOD
        elif confidence > 0.4 and ratio > 0.1 and count >= 1:
            return OverallQualityGrade.FAIR
        return OverallQualityGrade.POOR

    def pitch_classes(self) -> List[int]:
        """Pitch classes of the detected notes in time order, for scale matching."""
        return [note.pitch_class for note in self.notes]

    def segments_between(self, start: float, end: float) -> List[SyllableSegment]:
        """Syllables overlapping the closed interval [start, end]."""
        return [s for s in self.syllables if s.start_time <= end and s.end_time >= start]

    def segments_with_min_quality(self, grade: QualityGrade) -> List[SyllableSegment]:
        return [s for s in self.syllables if s.quality_grade.rank >= grade.rank]


class SyllableTranscriber(Transcriber):
    """Transcribes a voice recording into one note per syllable."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        """
        Initialize SyllableTranscriber.

        Args:
            config: Pipeline configuration (default: PipelineConfig())
        """
        self.config = config or PipelineConfig()
        self.analyzer = SpectralAnalyzer(self.config.fft_size, self.config.overlap)
        self.quality_filter = QualityFilter(self.config.quality)

    def transcribe(self, audio: np.ndarray, sr: int) -> List[Note]:
        return self.analyze(audio, sr).notes

    def analyze(
        self,
        audio: np.ndarray,
        sr: int,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> AnalysisResult:
        """
        Run the batch pipeline on a recording.

        Args:
            audio: Mono samples (channels-first input is mixed down)
            sr: Sample rate in Hz
            timeout: Time budget in seconds (None for no limit)
            cancel_event: Set by the caller to stop the analysis

        Returns:
            AnalysisResult with the filtered syllables

        Raises:
            ValueError: Negative timeout
            InvalidAudioData: Empty or all non-finite input, or sr <= 0
            InsufficientData: Input shorter than one spectral window
            AnalysisTimeout: The time budget ran out
            AnalysisCancelled: cancel_event was set
        """
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be non-negative, got {timeout}")

        started = time.monotonic()
        deadline = None if timeout is None else started + timeout

        samples = prepare_audio(audio, sr)
        fft_size = self.config.fft_size
        if len(samples) < fft_size:
            raise InsufficientData(
                f"Need at least {fft_size} samples, got {len(samples)}"
            )

        def checkpoint(stage: str):
            if cancel_event is not None and cancel_event.is_set():
                raise AnalysisCancelled(f"Analysis cancelled during {stage}")
            if deadline is not None and time.monotonic() > deadline:
                raise AnalysisTimeout(f"Analysis exceeded {timeout:.2f}s during {stage}")

        checkpoint("validation")

        # Detector state belongs to this call only
        vad = VoiceActivityDetector(self.config.vad, sr, fft_size)
        frame_results = vad.detect_voice_activity(samples)
        checkpoint("voice activity detection")

        vad_segments = vad.create_segments(frame_results)
        voiced = vad.speech_segments(vad_segments)
        checkpoint("segment creation")

        segmenter = SyllableSegmenter(self.config.segmentation, sr, fft_size)
        raw: List[SyllableSegment] = []
        for segment in voiced:
            checkpoint("syllable segmentation")
            for result in segmenter.segment_speech_segments([segment], samples):
                raw.extend(
                    segmenter.build_syllables(result, samples, self.analyzer, start_index=len(raw))
                )

        checkpoint("quality filtering")
        syllables = self.quality_filter.filter(raw)

        metadata = AnalysisMetadata(
            total_segments=len(vad_segments),
            valid_segments=len(voiced),
            average_energy=float(np.mean([s.energy for s in syllables])) if syllables else 0.0,
            frequency_range=frequency_range(syllables),
            window_duration=fft_size / sr,
            raw_syllable_count=len(raw),
        )
        elapsed = time.monotonic() - started

        logger.info(
            "Analyzed %.2fs of audio: %d speech segments, %d -> %d syllables in %.3fs",
            len(samples) / sr,
            len(voiced),
            len(raw),
            len(syllables),
            elapsed,
        )
        return AnalysisResult(
            syllables=syllables,
            duration=len(samples) / sr,
            sample_rate=sr,
            metadata=metadata,
            processing_time=elapsed,
        )


class RealtimeSession:
    """Streaming analysis of fixed-size microphone buffers.

    A session owns its detector state, so use one session per stream and
    do not share it between threads.
    """

    def __init__(self, sample_rate: float, config: Optional[PipelineConfig] = None):
        if not sample_rate > 0:
            raise InvalidAudioData(f"Sample rate must be positive, got {sample_rate}")

        self.sample_rate = sample_rate
        self.config = config or PipelineConfig()
        self.analyzer = SpectralAnalyzer(self.config.fft_size, self.config.overlap)
        self.vad = VoiceActivityDetector(self.config.vad, sample_rate, self.config.fft_size)
        self._elapsed = 0.0
        self._index = 0

    def reset(self):
        """Start a new stream: clear detector state, clock and syllable index."""
        self.vad.reset()
        self._elapsed = 0.0
        self._index = 0

    def process(self, buffer: np.ndarray) -> Optional[SyllableSegment]:
        """
        Analyze one buffer.

        Returns:
            A valid syllable when the buffer is voiced speech, otherwise None.
            Malformed buffers are skipped rather than raised.
        """
        samples = np.nan_to_num(
            np.asarray(buffer, dtype=np.float64).ravel(), nan=0.0, posinf=0.0, neginf=0.0
        )
        if samples.size == 0:
            return None

        timestamp = self._elapsed
        self._elapsed += samples.size / self.sample_rate

        try:
            frame = self.analyzer.analyze(samples, self.sample_rate, timestamp)
        except AnalysisError as e:
            logger.debug("Skipping buffer at %.3fs: %s", timestamp, e)
            return None

        # Fixed-length frames keep spectral flux comparable between buffers
        window = np.zeros(self.config.fft_size)
        n = min(samples.size, self.config.fft_size)
        window[:n] = samples[:n]
        vad_result = self.vad.process_frame(window, timestamp)

        if not (frame.is_valid_signal and vad_result.is_speech):
            return None

        segment = SyllableSegment.from_frame(frame, index=self._index)
        if not segment.is_valid:
            return None

        self._index += 1
        return segment
