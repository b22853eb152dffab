"""Syllable segmentation - split speech segments at significant changes.

Boundaries are placed where smoothed frame energy or spectral centroid
changes sharply, then thinned by a minimum gap, split where syllables run
too long, and finally pruned so that no syllable is shorter than the
configured minimum.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.constants import DEFAULT_SR, DEFAULT_FFT_SIZE
from ..core.frame import FrequencyFrame
from ..core.note import as_optional, note_from_frequency, peak_confidence
from ..core.segment import SyllableSegment, SegmentKind
from .features import energy_and_centroid, smooth
from .spectral import SpectralAnalyzer
from .vad import VADSegment

logger = logging.getLogger(__name__)

# Typical syllable length used by the duration score (seconds)
IDEAL_SYLLABLE_DURATION = 0.2


class SegmentationMethod(Enum):
    """How boundaries were derived."""
    ENERGY_BASED = "energy_based"
    SPECTRAL_BASED = "spectral_based"
    HYBRID = "hybrid"
    DURATION_BASED = "duration_based"
    ADAPTIVE = "adaptive"


@dataclass
class SegmentationConfig:
    """Configuration for syllable segmentation.

    Attributes:
        energy_change_threshold: Relative energy change multiplier (default: 0.3)
        centroid_change_threshold: Fixed centroid change in Hz when not adaptive (default: 150)
        min_syllable_duration: Shortest syllable kept, seconds (default: 0.08)
        max_syllable_duration: Longer syllables are split evenly, seconds (default: 0.6)
        min_inter_syllable_gap: Minimum spacing of candidate boundaries, seconds (default: 0.02)
        smoothing_window: Moving-average length in frames (default: 3)
        adaptive_thresholds: Derive thresholds from per-segment statistics (default: True)
    """

    energy_change_threshold: float = 0.3
    centroid_change_threshold: float = 150.0
    min_syllable_duration: float = 0.08
    max_syllable_duration: float = 0.6
    min_inter_syllable_gap: float = 0.02
    smoothing_window: int = 3
    adaptive_thresholds: bool = True

    @classmethod
    def default(cls) -> "SegmentationConfig":
        return cls()

    @classmethod
    def fine(cls) -> "SegmentationConfig":
        """Shorter syllables with heavier smoothing."""
        return cls(
            energy_change_threshold=0.25,
            centroid_change_threshold=120.0,
            min_syllable_duration=0.09,
            max_syllable_duration=0.5,
            min_inter_syllable_gap=0.025,
            smoothing_window=5,
        )

    @classmethod
    def significant_change_only(cls) -> "SegmentationConfig":
        """Only split on large, well separated changes."""
        return cls(
            energy_change_threshold=0.6,
            centroid_change_threshold=300.0,
            min_syllable_duration=0.2,
            max_syllable_duration=1.0,
            min_inter_syllable_gap=0.1,
            smoothing_window=7,
        )

    @classmethod
    def daily_environment(cls) -> "SegmentationConfig":
        return cls(
            energy_change_threshold=0.8,
            centroid_change_threshold=400.0,
            min_syllable_duration=0.25,
            max_syllable_duration=1.2,
            min_inter_syllable_gap=0.15,
            smoothing_window=9,
        )


@dataclass(eq=False)
class SegmentationResult:
    """Syllable boundaries found inside one speech segment."""

    segment: VADSegment
    boundaries: List[float]  # Absolute times, sorted, bracketing the segment
    energy_profile: np.ndarray = field(repr=False)
    centroid_profile: np.ndarray = field(repr=False)
    confidence: float = 0.0  # 0.0 - 1.0
    method: SegmentationMethod = SegmentationMethod.HYBRID

    @property
    def windows(self) -> List[Tuple[float, float]]:
        """(start, end) pairs of adjacent boundaries."""
        return list(zip(self.boundaries[:-1], self.boundaries[1:]))

    @property
    def syllable_count(self) -> int:
        return max(0, len(self.boundaries) - 1)

    @property
    def mean_energy(self) -> float:
        if len(self.energy_profile) == 0:
            return 0.0
        return float(np.mean(self.energy_profile))


class SyllableSegmenter:
    """Split VAD speech segments into syllable windows.

    Stateless between calls: statistics for adaptive thresholds are
    computed per segment.
    """

    def __init__(
        self,
        config: Optional[SegmentationConfig] = None,
        sample_rate: float = DEFAULT_SR,
        frame_size: int = DEFAULT_FFT_SIZE,
    ):
        """
        Initialize SyllableSegmenter.

        Args:
            config: Segmentation thresholds (default: SegmentationConfig.default())
            sample_rate: Sample rate in Hz
            frame_size: Feature frame length in samples (hop is half a frame)
        """
        self.config = config or SegmentationConfig.default()
        self.sample_rate = sample_rate
        self.frame_size = frame_size
        self.hop_size = max(1, frame_size // 2)

    def segment_into_syllables(
        self, vad_segment: VADSegment, audio: np.ndarray
    ) -> SegmentationResult:
        """
        Find syllable boundaries inside one speech segment.

        Args:
            vad_segment: Segment being split
            audio: Samples of that segment only

        Returns:
            SegmentationResult; boundaries are empty when the segment is
            shorter than the minimum syllable duration
        """
        audio = np.nan_to_num(np.asarray(audio, dtype=np.float64))
        rms, centroid = energy_and_centroid(
            audio, self.sample_rate, self.frame_size, self.hop_size
        )
        energy = smooth(rms, self.config.smoothing_window)
        centroid = smooth(centroid, self.config.smoothing_window)

        if vad_segment.duration < self.config.min_syllable_duration:
            boundaries: List[float] = []
        else:
            candidates = sorted(
                set(self._energy_boundaries(energy)) | set(self._centroid_boundaries(centroid))
            )
            boundaries = self._refine_boundaries(candidates, vad_segment)

        confidence = self._confidence(boundaries, energy, centroid, vad_segment.start_time)

        logger.debug(
            "Segmented %.3f-%.3fs into %d syllables (confidence %.2f)",
            vad_segment.start_time,
            vad_segment.end_time,
            max(0, len(boundaries) - 1),
            confidence,
        )
        return SegmentationResult(
            segment=vad_segment,
            boundaries=boundaries,
            energy_profile=energy,
            centroid_profile=centroid,
            confidence=confidence,
            method=SegmentationMethod.HYBRID,
        )

    def segment_speech_segments(
        self, vad_segments: Sequence[VADSegment], audio: np.ndarray
    ) -> List[SegmentationResult]:
        """
        Segment every VAD segment of a full recording.

        Segments whose sample range falls outside the recording are skipped.
        """
        results = []
        for segment in vad_segments:
            start = int(segment.start_time * self.sample_rate)
            end = int(segment.end_time * self.sample_rate)
            if start < 0 or end > len(audio) or start >= end:
                logger.warning(
                    "Skipping segment with invalid sample range %d-%d", start, end
                )
                continue
            results.append(self.segment_into_syllables(segment, audio[start:end]))
        return results

    def build_syllables(
        self,
        result: SegmentationResult,
        audio: np.ndarray,
        analyzer: SpectralAnalyzer,
        start_index: int = 0,
    ) -> List[SyllableSegment]:
        """
        Turn segmentation windows into SyllableSegments.

        The dominant frame of each window is its valid frame with the
        largest peak magnitude, and its peak confidence becomes the
        syllable confidence. Windows without a valid frame are skipped.

        Args:
            result: Segmentation of one speech segment
            audio: Full recording (boundaries are absolute times)
            analyzer: Spectral analyzer used for the window frames
            start_index: Index of the first syllable produced

        Returns:
            Syllables in time order
        """
        syllables = []
        for window_start, window_end in result.windows:
            frame = self._dominant_frame(audio, analyzer, window_start, window_end)
            if frame is None:
                continue

            duration = window_end - window_start
            note = as_optional(
                note_from_frequency(frame.peak_frequency, duration, frame.peak_magnitude)
            )
            syllables.append(
                SyllableSegment(
                    index=start_index + len(syllables),
                    start_time=window_start,
                    end_time=window_end,
                    frame=frame,
                    note=note,
                    energy=self._window_energy(result, window_start, window_end),
                    confidence=peak_confidence(frame),
                    kind=SegmentKind.SPEECH,
                )
            )
        return syllables

    def _energy_boundaries(self, energy: np.ndarray) -> List[float]:
        if len(energy) < 2:
            return []

        if self.config.adaptive_thresholds:
            threshold = energy.mean() + energy.std() * self.config.energy_change_threshold
        else:
            threshold = self.config.energy_change_threshold

        change = np.abs(np.diff(energy)) / np.maximum(energy[:-1], 0.01)
        frames = np.flatnonzero(change > threshold) + 1
        return [i * self.hop_size / self.sample_rate for i in frames]

    def _centroid_boundaries(self, centroid: np.ndarray) -> List[float]:
        if len(centroid) < 2:
            return []

        if self.config.adaptive_thresholds:
            threshold = centroid.mean() + centroid.std() * 0.5
        else:
            threshold = self.config.centroid_change_threshold

        frames = np.flatnonzero(np.abs(np.diff(centroid)) > threshold) + 1
        return [i * self.hop_size / self.sample_rate for i in frames]

    def _refine_boundaries(
        self, candidates: List[float], segment: VADSegment
    ) -> List[float]:
        start, end = segment.start_time, segment.end_time

        # Candidates are relative to the segment; thin by minimum gap
        spaced = []
        last = start
        for offset in candidates:
            boundary = start + offset
            if not start < boundary < end:
                continue
            if boundary - last >= self.config.min_inter_syllable_gap:
                spaced.append(boundary)
                last = boundary

        # Evenly split windows that are too long
        interior = list(spaced)
        edges = [start] + spaced + [end]
        for a, b in zip(edges[:-1], edges[1:]):
            length = b - a
            if length > self.config.max_syllable_duration:
                pieces = math.ceil(length / self.config.max_syllable_duration)
                interior.extend(a + j * length / pieces for j in range(1, pieces))
        interior.sort()

        # Enforce the minimum syllable duration on both sides of each boundary
        min_duration = self.config.min_syllable_duration
        kept = [start]
        for boundary in interior:
            if boundary - kept[-1] >= min_duration and end - boundary >= min_duration:
                kept.append(boundary)
        kept.append(end)
        return kept

    def _frame_span(self, a: float, b: float, origin: float, n_frames: int) -> Tuple[int, int]:
        first = int((a - origin) * self.sample_rate / self.hop_size)
        last = min(int((b - origin) * self.sample_rate / self.hop_size), n_frames)
        return max(0, first), last

    def _confidence(
        self,
        boundaries: List[float],
        energy: np.ndarray,
        centroid: np.ndarray,
        origin: float,
    ) -> float:
        if len(boundaries) < 2:
            return 0.0

        windows = list(zip(boundaries[:-1], boundaries[1:]))
        consistency = 0.0
        reasonableness = 0.0
        stability = 0.0
        for a, b in windows:
            first, last = self._frame_span(a, b, origin, len(energy))
            if first < last:
                consistency += math.exp(-10.0 * float(np.var(energy[first:last])))
                stability += math.exp(-float(np.var(centroid[first:last])) / 10000.0)

            deviation = abs((b - a) - IDEAL_SYLLABLE_DURATION) / IDEAL_SYLLABLE_DURATION
            reasonableness += math.exp(-2.0 * deviation)

        n = len(windows)
        confidence = (
            0.4 * consistency / n
            + 0.3 * reasonableness / n
            + 0.3 * stability / n
        )
        return float(np.clip(confidence, 0.0, 1.0))

    def _window_energy(self, result: SegmentationResult, a: float, b: float) -> float:
        first, last = self._frame_span(
            a, b, result.segment.start_time, len(result.energy_profile)
        )
        if first < last:
            return float(np.mean(result.energy_profile[first:last]))
        return result.mean_energy

    def _dominant_frame(
        self,
        audio: np.ndarray,
        analyzer: SpectralAnalyzer,
        window_start: float,
        window_end: float,
    ) -> Optional[FrequencyFrame]:
        start = max(0, int(window_start * self.sample_rate))
        end = min(len(audio), int(window_end * self.sample_rate))
        if start >= end:
            return None

        window = audio[start:end]
        if len(window) >= analyzer.fft_size:
            frames = list(
                analyzer.analyze_segments(
                    window, self.sample_rate, valid_only=True, start_time=window_start
                )
            )
        else:
            frame = analyzer.analyze(window, self.sample_rate, window_start)
            frames = [frame] if frame.is_valid_signal else []

        if not frames:
            return None
        return max(frames, key=lambda f: f.peak_magnitude)
