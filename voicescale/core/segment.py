"""SyllableSegment - one syllable-sized slice of a recording with its note."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .frame import FrequencyFrame
from .note import Note, as_optional, note_from_frequency, peak_confidence


class SegmentKind(Enum):
    """What a segment contains."""
    SPEECH = "speech"
    SILENCE = "silence"
    NOISE = "noise"
    BREATH = "breath"
    TRANSITION = "transition"


class QualityGrade(Enum):
    """Per-segment quality, ordered worst to best."""
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"

    @property
    def rank(self) -> int:
        return _GRADE_ORDER.index(self)


_GRADE_ORDER = [QualityGrade.POOR, QualityGrade.FAIR, QualityGrade.GOOD, QualityGrade.EXCELLENT]


@dataclass(frozen=True, eq=False)
class SyllableSegment:
    """A syllable window, its dominant frame and the note it maps to."""

    index: int
    start_time: float  # Seconds
    end_time: float  # Seconds
    frame: FrequencyFrame  # Dominant frame of the window
    note: Optional[Note] = None
    energy: float = 0.0  # 0.0 - 1.0 (clamped)
    confidence: float = 0.0  # 0.0 - 1.0 (clamped)
    kind: SegmentKind = SegmentKind.SPEECH

    def __post_init__(self):
        if self.index < 0:
            raise ValueError(f"Segment index must be >= 0, got {self.index}")
        if not self.end_time > self.start_time:
            raise ValueError(
                f"Segment must end after it starts: {self.start_time} >= {self.end_time}"
            )
        object.__setattr__(self, "energy", float(np.clip(self.energy, 0.0, 1.0)))
        object.__setattr__(self, "confidence", float(np.clip(self.confidence, 0.0, 1.0)))

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def center_time(self) -> float:
        return (self.start_time + self.end_time) / 2.0

    @property
    def primary_frequency(self) -> Optional[float]:
        """Peak frequency of the dominant frame."""
        return self.frame.peak_frequency

    @property
    def note_name(self) -> Optional[str]:
        return self.note.name if self.note is not None else None

    @property
    def is_valid(self) -> bool:
        """Non-silent segment with some energy and confidence."""
        return (
            self.duration > 0
            and self.energy > 0.01
            and self.confidence > 0.1
            and self.kind != SegmentKind.SILENCE
        )

    @property
    def quality_grade(self) -> QualityGrade:
        if self.confidence > 0.8 and self.energy > 0.5:
            return QualityGrade.EXCELLENT
        elif self.confidence > 0.6 and self.energy > 0.3:
            return QualityGrade.GOOD
        elif self.confidence > 0.4 and self.energy > 0.1:
            return QualityGrade.FAIR
        return QualityGrade.POOR

    def with_index(self, index: int) -> "SyllableSegment":
        """Copy of this segment with a new index."""
        return replace(self, index=index)

    def __str__(self) -> str:
        freq = self.primary_frequency
        freq_desc = f"{freq:.1f}" if freq is not None else "N/A"
        return (
            f"SyllableSegment[{self.index}]: {self.note_name or 'N/A'} "
            f"({freq_desc}Hz) at {self.start_time:.3f}s"
        )

    @classmethod
    def from_frame(
        cls,
        frame: FrequencyFrame,
        index: int = 0,
        window_duration: Optional[float] = None,
    ) -> "SyllableSegment":
        """
        Build a segment from a single frame (realtime path).

        Args:
            frame: Analyzed window
            index: Segment index
            window_duration: Segment length in seconds (default: frame length)

        Returns:
            Segment starting at the frame timestamp
        """
        if window_duration is None:
            window_duration = frame.duration

        peak_freq = frame.peak_frequency
        note = None
        if peak_freq is not None:
            note = as_optional(
                note_from_frequency(peak_freq, window_duration, frame.peak_magnitude)
            )

        energy = min(1.0, frame.total_magnitude * 10.0)
        kind = SegmentKind.SPEECH if energy > 0.05 else SegmentKind.SILENCE

        return cls(
            index=index,
            start_time=frame.timestamp,
            end_time=frame.timestamp + window_duration,
            frame=frame,
            note=note,
            energy=energy,
            confidence=peak_confidence(frame),
            kind=kind,
        )


def speech_segments(segments: Sequence[SyllableSegment]) -> List[SyllableSegment]:
    """Valid segments of kind speech."""
    return [s for s in segments if s.kind == SegmentKind.SPEECH and s.is_valid]


def average_confidence(segments: Sequence[SyllableSegment]) -> float:
    """Mean confidence over valid speech segments (0.0 if none)."""
    valid = speech_segments(segments)
    if not valid:
        return 0.0
    return float(np.mean([s.confidence for s in valid]))


def total_speech_duration(segments: Sequence[SyllableSegment]) -> float:
    return float(sum(s.duration for s in speech_segments(segments)))


def frequency_range(segments: Sequence[SyllableSegment]) -> Optional[Tuple[float, float]]:
    """(min, max) primary frequency over valid speech segments."""
    frequencies = [
        s.primary_frequency for s in speech_segments(segments)
        if s.primary_frequency is not None
    ]
    if not frequencies:
        return None
    return min(frequencies), max(frequencies)
