"""Quality filtering - remove noisy and redundant syllables.

Raw segmentation over-generates: formant transitions and room noise show
up as extra syllables that repeat the previous pitch or sit near the noise
floor. The filter runs these stages in order, each on the output of the
previous one:
- Basic thresholds (confidence, energy, duration, resolved note)
- Energy change (drop near-identical neighbours)
- Frequency change (drop repeats of the previous pitch)
- Statistical noise floor (keep the clearly loud syllables)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from ..core.segment import SyllableSegment

logger = logging.getLogger(__name__)


@dataclass
class QualityFilterConfig:
    """Configuration for syllable quality filtering.

    Attributes:
        min_confidence: Confidence must exceed this (default: 0.6)
        min_energy: Energy must exceed this (default: 0.08)
        min_duration: Shortest syllable kept in seconds (default: 0.2)
        max_duration: Longest syllable kept in seconds (default: 1.0)
        energy_change_ratio: Relative energy change that counts as new (default: 0.5)
        min_semitone_change: Pitch change in semitones that counts as new (default: 3)
        min_frequency_change: Frequency change in Hz that counts as new (default: 100)
        remove_background_noise: Apply the mean + std energy floor (default: True)
    """

    min_confidence: float = 0.6
    min_energy: float = 0.08
    min_duration: float = 0.2
    max_duration: float = 1.0
    energy_change_ratio: float = 0.5
    min_semitone_change: int = 3
    min_frequency_change: float = 100.0
    remove_background_noise: bool = True


@dataclass
class QualityFilterStats:
    """Segment counts after each filter stage."""

    original_count: int = 0
    after_basic: int = 0
    after_energy_change: int = 0
    after_frequency_change: int = 0
    after_noise_floor: int = 0

    @property
    def final_count(self) -> int:
        return self.after_noise_floor

    @property
    def total_removed(self) -> int:
        """Total segments removed."""
        return self.original_count - self.final_count


class QualityFilter:
    """Multi-stage filter over syllable segments."""

    def __init__(self, config: Optional[QualityFilterConfig] = None):
        self.config = config or QualityFilterConfig()

    def filter(
        self,
        segments: Sequence[SyllableSegment],
        return_stats: bool = False,
    ) -> Union[List[SyllableSegment], Tuple[List[SyllableSegment], QualityFilterStats]]:
        """Apply all filter stages and re-index the survivors.

        Args:
            segments: Syllables in time order
            return_stats: Whether to return per-stage counts

        Returns:
            Filtered syllables indexed 0..n-1, optionally with statistics
        """
        stats = QualityFilterStats(original_count=len(segments))

        kept = self.basic_threshold_filter(segments)
        stats.after_basic = len(kept)

        kept = self.energy_change_filter(kept)
        stats.after_energy_change = len(kept)

        kept = self.frequency_change_filter(kept)
        stats.after_frequency_change = len(kept)

        if self.config.remove_background_noise:
            kept = self.noise_floor_filter(kept)
        stats.after_noise_floor = len(kept)

        kept = [segment.with_index(i) for i, segment in enumerate(kept)]

        logger.debug(
            "Quality filter: %d -> %d -> %d -> %d -> %d",
            stats.original_count,
            stats.after_basic,
            stats.after_energy_change,
            stats.after_frequency_change,
            stats.after_noise_floor,
        )

        if return_stats:
            return kept, stats
        return kept

    def basic_threshold_filter(
        self, segments: Sequence[SyllableSegment]
    ) -> List[SyllableSegment]:
        """Keep confident, audible syllables of plausible length with a note."""
        cfg = self.config
        return [
            s for s in segments
            if s.confidence > cfg.min_confidence
            and s.energy > cfg.min_energy
            and cfg.min_duration <= s.duration <= cfg.max_duration
            and s.note is not None
        ]

    def energy_change_filter(
        self, segments: Sequence[SyllableSegment]
    ) -> List[SyllableSegment]:
        """Keep syllables whose energy or pitch moved enough.

        Energy is compared with the previous input syllable; pitch with the
        previous kept one.
        """
        if not segments:
            return []

        kept = [segments[0]]
        for previous, current in zip(segments[:-1], segments[1:]):
            change = abs(current.energy - previous.energy) / max(previous.energy, 0.01)
            if change >= self.config.energy_change_ratio:
                kept.append(current)
                continue

            last = kept[-1]
            if current.note is not None and last.note is not None:
                semitones = abs(current.note.midi_number - last.note.midi_number)
                if semitones >= self.config.min_semitone_change:
                    kept.append(current)
        return kept

    def frequency_change_filter(
        self, segments: Sequence[SyllableSegment]
    ) -> List[SyllableSegment]:
        """Drop syllables within min_frequency_change of the previous kept one."""
        kept: List[SyllableSegment] = []
        for segment in segments:
            if not kept or segment.note is None or kept[-1].note is None:
                kept.append(segment)
                continue

            difference = abs(segment.note.frequency - kept[-1].note.frequency)
            if difference >= self.config.min_frequency_change:
                kept.append(segment)
        return kept

    def noise_floor_filter(
        self, segments: Sequence[SyllableSegment]
    ) -> List[SyllableSegment]:
        """Keep syllables with energy at or above mean + one standard deviation."""
        if not segments:
            return []

        energies = np.array([s.energy for s in segments])
        floor = energies.mean() + energies.std()
        return [
            s for s, e in zip(segments, energies)
            if e >= floor or np.isclose(e, floor)
        ]
