"""Scale recommendation - rank library scales against detected pitch classes.

Base scoring combines Jaccard similarity, coverage of the input, scale
completeness, a complexity preference and mood/genre preferences.
Contextual variants blend the base confidence with an extra score
(listening history, mood blend, time of day, live voice data, user
profile). Transitions and harmony compare pairs of scales instead.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.constants import INTERVAL_NAMES
from ..core.errors import InsufficientData
from ..core.frame import FrequencyFrame
from ..core.note import Note, as_optional, note_from_frequency
from .context import (
    ComplexMoodProfile,
    RealTimeAnalysisData,
    TimeContextProfile,
    UserMusicProfile,
)
from .scales import Genre, Scale, ScaleLibrary, ScaleMood, ScaleType

logger = logging.getLogger(__name__)

MIN_PITCH_CLASSES = 2

# Bonus per complexity level; mid-range scales are the most usable
COMPLEXITY_BONUS: Dict[int, float] = {1: 0.7, 2: 0.85, 3: 1.0, 4: 1.0, 5: 0.6}

# Mood pairs that pull in opposite directions
CONFLICTING_MOODS = (
    frozenset({ScaleMood.BRIGHT, ScaleMood.DARK}),
    frozenset({ScaleMood.ENERGETIC, ScaleMood.PEACEFUL}),
    frozenset({ScaleMood.MELANCHOLIC, ScaleMood.BRIGHT}),
)


@dataclass(frozen=True)
class RecommendationConfig:
    """Filters and preferences for a recommendation call.

    Attributes:
        max_results: Maximum scales returned (default: 5)
        min_similarity: Minimum Jaccard similarity (default: 0.3)
        preferred_mood: Only this mood (or neutral) is returned when set
        preferred_genres: Genres that earn a preference bonus
        complexity_range: Inclusive (low, high) complexity filter (default: (1, 5))
    """

    max_results: int = 5
    min_similarity: float = 0.3
    preferred_mood: Optional[ScaleMood] = None
    preferred_genres: Tuple[Genre, ...] = ()
    complexity_range: Tuple[int, int] = (1, 5)

    def __post_init__(self):
        if self.max_results < 0:
            raise ValueError(f"max_results must be >= 0, got {self.max_results}")

    @classmethod
    def for_mood(cls, mood: ScaleMood) -> "RecommendationConfig":
        return cls(preferred_mood=mood)

    @classmethod
    def for_genres(cls, genres: Iterable[Genre]) -> "RecommendationConfig":
        return cls(preferred_genres=tuple(genres))


@dataclass(frozen=True)
class ScaleRecommendationResult:
    """A scored scale candidate."""

    scale: Scale
    similarity: float  # Jaccard, 0.0 - 1.0
    confidence: float  # Overall score, 0.0 - 1.0
    matching_notes: Tuple[int, ...]  # Input pitch classes found in the scale
    coverage: float  # Share of input pitch classes in the scale
    complex_mood_score: Optional[float] = None
    time_context_score: Optional[float] = None
    realtime_score: Optional[float] = None
    personalization_score: Optional[float] = None


class TransitionTechnique(Enum):
    """How to move from one scale to another."""
    DIRECT_MODULATION = "direct_modulation"
    PIVOT_CHORD = "pivot_chord"
    CHROMATIC = "chromatic"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class ScaleTransitionResult:
    target_scale: Scale
    difficulty: float  # 0.0 (easy) - 1.0
    shared_notes: Tuple[int, ...]
    technique: TransitionTechnique


class HarmonyType(Enum):
    PARALLEL = "parallel"
    CONTRARY = "contrary"
    COMPLEMENTARY = "complementary"
    MODAL = "modal"


@dataclass(frozen=True)
class HarmonyScaleResult:
    scale: Scale
    harmony_score: float  # 0.0 - 1.0
    harmony_type: HarmonyType
    interval_relation: str


def _by_confidence(results: List[ScaleRecommendationResult]) -> List[ScaleRecommendationResult]:
    # sorted() is stable, so ties keep library order
    return sorted(results, key=lambda r: r.confidence, reverse=True)


class ScaleRecommender:
    """Stateless scale ranking over a read-only ScaleLibrary."""

    def __init__(self, library: Optional[ScaleLibrary] = None):
        self.library = library or ScaleLibrary()

    def recommend(
        self,
        pitch_classes: Iterable[int],
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """
        Rank scales against a set of pitch classes.

        Args:
            pitch_classes: Detected pitch classes (any integers; taken mod 12)
            config: Filters and preferences (default: RecommendationConfig())

        Returns:
            Results sorted by descending confidence, at most max_results

        Raises:
            InsufficientData: Fewer than two distinct pitch classes
        """
        config = config or RecommendationConfig()
        classes = sorted({int(p) % 12 for p in pitch_classes})
        if len(classes) < MIN_PITCH_CLASSES:
            raise InsufficientData(
                f"Need at least {MIN_PITCH_CLASSES} distinct pitch classes, got {len(classes)}"
            )

        low, high = config.complexity_range
        results = [
            result
            for result in (self._score(scale, classes, config) for scale in self.library)
            if result.similarity >= config.min_similarity
            and low <= result.scale.complexity <= high
            and self._mood_allowed(result.scale, config)
        ]

        ranked = _by_confidence(results)[: config.max_results]
        logger.debug(
            "Recommended %d of %d scales for pitch classes %s",
            len(ranked),
            len(self.library),
            classes,
        )
        return ranked

    def recommend_from_notes(
        self,
        notes: Sequence[Note],
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        return self.recommend([n.pitch_class for n in notes], config)

    def recommend_from_frames(
        self,
        frames: Sequence[FrequencyFrame],
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """Recommend from the spectral peaks of frames; frames without a peak are ignored."""
        notes = []
        for frame in frames:
            peak = frame.peak_frequency
            if peak is None:
                continue
            amplitude = float(np.clip(frame.peak_magnitude / 100.0, 0.0, 1.0))
            note = as_optional(note_from_frequency(peak, 1.0, amplitude))
            if note is not None:
                notes.append(note)
        return self.recommend_from_notes(notes, config)

    def recommend_with_history(
        self,
        pitch_classes: Iterable[int],
        history_ids: Sequence[str],
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """
        Boost scales resembling previously chosen ones.

        +0.2 for a type seen in history, +0.15 for a mood seen in history
        and up to +0.1 for complexity close to the history average.
        Unknown ids are ignored.
        """
        base = self.recommend(pitch_classes, config)

        history = [s for s in (self.library.get(i) for i in history_ids) if s is not None]
        seen_types = {s.type for s in history}
        seen_moods = {s.mood for s in history}
        average_complexity = (
            float(np.mean([s.complexity for s in history])) if history else 3.0
        )

        boosted = []
        for result in base:
            confidence = result.confidence
            if result.scale.type in seen_types:
                confidence += 0.2
            if result.scale.mood in seen_moods:
                confidence += 0.15
            distance = abs(result.scale.complexity - average_complexity)
            confidence += max(0.0, 0.1 - 0.05 * distance)
            boosted.append(replace(result, confidence=min(1.0, confidence)))

        return _by_confidence(boosted)

    def recommend_with_mood_profile(
        self,
        pitch_classes: Iterable[int],
        profile: ComplexMoodProfile,
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """Blend 70% base confidence with 30% mood-profile fit."""
        results = []
        for result in self.recommend(pitch_classes, config):
            mood_score = self.mood_profile_score(result.scale, profile)
            results.append(
                replace(
                    result,
                    confidence=0.7 * result.confidence + 0.3 * mood_score,
                    complex_mood_score=mood_score,
                )
            )
        return _by_confidence(results)

    def recommend_with_time_context(
        self,
        pitch_classes: Iterable[int],
        context: TimeContextProfile,
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """Blend 80% base confidence with 20% time-context fit."""
        results = []
        for result in self.recommend(pitch_classes, config):
            score = context.score(result.scale.mood)
            results.append(
                replace(
                    result,
                    confidence=0.8 * result.confidence + 0.2 * score,
                    time_context_score=score,
                )
            )
        return _by_confidence(results)

    def recommend_with_realtime_data(
        self,
        pitch_classes: Iterable[int],
        data: RealTimeAnalysisData,
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """Blend 75% base confidence with 25% live voice fit."""
        results = []
        for result in self.recommend(pitch_classes, config):
            score = data.score(result.scale.mood)
            results.append(
                replace(
                    result,
                    confidence=0.75 * result.confidence + 0.25 * score,
                    realtime_score=score,
                )
            )
        return _by_confidence(results)

    def recommend_personalized(
        self,
        pitch_classes: Iterable[int],
        profile: UserMusicProfile,
        config: Optional[RecommendationConfig] = None,
    ) -> List[ScaleRecommendationResult]:
        """Blend 60% base confidence with 40% profile weight, within the profile's complexity range."""
        results = []
        for result in self.recommend(pitch_classes, config):
            if not profile.prefers_complexity(result.scale.complexity):
                continue
            score = min(1.0, profile.weight(result.scale) / 2.0)
            results.append(
                replace(
                    result,
                    confidence=0.6 * result.confidence + 0.4 * score,
                    personalization_score=score,
                )
            )
        return _by_confidence(results)

    def recommend_transitions(
        self,
        current: Scale,
        target_mood: ScaleMood,
        max_results: int = 5,
    ) -> List[ScaleTransitionResult]:
        """
        Scales of the target mood, easiest transition first.

        Difficulty falls with the share of common notes (weight 0.7) and
        with similar complexity (weight 0.3).
        """
        transitions = []
        for target in self.library.by_mood(target_mood):
            if target.id == current.id:
                continue

            shared = tuple(sorted(set(current.intervals) & set(target.intervals)))
            shared_ratio = len(shared) / max(current.note_count, target.note_count, 1)
            complexity_gap = abs(current.complexity - target.complexity)
            difficulty = (
                1.0
                - 0.7 * shared_ratio
                - 0.3 * max(0.0, 1.0 - complexity_gap / 5.0)
            )

            if len(shared) >= 4:
                technique = TransitionTechnique.PIVOT_CHORD
            elif len(shared) >= 2:
                technique = TransitionTechnique.SEQUENTIAL
            elif complexity_gap <= 1:
                technique = TransitionTechnique.CHROMATIC
            else:
                technique = TransitionTechnique.DIRECT_MODULATION

            transitions.append(
                ScaleTransitionResult(
                    target_scale=target,
                    difficulty=float(np.clip(difficulty, 0.0, 1.0)),
                    shared_notes=shared,
                    technique=technique,
                )
            )

        transitions.sort(key=lambda t: t.difficulty)
        return transitions[:max_results]

    def recommend_harmony(
        self,
        base: Scale,
        max_results: int = 5,
    ) -> List[HarmonyScaleResult]:
        """
        Scales that complement base, best first.

        Score is 0.6 x combined chromatic coverage + 0.4 x (1 - overlap);
        only scores above 0.3 are returned.
        """
        base_set = set(base.intervals)
        harmonies = []
        for scale in self.library:
            if scale.id == base.id:
                continue

            other = set(scale.intervals)
            smaller = max(1, min(len(base_set), len(other)))
            overlap = len(base_set & other) / smaller
            score = float(np.clip(
                0.6 * len(base_set | other) / 12.0 + 0.4 * (1.0 - overlap), 0.0, 1.0
            ))
            if score <= 0.3:
                continue

            if overlap > 0.6:
                harmony_type = HarmonyType.PARALLEL
            elif overlap < 0.3:
                harmony_type = HarmonyType.CONTRARY
            elif ScaleType.MODAL in (base.type, scale.type):
                harmony_type = HarmonyType.MODAL
            else:
                harmony_type = HarmonyType.COMPLEMENTARY

            root = scale.intervals[0] if scale.intervals else 0
            harmonies.append(
                HarmonyScaleResult(
                    scale=scale,
                    harmony_score=score,
                    harmony_type=harmony_type,
                    interval_relation=INTERVAL_NAMES[root % 12],
                )
            )

        harmonies.sort(key=lambda h: h.harmony_score, reverse=True)
        return harmonies[:max_results]

    @staticmethod
    def mood_profile_score(scale: Scale, profile: ComplexMoodProfile) -> float:
        """Primary match 0.7 x intensity, secondary 0.3 x intensity, damped for conflicting pairs."""
        score = 0.0
        if scale.mood == profile.primary_mood:
            score += 0.7 * profile.intensity
        if scale.mood == profile.secondary_mood:
            score += 0.3 * profile.intensity

        pair = frozenset({profile.primary_mood, profile.secondary_mood})
        if pair in CONFLICTING_MOODS and scale.mood in pair:
            score *= 0.7
        return float(np.clip(score, 0.0, 1.0))

    @staticmethod
    def complexity_bonus(complexity: int) -> float:
        return COMPLEXITY_BONUS.get(complexity, 0.5)

    @staticmethod
    def preference_bonus(scale: Scale, config: RecommendationConfig) -> float:
        """0.5 for the preferred mood plus 0.5 for any preferred genre, capped at 1."""
        bonus = 0.0
        if config.preferred_mood is not None and scale.mood == config.preferred_mood:
            bonus += 0.5
        if config.preferred_genres and scale.genres & frozenset(config.preferred_genres):
            bonus += 0.5
        return min(1.0, bonus)

    @staticmethod
    def _mood_allowed(scale: Scale, config: RecommendationConfig) -> bool:
        if config.preferred_mood is None:
            return True
        return scale.mood == config.preferred_mood or scale.mood == ScaleMood.NEUTRAL

    def _score(
        self,
        scale: Scale,
        classes: List[int],
        config: RecommendationConfig,
    ) -> ScaleRecommendationResult:
        similarity = scale.similarity(classes)
        matching = tuple(c for c in classes if scale.contains(c))
        coverage = len(matching) / len(classes)

        confidence = (
            0.4 * similarity
            + 0.3 * coverage
            + (0.1 if scale.is_complete else 0.0)
            + 0.1 * self.complexity_bonus(scale.complexity)
            + 0.1 * self.preference_bonus(scale, config)
        )
        return ScaleRecommendationResult(
            scale=scale,
            similarity=similarity,
            confidence=float(np.clip(confidence, 0.0, 1.0)),
            matching_notes=matching,
            coverage=coverage,
        )
