"""Listener and situation context used to bias scale recommendations."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Tuple

import numpy as np

from .scales import Genre, Scale, ScaleMood


@dataclass(frozen=True)
class ComplexMoodProfile:
    """A blend of two moods at a given intensity."""

    primary_mood: ScaleMood
    secondary_mood: ScaleMood
    intensity: float = 0.5  # 0.0 - 1.0 (clamped)

    def __post_init__(self):
        object.__setattr__(self, "intensity", float(np.clip(self.intensity, 0.0, 1.0)))

    @property
    def description(self) -> str:
        if self.intensity > 0.7:
            strength = "strongly"
        elif self.intensity > 0.4:
            strength = "moderately"
        else:
            strength = "slightly"
        return f"{strength} {self.primary_mood.value} and {self.secondary_mood.value}"


class TimeOfDay(Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    LATE_NIGHT = "late_night"


class Season(Enum):
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"


class Occasion(Enum):
    CASUAL = "casual"
    WORK = "work"
    STUDY = "study"
    RELAXATION = "relaxation"
    EXERCISE = "exercise"
    CREATIVE = "creative"


TIME_OF_DAY_MOODS: Dict[TimeOfDay, Tuple[ScaleMood, ...]] = {
    TimeOfDay.MORNING: (ScaleMood.BRIGHT, ScaleMood.ENERGETIC, ScaleMood.PEACEFUL),
    TimeOfDay.AFTERNOON: (ScaleMood.NEUTRAL, ScaleMood.ENERGETIC),
    TimeOfDay.EVENING: (ScaleMood.PEACEFUL, ScaleMood.MYSTERIOUS),
    TimeOfDay.NIGHT: (ScaleMood.DARK, ScaleMood.MELANCHOLIC, ScaleMood.MYSTERIOUS),
    TimeOfDay.LATE_NIGHT: (ScaleMood.DARK, ScaleMood.PEACEFUL),
}

SEASON_MOODS: Dict[Season, Tuple[ScaleMood, ...]] = {
    Season.SPRING: (ScaleMood.BRIGHT, ScaleMood.PEACEFUL),
    Season.SUMMER: (ScaleMood.ENERGETIC, ScaleMood.BRIGHT),
    Season.AUTUMN: (ScaleMood.MELANCHOLIC, ScaleMood.PEACEFUL),
    Season.WINTER: (ScaleMood.DARK, ScaleMood.MYSTERIOUS),
}

OCCASION_MOODS: Dict[Occasion, Tuple[ScaleMood, ...]] = {
    Occasion.CASUAL: (ScaleMood.NEUTRAL, ScaleMood.PEACEFUL),
    Occasion.WORK: (ScaleMood.NEUTRAL, ScaleMood.ENERGETIC),
    Occasion.STUDY: (ScaleMood.PEACEFUL, ScaleMood.NEUTRAL),
    Occasion.RELAXATION: (ScaleMood.PEACEFUL, ScaleMood.MELANCHOLIC),
    Occasion.EXERCISE: (ScaleMood.ENERGETIC, ScaleMood.BRIGHT),
    Occasion.CREATIVE: (ScaleMood.MYSTERIOUS, ScaleMood.EXOTIC),
}


@dataclass(frozen=True)
class TimeContextProfile:
    """When and why the listener is playing."""

    time_of_day: TimeOfDay
    season: Season
    occasion: Occasion

    def score(self, mood: ScaleMood) -> float:
        """Weighted mood fit: time of day 0.4, season 0.3, occasion 0.3."""
        score = 0.0
        if mood in TIME_OF_DAY_MOODS[self.time_of_day]:
            score += 0.4
        if mood in SEASON_MOODS[self.season]:
            score += 0.3
        if mood in OCCASION_MOODS[self.occasion]:
            score += 0.3
        return min(1.0, score)


class VoiceQuality(Enum):
    CLEAR = "clear"
    ROUGH = "rough"
    BREATHY = "breathy"
    NASAL = "nasal"
    DEEP = "deep"
    HIGH = "high"


VOICE_QUALITY_MOODS: Dict[VoiceQuality, Tuple[ScaleMood, ...]] = {
    VoiceQuality.CLEAR: (ScaleMood.BRIGHT, ScaleMood.PEACEFUL),
    VoiceQuality.ROUGH: (ScaleMood.ENERGETIC, ScaleMood.DARK),
    VoiceQuality.BREATHY: (ScaleMood.PEACEFUL, ScaleMood.MYSTERIOUS),
    VoiceQuality.NASAL: (ScaleMood.NEUTRAL,),
    VoiceQuality.DEEP: (ScaleMood.DARK, ScaleMood.MELANCHOLIC),
    VoiceQuality.HIGH: (ScaleMood.BRIGHT, ScaleMood.ENERGETIC),
}


@dataclass(frozen=True)
class RealTimeAnalysisData:
    """Live measurements of the singer's voice."""

    average_amplitude: float  # 0.0 - 1.0
    amplitude_variation: float  # 0.0 - 1.0
    frequency_stability: float  # 0.0 - 1.0
    speech_rate: float  # Words per minute
    pause_duration: float  # Mean pause, seconds
    voice_quality: VoiceQuality = VoiceQuality.CLEAR

    @property
    def suggested_mood(self) -> ScaleMood:
        """Mood implied by loudness, variation and pace."""
        if self.average_amplitude > 0.7 and self.amplitude_variation > 0.5:
            return ScaleMood.ENERGETIC
        elif self.average_amplitude < 0.3 and self.frequency_stability > 0.8:
            return ScaleMood.PEACEFUL
        elif self.amplitude_variation > 0.6:
            return ScaleMood.MYSTERIOUS
        elif self.speech_rate < 100:
            return ScaleMood.MELANCHOLIC
        moods = VOICE_QUALITY_MOODS[self.voice_quality]
        return moods[0] if moods else ScaleMood.NEUTRAL

    def score(self, mood: ScaleMood) -> float:
        """Voice-quality mood match 0.4, suggested mood match 0.6."""
        score = 0.0
        if mood in VOICE_QUALITY_MOODS[self.voice_quality]:
            score += 0.4
        if mood == self.suggested_mood:
            score += 0.6
        return min(1.0, score)


class PracticeLevel(Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    PROFESSIONAL = "professional"


PRACTICE_LEVEL_COMPLEXITY: Dict[PracticeLevel, Tuple[int, int]] = {
    PracticeLevel.BEGINNER: (1, 2),
    PracticeLevel.INTERMEDIATE: (2, 3),
    PracticeLevel.ADVANCED: (3, 4),
    PracticeLevel.PROFESSIONAL: (3, 5),
}


@dataclass(frozen=True)
class UserMusicProfile:
    """Long-term listener preferences."""

    favorite_genres: FrozenSet[Genre] = frozenset()
    preferred_complexity: Tuple[int, int] = (1, 5)  # Inclusive range
    # (mood, 0.0 - 1.0) pairs; a mapping is accepted and frozen into pairs
    mood_preferences: Tuple[Tuple[ScaleMood, float], ...] = ()
    practice_level: PracticeLevel = PracticeLevel.INTERMEDIATE

    def __post_init__(self):
        pairs = dict(self.mood_preferences)
        object.__setattr__(self, "favorite_genres", frozenset(self.favorite_genres))
        object.__setattr__(self, "preferred_complexity", tuple(self.preferred_complexity))
        object.__setattr__(
            self,
            "mood_preferences",
            tuple((mood, float(pairs[mood])) for mood in ScaleMood if mood in pairs),
        )

    def mood_preference(self, mood: ScaleMood) -> float:
        return dict(self.mood_preferences).get(mood, 0.0)

    def prefers_complexity(self, complexity: int) -> bool:
        low, high = self.preferred_complexity
        return low <= complexity <= high

    def weight(self, scale: Scale) -> float:
        """
        Preference weight for a scale (>= 0, typically 0.9 - 2.0).

        Starts at 1.0: +0.3 favourite genre, +0.2 preferred complexity,
        +0.3 x mood preference, then +0.2 / -0.1 depending on whether the
        complexity suits the practice level.
        """
        weight = 1.0
        if scale.genres & self.favorite_genres:
            weight += 0.3
        if self.prefers_complexity(scale.complexity):
            weight += 0.2
        weight += 0.3 * self.mood_preference(scale.mood)

        low, high = PRACTICE_LEVEL_COMPLEXITY[self.practice_level]
        weight += 0.2 if low <= scale.complexity <= high else -0.1
        return max(0.0, weight)
