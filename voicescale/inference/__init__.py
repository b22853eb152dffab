"""Inference layer - Musical understanding from detected notes.

This layer turns pitch classes into musical suggestions:
- Scale library (built-in scales, queries, search)
- Scale recommendation (similarity, coverage, preferences)
- Contextual recommendation (history, mood blend, time, live voice, user profile)
- Scale transitions and harmonising scales

Pipeline: Notes → Pitch classes → [Scale ranking] → Recommendations
"""

from .scales import (
    Scale,
    ScaleType,
    ScaleMood,
    Genre,
    ScaleLibrary,
    ScaleSearchCriteria,
    BUILTIN_SCALES,
)
from .context import (
    ComplexMoodProfile,
    TimeContextProfile,
    TimeOfDay,
    Season,
    Occasion,
    RealTimeAnalysisData,
    VoiceQuality,
    UserMusicProfile,
    PracticeLevel,
)
from .recommend import (
    ScaleRecommender,
    RecommendationConfig,
    ScaleRecommendationResult,
    ScaleTransitionResult,
    TransitionTechnique,
    HarmonyScaleResult,
    HarmonyType,
)

__all__ = [
    # Scale library
    "Scale",
    "ScaleType",
    "ScaleMood",
    "Genre",
    "ScaleLibrary",
    "ScaleSearchCriteria",
    "BUILTIN_SCALES",
    # Context
    "ComplexMoodProfile",
    "TimeContextProfile",
    "TimeOfDay",
    "Season",
    "Occasion",
    "RealTimeAnalysisData",
    "VoiceQuality",
    "UserMusicProfile",
    "PracticeLevel",
    # Recommendation
    "ScaleRecommender",
    "RecommendationConfig",
    "ScaleRecommendationResult",
    "ScaleTransitionResult",
    "TransitionTechnique",
    "HarmonyScaleResult",
    "HarmonyType",
]
