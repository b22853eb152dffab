"""Transcription layer - Note-level detection from voice.

This layer converts voice recordings into discrete notes:
- Batch syllable transcription (VAD, segmentation, quality filter)
- Analysis results with quality grading and scale-matching data
- Realtime single-buffer sessions
"""

from .base import Transcriber, prepare_audio
from .syllabic import (
    PipelineConfig,
    SyllableTranscriber,
    AnalysisResult,
    AnalysisMetadata,
    OverallQualityGrade,
    RealtimeSession,
)

__all__ = [
    "Transcriber",
    "prepare_audio",
    "PipelineConfig",
    "SyllableTranscriber",
    "AnalysisResult",
    "AnalysisMetadata",
    "OverallQualityGrade",
    "RealtimeSession",
]
