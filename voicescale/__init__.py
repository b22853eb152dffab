"""voicescale - Voice to Notes to Scale Recommendation.

Architecture Layers:
    1. core/          - Notes, spectral frames, syllable segments, errors
    2. input/         - Audio loading
    3. analysis/      - Spectral frames, voice activity, syllable boundaries
    4. processing/    - Syllable quality filtering
    5. transcription/ - Batch and realtime voice-to-note pipelines
    6. inference/     - Scale library and recommendation
"""

__version__ = "0.1.0"

# Core types
from .core import Note, FrequencyFrame, SyllableSegment, AnalysisError

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import SpectralAnalyzer, VoiceActivityDetector, SyllableSegmenter

# Processing layer
from .processing import QualityFilter

# Transcription layer
from .transcription import (
    PipelineConfig,
    SyllableTranscriber,
    AnalysisResult,
    RealtimeSession,
)

# Inference layer
from .inference import ScaleLibrary, ScaleRecommender, RecommendationConfig

__all__ = [
    # Core
    "Note",
    "FrequencyFrame",
    "SyllableSegment",
    "AnalysisError",
    # Input
    "AudioLoader",
    # Analysis
    "SpectralAnalyzer",
    "VoiceActivityDetector",
    "SyllableSegmenter",
    # Processing
    "QualityFilter",
    # Transcription
    "PipelineConfig",
    "SyllableTranscriber",
    "AnalysisResult",
    "RealtimeSession",
    # Inference
    "ScaleLibrary",
    "ScaleRecommender",
    "RecommendationConfig",
]
