"""Analysis layer - Low-level signal analysis.

This layer turns raw samples into structure:
- Spectral frames (windowed FFT, peak extraction)
- Voice activity detection (energy / ZCR / flux with hangover)
- Syllable segmentation inside speech segments
"""

from .spectral import SpectralAnalyzer, filter_noise, restrict_range, average_peak_frequency
from .vad import (
    VADConfig,
    VADState,
    VADFrameResult,
    VADSegment,
    VoiceActivityDetector,
    vad_step,
    speech_ratio,
)
from .segmentation import (
    SegmentationConfig,
    SegmentationMethod,
    SegmentationResult,
    SyllableSegmenter,
)

__all__ = [
    # Spectral
    "SpectralAnalyzer",
    "filter_noise",
    "restrict_range",
    "average_peak_frequency",
    # Voice activity
    "VADConfig",
    "VADState",
    "VADFrameResult",
    "VADSegment",
    "VoiceActivityDetector",
    "vad_step",
    "speech_ratio",
    # Segmentation
    "SegmentationConfig",
    "SegmentationMethod",
    "SegmentationResult",
    "SyllableSegmenter",
]
