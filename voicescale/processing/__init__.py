"""Processing layer - Syllable-level post-processing.

This layer cleans segmented syllables before scale matching:
- Confidence / energy / duration thresholds
- Redundant-neighbour removal (energy and pitch change)
- Statistical noise floor
"""

from .quality import QualityFilter, QualityFilterConfig, QualityFilterStats

__all__ = [
    "QualityFilter",
    "QualityFilterConfig",
    "QualityFilterStats",
]
