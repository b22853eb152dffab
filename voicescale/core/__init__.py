"""Core types and constants for voicescale."""

from .note import (
    Note,
    NoteFound,
    NoteNotFound,
    NoteLookup,
    AccuracyGrade,
    as_optional,
    note_from_frequency,
    note_from_midi,
    note_from_name,
    peak_confidence,
)
from .frame import FrequencyFrame
from .segment import SyllableSegment, SegmentKind, QualityGrade
from .errors import (
    AnalysisError,
    InvalidAudioData,
    InsufficientData,
    AnalysisTimeout,
    AnalysisCancelled,
    ProcessingFailed,
    FileReadError,
    ScaleNotFound,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_FFT_SIZE,
    DEFAULT_OVERLAP,
)

__all__ = [
    "Note",
    "NoteFound",
    "NoteNotFound",
    "NoteLookup",
    "AccuracyGrade",
    "as_optional",
    "note_from_frequency",
    "note_from_midi",
    "note_from_name",
    "peak_confidence",
    "FrequencyFrame",
    "SyllableSegment",
    "SegmentKind",
    "QualityGrade",
    "AnalysisError",
    "InvalidAudioData",
    "InsufficientData",
    "AnalysisTimeout",
    "AnalysisCancelled",
    "ProcessingFailed",
    "FileReadError",
    "ScaleNotFound",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_FFT_SIZE",
    "DEFAULT_OVERLAP",
]
