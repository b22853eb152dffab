"""Exception classes for voicescale."""


class AnalysisError(Exception):
    """Base exception for audio analysis failures."""

    pass


class InvalidAudioData(AnalysisError):
    """Samples are empty or malformed, or the sample rate is not positive."""

    pass


class InsufficientData(AnalysisError):
    """Too little signal, or too few notes, to analyze meaningfully."""

    pass


class AnalysisTimeout(AnalysisError):
    """Batch analysis exceeded the caller's time budget."""

    pass


class AnalysisCancelled(AnalysisError):
    """Batch analysis was cancelled by the caller."""

    pass


class ProcessingFailed(AnalysisError):
    """Internal numerical failure, e.g. the transform could not execute."""

    pass


class FileReadError(AnalysisError):
    """Audio file could not be found or read."""

    pass


class ScaleNotFound(LookupError):
    """No scale with the requested id exists in the library."""

    pass
