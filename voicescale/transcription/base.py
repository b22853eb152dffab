"""Base classes for transcription."""

from abc import ABC, abstractmethod
from typing import List

import numpy as np
import librosa

from ..core import Note
from ..core.errors import InvalidAudioData


class Transcriber(ABC):
    """Abstract base class for audio-to-note transcription."""

    @abstractmethod
    def transcribe(self, audio: np.ndarray, sr: int) -> List[Note]:
        """
        Transcribe audio to notes.

        Args:
            audio: Audio array
            sr: Sample rate

        Returns:
            List of detected notes in time order
        """
        pass


def prepare_audio(audio: np.ndarray, sr: float) -> np.ndarray:
    """
    Validate a recording and return it as finite mono float64 samples.

    Multi-channel input (channels first) is averaged to mono. NaN and
    infinite samples are replaced by silence.

    Raises:
        InvalidAudioData: Empty input, no finite sample, or sr <= 0
    """
    if not sr > 0:
        raise InvalidAudioData(f"Sample rate must be positive, got {sr}")

    samples = np.asarray(audio, dtype=np.float64)
    if samples.size == 0:
        raise InvalidAudioData("Audio is empty")
    if not np.isfinite(samples).any():
        raise InvalidAudioData("Audio contains no finite samples")

    # librosa rejects non-finite input, so clean before mixing down
    samples = np.nan_to_num(samples, nan=0.0, posinf=0.0, neginf=0.0)
    if samples.ndim > 1:
        samples = librosa.to_mono(samples)
    return samples.ravel()
