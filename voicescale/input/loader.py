"""Audio loading and preprocessing utilities."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import librosa
import numpy as np

from ..core.constants import DEFAULT_SR
from ..core.errors import FileReadError

logger = logging.getLogger(__name__)


class AudioLoader:
    """Loads a recording as a mono float buffer in [-1, 1]."""

    SUPPORTED_FORMATS = {".wav", ".mp3", ".flac", ".ogg", ".m4a", ".aiff", ".aif"}

    def __init__(
        self,
        target_sr: int = DEFAULT_SR,
        mono: bool = True,
        normalize: bool = True,
    ):
        """
        Initialize AudioLoader.

        Args:
            target_sr: Target sample rate for resampling (None keeps the file's rate)
            mono: Downmix to mono if True
            normalize: Peak-normalize amplitude if True
        """
        self.target_sr = target_sr
        self.mono = mono
        self.normalize = normalize

    def load(self, path: str) -> Tuple[np.ndarray, int]:
        """
        Load an audio file.

        Args:
            path: Path to audio file

        Returns:
            Tuple of (samples, sample rate)

        Raises:
            ValueError: If the file format is not supported
            FileReadError: If the file is missing or cannot be decoded
        """
        path = Path(path)

        if not path.exists():
            raise FileReadError(f"Audio file not found: {path}")

        if path.suffix.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported format: {path.suffix}. "
                f"Supported: {sorted(self.SUPPORTED_FORMATS)}"
            )

        try:
            audio, sr = librosa.load(str(path), sr=self.target_sr, mono=self.mono)
        except Exception as e:
            raise FileReadError(f"Could not read {path}: {e}") from e

        audio = np.nan_to_num(audio.astype(np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        if self.normalize:
            audio = self._normalize(audio)

        logger.debug("Loaded %s: %d samples @ %d Hz", path.name, len(audio), sr)
        return audio, int(sr)

    def _normalize(self, audio: np.ndarray) -> np.ndarray:
        """Normalize audio to [-1, 1] range using peak normalization."""
        peak = np.abs(audio).max() if audio.size else 0.0
        if peak > 0:
            audio = audio / peak
        return audio

    def get_duration(self, audio: np.ndarray, sr: Optional[int] = None) -> float:
        """Get duration in seconds."""
        sr = sr or self.target_sr
        return len(audio) / sr
