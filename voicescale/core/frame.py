"""FrequencyFrame - magnitude spectrum of one analysis window."""

from dataclasses import dataclass
from functools import cached_property
from typing import Optional

import numpy as np

from .constants import (
    PEAK_MIN_FREQ,
    PEAK_MAX_FREQ,
    VOICE_MIN_FREQ,
    VOICE_MAX_FREQ,
    MIN_PEAK_MAGNITUDE,
    MIN_TOTAL_MAGNITUDE,
)
from .errors import InvalidAudioData


@dataclass(frozen=True, eq=False)
class FrequencyFrame:
    """Magnitude spectrum of a single analysis window.

    Frames are created once per window and never mutated. Peak lookups
    ignore near-DC bins (<= 5 Hz) and ultrasonic bins (>= 20 kHz).
    """

    frequencies: np.ndarray  # Bin center frequencies (Hz)
    magnitudes: np.ndarray  # Bin magnitudes, index-aligned with frequencies
    sample_rate: float
    window_size: int
    timestamp: float = 0.0  # Window start, seconds from start of input

    def __post_init__(self):
        frequencies = np.asarray(self.frequencies, dtype=np.float64)
        magnitudes = np.asarray(self.magnitudes, dtype=np.float64)

        if frequencies.ndim != 1 or frequencies.size == 0:
            raise InvalidAudioData("Frame needs a non-empty 1-D frequency axis")
        if frequencies.shape != magnitudes.shape:
            raise InvalidAudioData(
                f"Frequency/magnitude length mismatch: "
                f"{frequencies.size} != {magnitudes.size}"
            )
        if self.sample_rate <= 0 or self.window_size <= 0:
            raise InvalidAudioData(
                f"Invalid frame geometry: sr={self.sample_rate}, "
                f"window={self.window_size}"
            )

        object.__setattr__(self, "frequencies", frequencies)
        object.__setattr__(self, "magnitudes", magnitudes)

    @cached_property
    def peak_index(self) -> Optional[int]:
        """Index of the strongest bin inside the peak search band."""
        band = np.flatnonzero(
            (self.frequencies > PEAK_MIN_FREQ) & (self.frequencies < PEAK_MAX_FREQ)
        )
        if band.size == 0:
            return None

        index = int(band[np.argmax(self.magnitudes[band])])
        if not self.magnitudes[index] > 0:
            return None
        return index

    @property
    def peak_frequency(self) -> Optional[float]:
        """Frequency of the spectral peak in Hz, or None without a peak."""
        index = self.peak_index
        return None if index is None else float(self.frequencies[index])

    @property
    def peak_magnitude(self) -> Optional[float]:
        """Magnitude of the spectral peak, or None without a peak."""
        index = self.peak_index
        return None if index is None else float(self.magnitudes[index])

    @property
    def total_magnitude(self) -> float:
        """Sum of all bin magnitudes."""
        return float(self.magnitudes.sum())

    @property
    def duration(self) -> float:
        """Window length in seconds."""
        return self.window_size / self.sample_rate

    @property
    def is_valid_signal(self) -> bool:
        """True if the frame carries a usable voiced pitch."""
        peak_freq = self.peak_frequency
        if peak_freq is None:
            return False

        in_voice_range = VOICE_MIN_FREQ <= peak_freq <= VOICE_MAX_FREQ
        return (
            in_voice_range
            and self.peak_magnitude > MIN_PEAK_MAGNITUDE
            and self.total_magnitude > MIN_TOTAL_MAGNITUDE
        )

    def average_magnitude(self, low: float, high: float) -> float:
        """Mean magnitude of bins with low <= frequency <= high."""
        mask = (self.frequencies >= low) & (self.frequencies <= high)
        if not mask.any():
            return 0.0
        return float(self.magnitudes[mask].mean())

    def restricted(self, low: float, high: float) -> "FrequencyFrame":
        """Copy of this frame keeping only bins inside [low, high].

        Raises:
            InvalidAudioData: If no bin falls inside the band
        """
        mask = (self.frequencies >= low) & (self.frequencies <= high)
        return FrequencyFrame(
            frequencies=self.frequencies[mask],
            magnitudes=self.magnitudes[mask],
            sample_rate=self.sample_rate,
            window_size=self.window_size,
            timestamp=self.timestamp,
        )
