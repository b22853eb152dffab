"""Spectral analysis - windowed FFT into FrequencyFrames."""

from typing import Iterable, Iterator, List, Optional

import numpy as np
from scipy.signal import get_window

from ..core.constants import DEFAULT_FFT_SIZE, DEFAULT_OVERLAP
from ..core.errors import InvalidAudioData, ProcessingFailed
from ..core.frame import FrequencyFrame


class SpectralAnalyzer:
    """Turns sample buffers into magnitude spectra.

    Each window is Hamming-weighted, transformed with a real FFT and
    normalized by the window length. Only the first N/2 bins are kept.
    """

    MAX_OVERLAP = 0.9

    def __init__(
        self,
        fft_size: int = DEFAULT_FFT_SIZE,
        overlap: float = DEFAULT_OVERLAP,
    ):
        """
        Initialize SpectralAnalyzer.

        Args:
            fft_size: Window length in samples (power of two)
            overlap: Fraction of overlap between windows (clamped to 0-0.9)
        """
        if fft_size < 2 or fft_size & (fft_size - 1) != 0:
            raise ValueError(f"fft_size must be a power of two, got {fft_size}")

        self.fft_size = int(fft_size)
        self.overlap = float(np.clip(overlap, 0.0, self.MAX_OVERLAP))
        self.hop_size = max(1, int(self.fft_size * (1.0 - self.overlap)))
        # Symmetric window: 0.54 - 0.46 cos(2 pi i / (N - 1))
        self._window = get_window("hamming", self.fft_size, fftbins=False)

    def frequency_bins(self, sample_rate: float) -> np.ndarray:
        """Center frequency of each kept bin."""
        return np.arange(self.fft_size // 2) * sample_rate / self.fft_size

    def analyze(
        self,
        samples: np.ndarray,
        sample_rate: float,
        timestamp: float = 0.0,
    ) -> FrequencyFrame:
        """
        Compute the magnitude spectrum of one window.

        Input shorter than the window is zero-padded, longer input is
        truncated.

        Args:
            samples: Mono samples
            sample_rate: Sample rate in Hz
            timestamp: Start time of the window in seconds

        Returns:
            FrequencyFrame for the window

        Raises:
            InvalidAudioData: Empty input or non-positive sample rate
            ProcessingFailed: The transform could not be computed
        """
        samples = np.asarray(samples, dtype=np.float64).ravel()
        if samples.size == 0:
            raise InvalidAudioData("Cannot analyze an empty buffer")
        if not sample_rate > 0:
            raise InvalidAudioData(f"Sample rate must be positive, got {sample_rate}")

        return self._analyze_window(samples, sample_rate, timestamp)

    def analyze_segments(
        self,
        samples: np.ndarray,
        sample_rate: float,
        valid_only: bool = False,
        start_time: float = 0.0,
    ) -> Iterator[FrequencyFrame]:
        """
        Lazily analyze every full hop-spaced window of a recording.

        Input is validated immediately; frames are computed on demand.
        Each call returns an independent iterator.

        Args:
            samples: Mono samples
            sample_rate: Sample rate in Hz
            valid_only: Skip frames that do not carry a voiced pitch
            start_time: Time of the first sample, added to frame timestamps

        Returns:
            Iterator of FrequencyFrames in timestamp order
        """
        samples = np.asarray(samples, dtype=np.float64).ravel()
        if samples.size == 0:
            raise InvalidAudioData("Cannot analyze an empty buffer")
        if not sample_rate > 0:
            raise InvalidAudioData(f"Sample rate must be positive, got {sample_rate}")

        return self._iter_frames(samples, sample_rate, valid_only, start_time)

    def _iter_frames(
        self,
        samples: np.ndarray,
        sample_rate: float,
        valid_only: bool,
        start_time: float,
    ) -> Iterator[FrequencyFrame]:
        last_start = len(samples) - self.fft_size
        for start in range(0, last_start + 1, self.hop_size):
            frame = self._analyze_window(
                samples[start:start + self.fft_size],
                sample_rate,
                start_time + start / sample_rate,
            )
            if valid_only and not frame.is_valid_signal:
                continue
            yield frame

    def _analyze_window(
        self, samples: np.ndarray, sample_rate: float, timestamp: float
    ) -> FrequencyFrame:
        n = self.fft_size
        if samples.size < n:
            samples = np.pad(samples, (0, n - samples.size))
        else:
            samples = samples[:n]

        try:
            with np.errstate(invalid="ignore", over="ignore"):
                spectrum = np.fft.rfft(samples * self._window)
        except (ValueError, TypeError, MemoryError) as e:
            raise ProcessingFailed(f"FFT failed: {e}") from e

        magnitudes = np.abs(spectrum[: n // 2]) / n
        magnitudes = np.nan_to_num(magnitudes, nan=0.0, posinf=0.0, neginf=0.0)

        return FrequencyFrame(
            frequencies=self.frequency_bins(sample_rate),
            magnitudes=magnitudes,
            sample_rate=sample_rate,
            window_size=n,
            timestamp=timestamp,
        )


def filter_noise(
    frames: Iterable[FrequencyFrame], threshold: float = 0.01
) -> List[FrequencyFrame]:
    """Drop frames whose peak is missing or not above threshold."""
    kept = []
    for frame in frames:
        peak = frame.peak_magnitude
        if peak is not None and peak > threshold:
            kept.append(frame)
    return kept


def restrict_range(
    frames: Iterable[FrequencyFrame], low: float = 10.0, high: float = 20000.0
) -> List[FrequencyFrame]:
    """Restrict every frame to bins inside [low, high]; frames with no bins are dropped."""
    restricted = []
    for frame in frames:
        mask = (frame.frequencies >= low) & (frame.frequencies <= high)
        if mask.any():
            restricted.append(frame.restricted(low, high))
    return restricted


def average_peak_frequency(frames: Iterable[FrequencyFrame]) -> Optional[float]:
    """Mean peak frequency over frames that have a peak."""
    peaks = [f.peak_frequency for f in frames if f.peak_frequency is not None]
    if not peaks:
        return None
    return float(np.mean(peaks))
