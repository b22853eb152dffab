"""Frame-level audio features for voice activity detection and segmentation."""

from typing import Optional, Tuple

import numpy as np
import librosa


def frame_energy(frame: np.ndarray) -> float:
    """
    Normalized frame energy.

    RMS is converted to dB (floored at 1e-10) and mapped from the
    -60..0 dB range onto 0..1.
    """
    if frame.size == 0:
        return 0.0
    rms = float(np.sqrt(np.mean(np.square(frame))))
    energy_db = 20.0 * np.log10(max(rms, 1e-10))
    return float(np.clip((energy_db + 60.0) / 60.0, 0.0, 1.0))


def zero_crossing_rate(frame: np.ndarray, sample_rate: float) -> float:
    """Zero-crossing rate in Hz. Zero samples count as positive."""
    if frame.size < 2:
        return 0.0
    positive = frame >= 0
    crossings = int(np.count_nonzero(positive[1:] != positive[:-1]))
    return crossings * sample_rate / (2.0 * frame.size)


def magnitude_spectrum(frame: np.ndarray) -> np.ndarray:
    """Unwindowed |FFT| of the first N/2 bins."""
    return np.abs(np.fft.rfft(frame))[: frame.size // 2]


def spectral_flux(
    spectrum: np.ndarray, previous: Optional[np.ndarray]
) -> float:
    """Mean positive change between two magnitude spectra (0 without history)."""
    if previous is None or previous.shape != spectrum.shape or spectrum.size == 0:
        return 0.0
    increase = np.maximum(spectrum - previous, 0.0)
    return float(increase.mean())


def smooth(values: np.ndarray, window: int) -> np.ndarray:
    """
    Centered moving average.

    The first and last window // 2 values are left untouched. Input
    shorter than the window is returned unchanged.
    """
    values = np.asarray(values, dtype=np.float64)
    if window <= 1 or len(values) < window:
        return values.copy()

    half = window // 2
    averaged = np.convolve(values, np.ones(2 * half + 1) / (2 * half + 1), mode="valid")
    smoothed = values.copy()
    smoothed[half:len(values) - half] = averaged
    return smoothed


def energy_and_centroid(
    audio: np.ndarray,
    sample_rate: float,
    frame_size: int,
    hop_size: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Per-frame RMS energy and spectral centroid over full frames.

    Args:
        audio: Mono samples
        sample_rate: Sample rate in Hz
        frame_size: Frame length in samples
        hop_size: Hop between frames in samples

    Returns:
        Tuple of (rms, centroid in Hz); both empty when audio is shorter
        than one frame
    """
    audio = np.asarray(audio, dtype=np.float64)
    if len(audio) < frame_size:
        return np.zeros(0), np.zeros(0)

    rms = librosa.feature.rms(
        y=audio,
        frame_length=frame_size,
        hop_length=hop_size,
        center=False,
    )[0]
    centroid = librosa.feature.spectral_centroid(
        y=audio,
        sr=sample_rate,
        n_fft=frame_size,
        hop_length=hop_size,
        center=False,
    )[0]

    n = min(len(rms), len(centroid))
    return (
        np.nan_to_num(rms[:n]),
        np.nan_to_num(centroid[:n]),
    )
