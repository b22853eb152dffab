"""Note data class and frequency-to-note mapping.

Frequencies are snapped to the nearest 12-tone equal-tempered pitch
(A4 = 440 Hz). Lookups that can fail return an explicit ``NoteFound`` /
``NoteNotFound`` value so callers have to handle the no-note case.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np

from .constants import PITCH_NAMES, A4_FREQUENCY, A4_MIDI, MIDI_MIN, MIDI_MAX
from .frame import FrequencyFrame


class AccuracyGrade(Enum):
    """How close a detected pitch is to its equal-tempered target."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True)
class Note:
    """Represents a musical note snapped to equal temperament."""

    name: str  # Note name with octave (e.g., 'A4', 'C#3')
    frequency: float  # Exact equal-tempered frequency (Hz)
    midi_number: int  # MIDI pitch (0-127)
    octave: int  # Scientific pitch octave (C4 = middle C)
    pitch_class: int  # 0-11, where 0=C
    deviation_cents: float = 0.0  # Detected minus exact pitch, in cents
    duration: float = 1.0  # Seconds
    amplitude: float = 0.5  # 0.0 - 1.0

    @property
    def is_accurate(self) -> bool:
        """Within 10 cents of the target pitch."""
        return abs(self.deviation_cents) <= 10.0

    @property
    def accuracy_grade(self) -> AccuracyGrade:
        deviation = abs(self.deviation_cents)
        if deviation <= 5.0:
            return AccuracyGrade.EXCELLENT
        elif deviation <= 15.0:
            return AccuracyGrade.GOOD
        elif deviation <= 30.0:
            return AccuracyGrade.FAIR
        return AccuracyGrade.POOR

    @property
    def sharpened(self) -> Optional["Note"]:
        """One semitone up, or None past the MIDI range."""
        return self.transposed(1)

    @property
    def flattened(self) -> Optional["Note"]:
        """One semitone down, or None past the MIDI range."""
        return self.transposed(-1)

    @property
    def octave_up(self) -> Optional["Note"]:
        return self.transposed(12)

    @property
    def octave_down(self) -> Optional["Note"]:
        return self.transposed(-12)

    def transposed(self, semitones: int) -> Optional["Note"]:
        """Shift by semitones, keeping duration and amplitude."""
        return as_optional(
            note_from_midi(self.midi_number + semitones, self.duration, self.amplitude)
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.frequency:.1f}Hz, {self.deviation_cents:+.1f} cents)"

    @staticmethod
    def freq_to_midi(freq: float) -> int:
        """Convert frequency (Hz) to the nearest MIDI pitch (unbounded)."""
        semitones = 12.0 * math.log2(freq / A4_FREQUENCY)
        # Half-up rounding keeps quarter-tone ties deterministic
        return A4_MIDI + int(math.floor(semitones + 0.5))

    @staticmethod
    def midi_to_freq(midi: int) -> float:
        """Convert MIDI pitch to frequency (Hz)."""
        return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))

    @classmethod
    def from_frequency(
        cls, freq: float, duration: float = 1.0, amplitude: float = 0.5
    ) -> Optional["Note"]:
        """Nearest note to freq, or None. See note_from_frequency."""
        return as_optional(note_from_frequency(freq, duration, amplitude))

    @classmethod
    def from_midi(
        cls, midi: int, duration: float = 1.0, amplitude: float = 0.5
    ) -> Optional["Note"]:
        return as_optional(note_from_midi(midi, duration, amplitude))

    @classmethod
    def from_name(
        cls, name: str, duration: float = 1.0, amplitude: float = 0.5
    ) -> Optional["Note"]:
        return as_optional(note_from_name(name, duration, amplitude))


@dataclass(frozen=True)
class NoteFound:
    """Successful note lookup."""
    note: Note

    @property
    def found(self) -> bool:
        return True


@dataclass(frozen=True)
class NoteNotFound:
    """Failed note lookup, with the reason it failed."""
    reason: str

    @property
    def found(self) -> bool:
        return False


NoteLookup = Union[NoteFound, NoteNotFound]


def as_optional(lookup: NoteLookup) -> Optional[Note]:
    """Collapse a lookup result to the note or None."""
    return lookup.note if isinstance(lookup, NoteFound) else None


def _build_note(
    midi: int, deviation_cents: float, duration: float, amplitude: float
) -> Note:
    pitch_class = midi % 12
    octave = midi // 12 - 1
    return Note(
        name=f"{PITCH_NAMES[pitch_class]}{octave}",
        frequency=Note.midi_to_freq(midi),
        midi_number=midi,
        octave=octave,
        pitch_class=pitch_class,
        deviation_cents=deviation_cents,
        duration=max(0.0, duration),
        amplitude=float(np.clip(amplitude, 0.0, 1.0)),
    )


def note_from_frequency(
    freq: float, duration: float = 1.0, amplitude: float = 0.5
) -> NoteLookup:
    """
    Map a frequency to the nearest equal-tempered note.

    Args:
        freq: Frequency in Hz
        duration: Note duration in seconds
        amplitude: Note amplitude (clamped to 0-1)

    Returns:
        NoteFound with the note and its cent deviation, or NoteNotFound when
        the frequency is not positive/finite or falls outside MIDI 0-127
    """
    if freq is None or not math.isfinite(freq) or freq <= 0:
        return NoteNotFound(f"frequency must be positive and finite, got {freq}")

    midi = Note.freq_to_midi(freq)
    if not MIDI_MIN <= midi <= MIDI_MAX:
        return NoteNotFound(f"{freq:.2f} Hz maps outside the MIDI range (midi {midi})")

    exact = Note.midi_to_freq(midi)
    cents = 1200.0 * math.log2(freq / exact)
    return NoteFound(_build_note(midi, cents, duration, amplitude))


def note_from_midi(midi: int, duration: float = 1.0, amplitude: float = 0.5) -> NoteLookup:
    """Note for a MIDI number, with zero deviation."""
    if not MIDI_MIN <= midi <= MIDI_MAX:
        return NoteNotFound(f"MIDI number {midi} is outside {MIDI_MIN}-{MIDI_MAX}")
    return NoteFound(_build_note(int(midi), 0.0, duration, amplitude))


_NAME_PATTERN = re.compile(r"([A-Ga-g])([#b]?)(-?\d+)")


def note_from_name(name: str, duration: float = 1.0, amplitude: float = 0.5) -> NoteLookup:
    """
    Parse a note name such as 'A4', 'C#3' or 'Bb2'.

    Flats are resolved to the enharmonic sharp (Bb2 -> A#2).
    """
    match = _NAME_PATTERN.fullmatch(name.strip())
    if match is None:
        return NoteNotFound(f"cannot parse note name {name!r}")

    letter, accidental, octave = match.groups()
    index = PITCH_NAMES.index(letter.upper())
    if accidental == "#":
        index += 1
    elif accidental == "b":
        index -= 1

    return note_from_midi((int(octave) + 1) * 12 + index, duration, amplitude)


def peak_confidence(frame: FrequencyFrame) -> float:
    """
    Confidence that a frame's spectral peak is a real pitch.

    Combines the peak's share of the total magnitude with its sharpness
    against the +/-5 neighbouring bins.

    Returns:
        Confidence 0.0 - 1.0 (0.0 when the frame has no peak)
    """
    index = frame.peak_index
    if index is None:
        return 0.0

    magnitudes = frame.magnitudes
    peak = float(magnitudes[index])
    total = float(magnitudes.sum())
    peak_ratio = peak / total if total > 0 else 0.0

    lo = max(0, index - 5)
    hi = min(len(magnitudes), index + 6)
    neighbours = np.delete(magnitudes[lo:hi], index - lo)
    if neighbours.size == 0:
        sharpness = 0.0
    else:
        average = float(neighbours.mean())
        sharpness = min(1.0, peak / average / 10.0) if average > 0 else 1.0

    return float(np.clip((peak_ratio * 0.6 + sharpness * 0.4) * 2.0, 0.0, 1.0))
