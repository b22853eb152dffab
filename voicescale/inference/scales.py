"""Scale library - built-in scales and read-only queries over them.

Scales are stored as interval sets relative to the root (0-11). Mood,
genre and type are plain enums; per-variant behaviour such as primary
chords is held in lookup tables.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..core.constants import INTERVAL_NAMES
from ..core.errors import ScaleNotFound


class ScaleType(Enum):
    """Broad scale family."""
    MAJOR = "major"
    MINOR = "minor"
    PENTATONIC = "pentatonic"
    BLUES = "blues"
    MODAL = "modal"
    CHROMATIC = "chromatic"
    EXOTIC = "exotic"


class ScaleMood(Enum):
    """Character a scale conveys."""
    BRIGHT = "bright"
    DARK = "dark"
    PEACEFUL = "peaceful"
    MYSTERIOUS = "mysterious"
    ENERGETIC = "energetic"
    MELANCHOLIC = "melancholic"
    EXOTIC = "exotic"
    NEUTRAL = "neutral"


class Genre(Enum):
    """Musical genres a scale is associated with."""
    CLASSICAL = "classical"
    JAZZ = "jazz"
    POP = "pop"
    ROCK = "rock"
    BLUES = "blues"
    COUNTRY = "country"
    FOLK = "folk"
    ELECTRONIC = "electronic"
    LATIN = "latin"
    WORLD = "world"


MOOD_DESCRIPTIONS: Dict[ScaleMood, str] = {
    ScaleMood.BRIGHT: "Joyful and lively",
    ScaleMood.DARK: "Serious and heavy",
    ScaleMood.PEACEFUL: "Calm and settled",
    ScaleMood.MYSTERIOUS: "Dreamy and enigmatic",
    ScaleMood.ENERGETIC: "Driving and active",
    ScaleMood.MELANCHOLIC: "Sad and emotional",
    ScaleMood.EXOTIC: "Distinctive and foreign",
    ScaleMood.NEUTRAL: "Without strong colour",
}

PRIMARY_CHORDS: Dict[ScaleType, Tuple[str, ...]] = {
    ScaleType.MAJOR: ("I", "IV", "V"),
    ScaleType.MINOR: ("i", "iv", "V"),
    ScaleType.PENTATONIC: ("I", "vi", "IV"),
    ScaleType.BLUES: ("I7", "IV7", "V7"),
}
DEFAULT_PRIMARY_CHORDS = ("I", "III", "V")


@dataclass(frozen=True)
class Scale:
    """A scale as a set of semitone offsets from its root."""

    id: str
    name: str
    type: ScaleType
    intervals: Tuple[int, ...]  # Sorted, unique, 0-11
    mood: ScaleMood
    complexity: int = 3  # 1 (simplest) - 5
    genres: FrozenSet[Genre] = field(default_factory=frozenset)
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "intervals", tuple(sorted({i % 12 for i in self.intervals})))
        object.__setattr__(self, "complexity", max(1, min(5, int(self.complexity))))
        object.__setattr__(self, "genres", frozenset(self.genres))

    @property
    def note_count(self) -> int:
        return len(self.intervals)

    @property
    def is_complete(self) -> bool:
        """At least three notes."""
        return self.note_count >= 3

    @property
    def interval_pattern(self) -> List[int]:
        """Semitone steps between consecutive scale degrees."""
        return [b - a for a, b in zip(self.intervals[:-1], self.intervals[1:])]

    @property
    def primary_chords(self) -> Tuple[str, ...]:
        return PRIMARY_CHORDS.get(self.type, DEFAULT_PRIMARY_CHORDS)

    @property
    def mood_description(self) -> str:
        return MOOD_DESCRIPTIONS[self.mood]

    def similarity(self, notes: Iterable[int]) -> float:
        """Jaccard similarity between pitch classes and this scale (0.0 - 1.0)."""
        note_set = {n % 12 for n in notes}
        scale_set = set(self.intervals)
        if not note_set or not scale_set:
            return 0.0
        return len(note_set & scale_set) / len(note_set | scale_set)

    def contains(self, note: int) -> bool:
        return note % 12 in self.intervals

    def interval_name(self, semitones: int) -> str:
        return INTERVAL_NAMES[semitones % 12]

    def __str__(self) -> str:
        return f"{self.name} ({self.type.value}, {self.mood.value})"


BUILTIN_SCALES: Tuple[Scale, ...] = (
    Scale("major-scale", "Major Scale", ScaleType.MAJOR,
          [0, 2, 4, 5, 7, 9, 11], ScaleMood.BRIGHT, 1,
          [Genre.POP, Genre.CLASSICAL, Genre.COUNTRY],
          "The basic bright seven-note scale"),
    Scale("natural-minor", "Natural Minor Scale", ScaleType.MINOR,
          [0, 2, 3, 5, 7, 8, 10], ScaleMood.MELANCHOLIC, 2,
          [Genre.CLASSICAL, Genre.FOLK, Genre.ROCK],
          "Natural minor, sad and calm"),
    Scale("harmonic-minor", "Harmonic Minor Scale", ScaleType.MINOR,
          [0, 2, 3, 5, 7, 8, 11], ScaleMood.MYSTERIOUS, 3,
          [Genre.CLASSICAL, Genre.WORLD],
          "Minor with a raised seventh, common in classical music"),
    Scale("major-pentatonic", "Major Pentatonic Scale", ScaleType.PENTATONIC,
          [0, 2, 4, 7, 9], ScaleMood.BRIGHT, 1,
          [Genre.FOLK, Genre.COUNTRY, Genre.POP],
          "Simple bright five-note scale"),
    Scale("minor-pentatonic", "Minor Pentatonic Scale", ScaleType.PENTATONIC,
          [0, 3, 5, 7, 10], ScaleMood.ENERGETIC, 2,
          [Genre.BLUES, Genre.ROCK, Genre.JAZZ],
          "Five-note scale used throughout blues and rock"),
    Scale("blues-scale", "Blues Scale", ScaleType.BLUES,
          [0, 3, 5, 6, 7, 10], ScaleMood.ENERGETIC, 3,
          [Genre.BLUES, Genre.JAZZ, Genre.ROCK],
          "Six-note blues scale with the blue note"),
    Scale("dorian", "Dorian Mode", ScaleType.MODAL,
          [0, 2, 3, 5, 7, 9, 10], ScaleMood.NEUTRAL, 4,
          [Genre.JAZZ, Genre.CLASSICAL],
          "Jazz mode between major and minor"),
    Scale("mixolydian", "Mixolydian Mode", ScaleType.MODAL,
          [0, 2, 4, 5, 7, 9, 10], ScaleMood.ENERGETIC, 4,
          [Genre.BLUES, Genre.ROCK, Genre.JAZZ],
          "Major with a flat seventh, used in blues and rock"),
    Scale("phrygian", "Phrygian Mode", ScaleType.MODAL,
          [0, 1, 3, 5, 7, 8, 10], ScaleMood.MYSTERIOUS, 4,
          [Genre.WORLD, Genre.CLASSICAL],
          "Dark mode heard in flamenco"),
    Scale("lydian", "Lydian Mode", ScaleType.MODAL,
          [0, 2, 4, 6, 7, 9, 11], ScaleMood.BRIGHT, 4,
          [Genre.CLASSICAL, Genre.ELECTRONIC],
          "Bright, dreamy mode common in film music"),
    Scale("locrian", "Locrian Mode", ScaleType.MODAL,
          [0, 1, 3, 5, 6, 8, 10], ScaleMood.DARK, 5,
          [Genre.JAZZ, Genre.CLASSICAL],
          "Unstable, tense mode"),
    Scale("bebop-dominant", "Bebop Dominant Scale", ScaleType.MODAL,
          [0, 2, 4, 5, 7, 9, 10, 11], ScaleMood.ENERGETIC, 4,
          [Genre.JAZZ],
          "Eight-note bebop scale"),
    Scale("whole-tone", "Whole Tone Scale", ScaleType.EXOTIC,
          [0, 2, 4, 6, 8, 10], ScaleMood.MYSTERIOUS, 3,
          [Genre.CLASSICAL, Genre.JAZZ],
          "Six whole steps, impressionist colour"),
    Scale("major-blues", "Major Blues Scale", ScaleType.BLUES,
          [0, 2, 3, 4, 7, 9], ScaleMood.ENERGETIC, 2,
          [Genre.BLUES, Genre.COUNTRY, Genre.ROCK],
          "Blues scale with a major feel"),
    Scale("japanese-hirajoshi", "Japanese Hirajoshi", ScaleType.EXOTIC,
          [0, 2, 3, 7, 8], ScaleMood.PEACEFUL, 3,
          [Genre.WORLD, Genre.CLASSICAL],
          "Traditional Japanese pentatonic"),
    Scale("arabic-maqam", "Arabic Maqam", ScaleType.EXOTIC,
          [0, 1, 4, 5, 7, 8, 11], ScaleMood.EXOTIC, 4,
          [Genre.WORLD],
          "Middle Eastern scale with augmented seconds"),
    Scale("diminished", "Diminished Scale", ScaleType.EXOTIC,
          [0, 1, 3, 4, 6, 7, 9, 10], ScaleMood.DARK, 5,
          [Genre.JAZZ, Genre.CLASSICAL],
          "Half-whole eight-note scale"),
)


@dataclass(frozen=True)
class ScaleSearchCriteria:
    """Filters for ScaleLibrary.search. Empty / None fields are ignored."""

    types: FrozenSet[ScaleType] = frozenset()
    moods: FrozenSet[ScaleMood] = frozenset()
    genres: FrozenSet[Genre] = frozenset()
    complexity_range: Optional[Tuple[int, int]] = None
    required_notes: Tuple[int, ...] = ()
    excluded_notes: Tuple[int, ...] = ()
    min_similarity: Optional[float] = None  # Applied against required_notes


class ScaleLibrary:
    """Immutable collection of scales with query helpers.

    Queries return scales in library order unless stated otherwise.
    """

    def __init__(self, scales: Optional[Sequence[Scale]] = None):
        """
        Initialize ScaleLibrary.

        Args:
            scales: Scales to hold (default: the built-in library)

        Raises:
            ValueError: If two scales share an id
        """
        scales = tuple(BUILTIN_SCALES if scales is None else scales)
        by_id: Dict[str, Scale] = {}
        for scale in scales:
            if scale.id in by_id:
                raise ValueError(f"Duplicate scale id: {scale.id}")
            by_id[scale.id] = scale

        self._scales = scales
        self._by_id = by_id

    def __len__(self) -> int:
        return len(self._scales)

    def __iter__(self):
        return iter(self._scales)

    def all(self) -> List[Scale]:
        return list(self._scales)

    def by_id(self, scale_id: str) -> Scale:
        """Scale with the given id.

        Raises:
            ScaleNotFound: If no scale has that id
        """
        try:
            return self._by_id[scale_id]
        except KeyError:
            raise ScaleNotFound(f"No scale with id {scale_id!r}") from None

    def get(self, scale_id: str) -> Optional[Scale]:
        return self._by_id.get(scale_id)

    def by_type(self, scale_type: ScaleType) -> List[Scale]:
        return [s for s in self._scales if s.type == scale_type]

    def by_mood(self, mood: ScaleMood) -> List[Scale]:
        return [s for s in self._scales if s.mood == mood]

    def by_genre(self, genre: Genre) -> List[Scale]:
        return [s for s in self._scales if genre in s.genres]

    def by_complexity(self, complexity: int) -> List[Scale]:
        """Scales of exactly this complexity (empty outside 1-5)."""
        if not 1 <= complexity <= 5:
            return []
        return [s for s in self._scales if s.complexity == complexity]

    def in_complexity_range(self, low: int, high: int) -> List[Scale]:
        return [s for s in self._scales if low <= s.complexity <= high]

    def containing(self, note: int) -> List[Scale]:
        return [s for s in self._scales if s.contains(note)]

    def most_similar(
        self,
        notes: Sequence[int],
        min_similarity: float = 0.0,
        max_results: int = 5,
    ) -> List[Scale]:
        """Scales ranked by Jaccard similarity to notes (ties keep library order)."""
        if not notes or max_results <= 0:
            return []

        scored = [(s, s.similarity(notes)) for s in self._scales]
        scored = [pair for pair in scored if pair[1] >= min_similarity]
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return [s for s, _ in scored[:max_results]]

    def search(self, criteria: ScaleSearchCriteria) -> List[Scale]:
        results = list(self._scales)

        if criteria.types:
            results = [s for s in results if s.type in criteria.types]
        if criteria.moods:
            results = [s for s in results if s.mood in criteria.moods]
        if criteria.genres:
            results = [s for s in results if s.genres & criteria.genres]
        if criteria.complexity_range is not None:
            low, high = criteria.complexity_range
            results = [s for s in results if low <= s.complexity <= high]
        if criteria.required_notes:
            results = [
                s for s in results
                if all(s.contains(n) for n in criteria.required_notes)
            ]
            if criteria.min_similarity is not None:
                results = [
                    s for s in results
                    if s.similarity(criteria.required_notes) >= criteria.min_similarity
                ]
        if criteria.excluded_notes:
            results = [
                s for s in results
                if not any(s.contains(n) for n in criteria.excluded_notes)
            ]

        return results

    def popular(self, limit: int = 10) -> List[Scale]:
        """Simple scales first, then those spanning more genres."""
        simple = [s for s in self._scales if s.complexity <= 3]
        simple.sort(key=lambda s: (s.complexity, -len(s.genres)))
        return simple[:limit]

    def beginner(self) -> List[Scale]:
        return self.by_complexity(1) + self.by_complexity(2)

    def advanced(self) -> List[Scale]:
        return self.by_complexity(4) + self.by_complexity(5)
