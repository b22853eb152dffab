"""Tests for the scale model and library queries."""

import pytest

from voicescale.core import ScaleNotFound
from voicescale.inference import (
    BUILTIN_SCALES,
    Genre,
    Scale,
    ScaleLibrary,
    ScaleMood,
    ScaleSearchCriteria,
    ScaleType,
)


@pytest.fixture
def library():
    return ScaleLibrary()


class TestScale:
    """Test scale normalisation and similarity."""

    def test_intervals_are_normalized(self):
        scale = Scale("x", "X", ScaleType.MAJOR, [12, 4, 0, 16, 7], ScaleMood.BRIGHT)
        assert scale.intervals == (0, 4, 7)
        assert scale.note_count == 3
        assert scale.is_complete

    def test_complexity_is_clamped(self):
        assert Scale("x", "X", ScaleType.MAJOR, [0, 4], ScaleMood.BRIGHT, 9).complexity == 5
        assert Scale("x", "X", ScaleType.MAJOR, [0, 4], ScaleMood.BRIGHT, 0).complexity == 1

    def test_similarity_identical_sets(self, library):
        major = library.by_id("major-scale")
        assert major.similarity(major.intervals) == 1.0
        assert major.similarity([12, 14, 16, 17, 19, 21, 23]) == 1.0

    def test_similarity_disjoint_sets(self, library):
        major = library.by_id("major-scale")
        assert major.similarity([1, 3, 6]) == 0.0

    def test_similarity_is_symmetric(self):
        for a in BUILTIN_SCALES:
            for b in BUILTIN_SCALES:
                assert a.similarity(b.intervals) == pytest.approx(b.similarity(a.intervals)), (
                    f"Asymmetric similarity for {a.id} / {b.id}"
                )

    def test_similarity_of_triad_against_major(self, library):
        assert library.by_id("major-scale").similarity([0, 4, 7]) == pytest.approx(3 / 7)

    def test_interval_pattern(self, library):
        assert library.by_id("major-scale").interval_pattern == [2, 2, 1, 2, 2, 2]

    def test_interval_name(self, library):
        major = library.by_id("major-scale")
        assert major.interval_name(7) == "perfect 5th"
        assert major.interval_name(19) == "perfect 5th"


class TestScaleLibrary:
    """Test library queries."""

    def test_builtin_library(self, library):
        assert len(library) == 17
        ids = [s.id for s in library]
        assert len(set(ids)) == len(ids)

    def test_duplicate_ids_rejected(self):
        scale = BUILTIN_SCALES[0]
        with pytest.raises(ValueError):
            ScaleLibrary([scale, scale])

    def test_by_id(self, library):
        assert library.by_id("dorian").type == ScaleType.MODAL
        with pytest.raises(ScaleNotFound):
            library.by_id("no-such-scale")
        assert library.get("no-such-scale") is None

    def test_by_type_mood_genre(self, library):
        assert all(s.type == ScaleType.PENTATONIC for s in library.by_type(ScaleType.PENTATONIC))
        assert all(s.mood == ScaleMood.DARK for s in library.by_mood(ScaleMood.DARK))
        assert all(Genre.JAZZ in s.genres for s in library.by_genre(Genre.JAZZ))
        assert len(library.by_type(ScaleType.PENTATONIC)) == 2

    def test_by_complexity_out_of_range(self, library):
        assert library.by_complexity(0) == []
        assert library.by_complexity(6) == []
        assert all(s.complexity == 1 for s in library.by_complexity(1))

    def test_beginner_and_advanced(self, library):
        assert all(s.complexity <= 2 for s in library.beginner())
        assert all(s.complexity >= 4 for s in library.advanced())
        assert len(library.beginner()) + len(library.advanced()) + len(library.by_complexity(3)) == 17

    def test_popular_ordering(self, library):
        popular = library.popular()
        assert all(s.complexity <= 3 for s in popular)
        keys = [(s.complexity, -len(s.genres)) for s in popular]
        assert keys == sorted(keys)
        assert len(library.popular(limit=3)) == 3

    def test_containing(self, library):
        tritone = library.containing(6)
        assert all(6 in s.intervals for s in tritone)
        assert library.get("lydian") in tritone

    def test_most_similar(self, library):
        top = library.most_similar([0, 2, 4, 5, 7, 9, 11], max_results=3)
        assert top[0].id == "major-scale"
        assert len(top) == 3
        assert library.most_similar([]) == []

    def test_search(self, library):
        criteria = ScaleSearchCriteria(
            moods=frozenset({ScaleMood.ENERGETIC}),
            required_notes=(0, 3, 7),
            excluded_notes=(6,),
        )
        found = library.search(criteria)
        assert found
        for scale in found:
            assert scale.mood == ScaleMood.ENERGETIC
            assert all(scale.contains(n) for n in (0, 3, 7))
            assert not scale.contains(6)

    def test_empty_search_returns_everything(self, library):
        assert library.search(ScaleSearchCriteria()) == library.all()
