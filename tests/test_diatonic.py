import random

import pytest

from diatonic_ear.diatonic import Candidate, filter_diatonic
from diatonic_ear.theory import NOTES, diatonic_roots


@pytest.mark.parametrize("key", NOTES)
def test_all_triads_one_per_degree(key):
	got = filter_diatonic("triad", ["major", "minor", "diminished"], key)
	assert len(got) == 7
	assert [c.root for c in got] == diatonic_roots(key)
	assert [c.degree for c in got] == list(range(7))


def test_restricted_degrees():
	got = filter_diatonic("triad", ["major", "minor"], "D", allowed_degrees=[0, 5])
	assert got == [Candidate("D", "major", 0), Candidate("B", "minor", 5)]


def test_restriction_subset_size():
	for subset in ([1], [0, 3, 4], [1, 2, 5]):
		got = filter_diatonic("triad", ["major", "minor", "diminished"], "D#", subset)
		assert len(got) == len(subset)
		assert all(c.degree in subset for c in got)


def test_quality_filter_drops_non_diatonic_sevenths():
	items = ["major_7", "minor_7", "dominant_7", "half_diminished_7", "diminished_7", "minor_major_7"]
	got = filter_diatonic("seventh_chord", items, "C")
	assert [c.quality for c in got] == [
		"major_7", "minor_7", "minor_7", "major_7", "dominant_7", "minor_7", "half_diminished_7",
	]
	assert filter_diatonic("seventh_chord", ["dominant_7"], "G") == [Candidate("D", "dominant_7", 4)]


def test_contradictory_restriction_is_empty():
	assert filter_diatonic("triad", ["diminished"], "C", allowed_degrees=[0, 4]) == []


def test_intervals_keep_every_quality_on_allowed_roots():
	rng = random.Random(3)
	for _ in range(20):
		got = filter_diatonic("interval", ["minor_3rd", "major_3rd", "tritone"], "A", [4], rng)
		assert [c.quality for c in got] == ["minor_3rd", "major_3rd", "tritone"]
		assert {c.root for c in got} == {"E"}


def test_interval_roots_stay_diatonic():
	rng = random.Random(11)
	scale = diatonic_roots("E")
	for _ in range(50):
		for c in filter_diatonic("interval", ["perfect_5th"], "E", rng=rng):
			assert c.root in scale
			assert scale.index(c.root) == c.degree


def test_modes_pair_with_tonic():
	got = filter_diatonic("mode", ["dorian", "locrian"], "G")
	assert got == [Candidate("G", "dorian"), Candidate("G", "locrian")]


def test_scale_degree_is_not_filtered_here():
	with pytest.raises(ValueError):
		filter_diatonic("scale_degree", ["1"], "C")
