import pytest
from pydantic import ValidationError

from diatonic_ear.curriculum import (
	CURRICULUM,
	Curriculum,
	CurriculumLevel,
	CurriculumSegment,
	can_advance,
	current_level,
	display_name,
	is_unlocked,
	next_level,
)
from diatonic_ear.diatonic import filter_diatonic
from diatonic_ear.theory import NOTES


def test_current_level_walks_total_order():
	levels = CURRICULUM.levels
	assert current_level([]) == levels[0]
	assert current_level([levels[0].id]) == levels[1]
	all_but_last = [l.id for l in levels[:-1]]
	assert current_level(all_but_last) == levels[-1]
	assert current_level([l.id for l in levels]) == levels[-1]


def test_can_advance_threshold():
	assert CURRICULUM.level("level_5").unlock_threshold == 85
	assert not can_advance("level_5", 84)
	assert can_advance("level_5", 85)
	assert not can_advance("no_such_level", 100)


def test_display_name():
	assert display_name("minor_3rd") == "Minor 3rd"
	assert display_name("half_diminished_7") == "Half Diminished 7"
	assert display_name("ionian") == "Ionian"
	assert display_name("5") == "5"


def test_levels_are_projection_of_segments():
	flat = [l for s in CURRICULUM.segments for l in s.levels]
	assert list(CURRICULUM.levels) == flat
	assert CURRICULUM.segment_of("level_9").id == "modes"
	assert CURRICULUM.index_of(flat[3].id) == 3


def test_next_level():
	first, second = CURRICULUM.levels[:2]
	assert next_level(first.id) == second
	assert next_level(CURRICULUM.levels[-1].id) is None
	assert next_level("missing") is None


def test_unlock_gating():
	levels = CURRICULUM.levels
	assert is_unlocked(levels[0].id, [])
	assert not is_unlocked(levels[2].id, [])
	assert is_unlocked(levels[2].id, [levels[1].id])
	assert is_unlocked(levels[1].id, [levels[0].id])
	assert is_unlocked(levels[5].id, [], unlock_all=True)
	assert not is_unlocked("missing", [], unlock_all=True)


def test_every_level_has_candidates_in_every_key():
	for level in CURRICULUM.levels:
		if level.category == "scale_degree":
			continue
		for key in NOTES:
			assert filter_diatonic(level.category, level.items, key, level.scale_degrees), (level.id, key)


def test_level_validation():
	with pytest.raises(ValidationError):
		CurriculumLevel(id="x", name="x", category="triad", items=(), unlock_threshold=50)
	with pytest.raises(ValidationError):
		CurriculumLevel(id="x", name="x", category="triad", items=("sus2",), unlock_threshold=50)
	with pytest.raises(ValidationError):
		CurriculumLevel(id="x", name="x", category="triad", items=("major",), unlock_threshold=120)
	with pytest.raises(ValidationError):
		CurriculumLevel(id="x", name="x", category="triad", items=("major",), scale_degrees=(7,), unlock_threshold=50)
	with pytest.raises(ValidationError):
		CurriculumLevel(id="x", name="x", category="scale_degree", items=("1",), unlock_threshold=50)


def test_duplicate_ids_rejected():
	level = CurriculumLevel(id="dup", name="d", category="mode", items=("ionian",), unlock_threshold=50)
	seg = CurriculumSegment(id="s", name="s", levels=(level, level))
	with pytest.raises(ValueError):
		Curriculum([seg])


def test_levels_are_immutable():
	level = CURRICULUM.levels[0]
	with pytest.raises(ValidationError):
		level.unlock_threshold = 0  # type: ignore[misc]
