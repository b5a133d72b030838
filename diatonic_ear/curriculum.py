from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import Direction, Presentation, QuestionCategory, ScaleDegreeContext
from .theory import category_items


class CurriculumLevel(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	name: str
	description: str = ""
	category: QuestionCategory
	items: Tuple[str, ...] = Field(min_length=1)
	unlock_threshold: float = Field(ge=0.0, le=100.0)
	scale_degrees: Optional[Tuple[int, ...]] = None
	context: Optional[ScaleDegreeContext] = None
	direction: Optional[Direction] = None
	presentation: Optional[Presentation] = None

	@model_validator(mode="after")
	def _check_items(self) -> "CurriculumLevel":
		known = category_items(self.category)
		unknown = [i for i in self.items if i not in known]
		if unknown:
			raise ValueError(f"{self.id}: unknown {self.category} items {unknown}")
		if self.scale_degrees is not None and any(d < 0 or d > 6 for d in self.scale_degrees):
			raise ValueError(f"{self.id}: scale degrees must be within 0-6")
		if self.category == "scale_degree" and self.context is None:
			raise ValueError(f"{self.id}: scale_degree levels need a context")
		return self


class CurriculumSegment(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	name: str
	description: str = ""
	levels: Tuple[CurriculumLevel, ...]


class Curriculum:
	"""Segments in order, each owning its levels.

	The flat level order and the id lookups are built once from the
	segments and never edited afterwards.
	"""

	def __init__(self, segments: Sequence[CurriculumSegment]) -> None:
		self.segments: Tuple[CurriculumSegment, ...] = tuple(segments)
		self.levels: Tuple[CurriculumLevel, ...] = tuple(
			level for segment in self.segments for level in segment.levels
		)
		if not self.levels:
			raise ValueError("curriculum has no levels")
		self._index: Dict[str, int] = {}
		self._segment_of: Dict[str, str] = {}
		for segment in self.segments:
			for level in segment.levels:
				if level.id in self._index:
					raise ValueError(f"duplicate level id: {level.id}")
				self._index[level.id] = len(self._index)
				self._segment_of[level.id] = segment.id

	def get_level(self, level_id: str) -> Optional[CurriculumLevel]:
		idx = self._index.get(level_id)
		return None if idx is None else self.levels[idx]

	def level(self, level_id: str) -> CurriculumLevel:
		return self.levels[self._index[level_id]]

	def index_of(self, level_id: str) -> int:
		return self._index[level_id]

	def segment_of(self, level_id: str) -> CurriculumSegment:
		segment_id = self._segment_of[level_id]
		return next(s for s in self.segments if s.id == segment_id)

	def current_level(self, completed: Iterable[str]) -> CurriculumLevel:
		done = set(completed)
		for level in self.levels:
			if level.id not in done:
				return level
		return self.levels[-1]

	def can_advance(self, level_id: str, accuracy: float) -> bool:
		level = self.get_level(level_id)
		if level is None:
			return False
		return accuracy >= level.unlock_threshold

	def next_level(self, level_id: str) -> Optional[CurriculumLevel]:
		idx = self._index.get(level_id)
		if idx is None or idx + 1 >= len(self.levels):
			return None
		return self.levels[idx + 1]

	def is_unlocked(self, level_id: str, completed: Iterable[str], unlock_all: bool = False) -> bool:
		idx = self._index.get(level_id)
		if idx is None:
			return False
		if unlock_all or idx == 0:
			return True
		done = set(completed)
		if self.levels[idx - 1].id in done:
			return True
		return self.current_level(done).id == level_id


def display_name(item: str) -> str:
	# snake_case -> Title Case; only the first letter of each word changes
	return " ".join(word[:1].upper() + word[1:] for word in item.split("_"))


_DEGREES_ALL = ("1", "2", "3", "4", "5", "6", "7")

CURRICULUM_SEGMENTS: List[CurriculumSegment] = [
	CurriculumSegment(
		id="scale_degrees",
		name="Scale Degrees",
		description="Hear where each note and chord sits in the key",
		levels=(
			CurriculumLevel(
				id="scale_degree_major_1",
				name="Major Scale Degrees 1-3-5",
				category="scale_degree",
				items=("1", "3", "5"),
				context="major",
				unlock_threshold=80,
				description="Identify the tonic triad notes (1, 3, 5) in a major scale",
			),
			CurriculumLevel(
				id="scale_degree_major_2",
				name="Major Scale Degrees 1-5",
				category="scale_degree",
				items=("1", "2", "3", "4", "5"),
				context="major",
				unlock_threshold=75,
				description="Identify scale degrees 1-5 in a major scale",
			),
			CurriculumLevel(
				id="scale_degree_major_full",
				name="All Major Scale Degrees",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="major",
				unlock_threshold=75,
				description="Identify all 7 scale degrees in a major scale",
			),
			CurriculumLevel(
				id="scale_degree_minor",
				name="Natural Minor Scale Degrees",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="natural_minor",
				unlock_threshold=75,
				description="Identify all 7 scale degrees in natural minor",
			),
			CurriculumLevel(
				id="scale_degree_major_triads",
				name="Major Scale Triads (Harmonic)",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="major_triads",
				unlock_threshold=70,
				description="Identify triads built on each scale degree in major",
			),
			CurriculumLevel(
				id="scale_degree_minor_triads",
				name="Minor Scale Triads (Harmonic)",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="minor_triads",
				unlock_threshold=70,
				description="Identify triads built on each scale degree in minor",
			),
			CurriculumLevel(
				id="scale_degree_major_7ths",
				name="Major Scale 7th Chords",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="major_7ths",
				unlock_threshold=70,
				description="Identify 7th chords built on each scale degree in major",
			),
			CurriculumLevel(
				id="scale_degree_minor_7ths",
				name="Minor Scale 7th Chords",
				category="scale_degree",
				items=_DEGREES_ALL,
				context="minor_7ths",
				unlock_threshold=70,
				description="Identify 7th chords built on each scale degree in minor",
			),
		),
	),
	CurriculumSegment(
		id="intervals",
		name="Intervals",
		description="Thirds first, then direction and harmonic intervals",
		levels=(
			CurriculumLevel(
				id="level_1",
				name="Tonic Major vs Minor Thirds",
				category="interval",
				items=("minor_3rd", "major_3rd"),
				scale_degrees=(0,),
				unlock_threshold=80,
				description="Learn major and minor thirds from the root note",
			),
			CurriculumLevel(
				id="level_2",
				name="Dominant Major vs Minor Thirds",
				category="interval",
				items=("minor_3rd", "major_3rd"),
				scale_degrees=(4,),
				unlock_threshold=80,
				description="Practice major and minor thirds from the 5th scale degree",
			),
			CurriculumLevel(
				id="level_3",
				name="All Thirds in Scale",
				category="interval",
				items=("minor_3rd", "major_3rd"),
				unlock_threshold=75,
				description="Identify major and minor thirds from any scale degree",
			),
			CurriculumLevel(
				id="level_3_descending",
				name="Descending Thirds",
				category="interval",
				items=("minor_3rd", "major_3rd"),
				direction="descending",
				presentation="melodic",
				unlock_threshold=75,
				description="Hear thirds falling from a scale tone",
			),
			CurriculumLevel(
				id="level_3_harmonic",
				name="Harmonic Thirds",
				category="interval",
				items=("minor_3rd", "major_3rd"),
				direction="ascending",
				presentation="harmonic",
				unlock_threshold=75,
				description="Hear both notes of a third sounded together",
			),
			CurriculumLevel(
				id="level_3_perfect",
				name="Perfect Intervals",
				category="interval",
				items=("perfect_4th", "perfect_5th", "octave"),
				unlock_threshold=75,
				description="Tell fourths, fifths and octaves apart",
			),
		),
	),
	CurriculumSegment(
		id="chords",
		name="Chords",
		description="Diatonic triads and seventh chords",
		levels=(
			CurriculumLevel(
				id="level_4",
				name="Tonic Triads (I and vi)",
				category="triad",
				items=("major", "minor"),
				scale_degrees=(0, 5),
				unlock_threshold=80,
				description="Learn to hear the tonic major chord and its relative minor",
			),
			CurriculumLevel(
				id="level_5",
				name="Dominant Triads (V)",
				category="triad",
				items=("major",),
				scale_degrees=(4,),
				unlock_threshold=85,
				description="Master the dominant chord",
			),
			CurriculumLevel(
				id="level_6",
				name="All Diatonic Triads",
				category="triad",
				items=("major", "minor", "diminished"),
				unlock_threshold=75,
				description="Identify all triads that naturally occur in the major scale",
			),
			CurriculumLevel(
				id="level_7",
				name="Common Seventh Chords",
				category="seventh_chord",
				items=("major_7", "minor_7", "dominant_7"),
				unlock_threshold=75,
				description="Learn the most common seventh chords in jazz and popular music",
			),
			CurriculumLevel(
				id="level_8",
				name="Advanced Seventh Chords",
				category="seventh_chord",
				items=("major_7", "minor_7", "dominant_7", "half_diminished_7", "diminished_7", "minor_major_7"),
				unlock_threshold=70,
				description="Master all seventh chord qualities",
			),
		),
	),
	CurriculumSegment(
		id="modes",
		name="Modes",
		description="The seven modes of the major scale",
		levels=(
			CurriculumLevel(
				id="level_9",
				name="Major vs Minor Modes",
				category="mode",
				items=("ionian", "lydian", "mixolydian", "aeolian", "dorian"),
				unlock_threshold=70,
				description="Distinguish between major-sounding and minor-sounding modes",
			),
			CurriculumLevel(
				id="level_10",
				name="All Modes",
				category="mode",
				items=("ionian", "dorian", "phrygian", "lydian", "mixolydian", "aeolian", "locrian"),
				unlock_threshold=70,
				description="Master all seven modes of the major scale",
			),
		),
	),
]

CURRICULUM = Curriculum(CURRICULUM_SEGMENTS)


def current_level(completed: Iterable[str]) -> CurriculumLevel:
	return CURRICULUM.current_level(completed)


def can_advance(level_id: str, accuracy: float) -> bool:
	return CURRICULUM.can_advance(level_id, accuracy)


def next_level(level_id: str) -> Optional[CurriculumLevel]:
	return CURRICULUM.next_level(level_id)


def is_unlocked(level_id: str, completed: Iterable[str], unlock_all: bool = False) -> bool:
	return CURRICULUM.is_unlocked(level_id, completed, unlock_all)
