from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field


QuestionCategory = Literal["interval", "triad", "seventh_chord", "mode", "scale_degree"]
ScaleDegreeContext = Literal["major", "natural_minor", "major_triads", "minor_triads", "major_7ths", "minor_7ths"]
Direction = Literal["ascending", "descending"]
Presentation = Literal["melodic", "harmonic"]
Waveform = Literal["sine", "triangle", "saw"]


class Settings(BaseModel):
	waveform: Waveform = Field(default="sine")
	volume: float = Field(default=0.9, ge=0.0, le=1.0)
	playback_speed: float = Field(default=1.0, ge=0.5, le=2.0)
	questions_per_key: int = Field(default=8, ge=1, le=50)
	keys_per_session: int = Field(default=3, ge=1, le=12)
	unlock_all: bool = False

	@computed_field  # type: ignore[prop-decorator]
	@property
	def max_questions(self) -> int:
		return self.questions_per_key * self.keys_per_session


def settings_bounds(name: str) -> Tuple[float, float]:
	"""(low, high) allowed for a numeric `Settings` field, read from its constraints."""
	low = high = None
	for m in Settings.model_fields[name].metadata:
		low = getattr(m, "ge", low)
		high = getattr(m, "le", high)
	if low is None or high is None:
		raise KeyError(f"{name} has no ge/le bounds")
	return low, high


class Question(BaseModel):
	model_config = ConfigDict(frozen=True)

	id: str
	category: QuestionCategory
	correct_answer: str
	root_note: str
	played_notes: List[str] = Field(default_factory=list)
	created_at: float
	context: Optional[ScaleDegreeContext] = None
	direction: Optional[Direction] = None
	presentation: Optional[Presentation] = None


class Answer(BaseModel):
	model_config = ConfigDict(frozen=True)

	question_id: str
	user_answer: str
	correct_answer: str
	is_correct: bool
	full_description: str
	submitted_at: float
	response_time_ms: float = Field(ge=0)
	item_type: str
	root_note: str
	session_root_note: str
	category: QuestionCategory
	scale_degree: Optional[int] = None
	direction: Optional[Direction] = None
	presentation: Optional[Presentation] = None


class WeaknessReport(BaseModel):
	item: str
	attempts: int
	correct: int
	accuracy: float


class ScaleDegreeWeakness(BaseModel):
	degree: int
	label: str
	category: QuestionCategory
	attempts: int
	correct: int
	accuracy: float
	context: str


class IntervalVariantWeakness(BaseModel):
	quality: str
	direction: Direction
	presentation: Presentation
	label: str
	attempts: int
	correct: int
	accuracy: float


class ConfusionPair(BaseModel):
	mistook: str
	actually_was: str
	count: int


class SessionStats(BaseModel):
	total_questions: int = 0
	correct_answers: int = 0
	accuracy: float = 0.0
	weaknesses: List[WeaknessReport] = Field(default_factory=list)
	scale_degree_weaknesses: List[ScaleDegreeWeakness] = Field(default_factory=list)
	interval_variant_weaknesses: List[IntervalVariantWeakness] = Field(default_factory=list)
	confusion_matrix: List[ConfusionPair] = Field(default_factory=list)


class SessionSummary(BaseModel):
	level_id: str
	stats: SessionStats
	insights: List[str]
	average_response_time_ms: float
	passed: bool
