from __future__ import annotations

import logging
import random
import time
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from .analytics import AnalyticsEngine
from .curriculum import CURRICULUM, Curriculum, CurriculumLevel, display_name
from .diatonic import Candidate, filter_diatonic
from .models import Answer, Question, SessionSummary, Settings
from .theory import MODES, NOTES, REFERENCE_SCALE, SEVENTH_CHORDS, TRIADS, scale_degree_of

log = logging.getLogger(__name__)


class Player(Protocol):
	def play_interval(self, root: str, quality: str, direction: str = ..., presentation: str = ...) -> List[str]: ...

	def play_chord(self, root: str, offsets: Sequence[int]) -> List[str]: ...

	def play_scale(self, root: str, pattern: Sequence[int]) -> List[str]: ...

	def play_scale_degree(self, root: str, degree: int, context: str) -> List[str]: ...


class LevelConfigurationError(ValueError):
	"""The level's items and scale-degree restriction leave nothing to ask."""


class TrialStateError(RuntimeError):
	pass


class TrialState(str, Enum):
	IDLE = "idle"
	AWAITING_ANSWER = "awaiting_answer"
	ANSWERED = "answered"
	TERMINAL = "terminal"


def candidate_pool(level: CurriculumLevel, key: str, rng: Optional[random.Random] = None) -> List[Candidate]:
	if level.category == "scale_degree":
		return [Candidate(key, label, int(label) - 1) for label in level.items]
	return filter_diatonic(level.category, level.items, key, level.scale_degrees, rng)


def render(player: Player, question: Question) -> List[str]:
	category, root, quality = question.category, question.root_note, question.correct_answer
	if category == "scale_degree":
		if question.context is None:
			raise ValueError(f"scale degree question {question.id} has no context")
		return player.play_scale_degree(root, int(quality) - 1, question.context)
	if category == "interval":
		return player.play_interval(
			root,
			quality,
			question.direction or "ascending",
			question.presentation or "melodic",
		)
	if category == "mode":
		return player.play_scale(root, MODES[quality])
	if category == "triad":
		return player.play_chord(root, TRIADS[quality])
	return player.play_chord(root, SEVENTH_CHORDS[quality])


def make_question(
	level: CurriculumLevel,
	key: str,
	player: Player,
	rng: random.Random,
	created_at: float,
	seq: int = 0,
) -> Question:
	pool = candidate_pool(level, key, rng)
	if not pool:
		raise LevelConfigurationError(f"level {level.id} has no diatonic candidates in {key}")
	pick = rng.choice(pool)
	question = Question(
		id=f"q_{int(created_at * 1000)}_{seq}",
		category=level.category,
		correct_answer=pick.quality,
		root_note=pick.root,
		created_at=created_at,
		context=level.context,
		direction=level.direction,
		presentation=level.presentation,
	)
	played = render(player, question)
	return question.model_copy(update={"played_notes": list(played)})


def build_answer(
	question: Question,
	user_answer: str,
	session_key: str,
	submitted_at: float,
	presented_at: Optional[float] = None,
) -> Answer:
	if presented_at is None:
		presented_at = question.created_at
	scale_degree = None
	if question.category not in ("scale_degree", "mode"):
		scale_degree = scale_degree_of(question.root_note, session_key)
	return Answer(
		question_id=question.id,
		user_answer=user_answer,
		correct_answer=question.correct_answer,
		is_correct=user_answer == question.correct_answer,
		full_description=f"{question.root_note} {display_name(question.correct_answer)}",
		submitted_at=submitted_at,
		response_time_ms=max(0.0, (submitted_at - presented_at) * 1000.0),
		item_type=question.correct_answer,
		root_note=question.root_note,
		session_root_note=session_key,
		category=question.category,
		scale_degree=scale_degree,
		direction=question.direction,
		presentation=question.presentation,
	)


class Session:
	"""One practice session on a single level.

	Trials run Idle -> AwaitingAnswer -> Answered and back to Idle on the
	next question. The key rotates every `settings.questions_per_key`
	answers and the session ends after `settings.max_questions`.
	"""

	def __init__(
		self,
		level: CurriculumLevel,
		player: Player,
		settings: Optional[Settings] = None,
		rng: Optional[random.Random] = None,
		clock: Callable[[], float] = time.time,
		analytics: Optional[AnalyticsEngine] = None,
		curriculum: Curriculum = CURRICULUM,
	) -> None:
		self.level = level
		self.player = player
		self.settings = settings or Settings()
		self.rng = rng or random.Random()
		self.clock = clock
		self.analytics = analytics or AnalyticsEngine()
		self.curriculum = curriculum
		# the pool shape does not depend on the key, so C is as good as any
		if not candidate_pool(level, "C", random.Random(0)):
			raise LevelConfigurationError(f"level {level.id} has no diatonic candidates")
		self.analytics.reset()
		self.keys = [self.rng.choice(NOTES) for _ in range(self.settings.keys_per_session)]
		self.state = TrialState.IDLE
		self.current_question: Optional[Question] = None
		self._presented_at = 0.0
		self._seq = 0
		self._announced_key = -1

	@property
	def answered(self) -> int:
		return len(self.analytics)

	@property
	def key_index(self) -> int:
		return min(self.answered // self.settings.questions_per_key, len(self.keys) - 1)

	@property
	def session_key(self) -> str:
		return self.keys[self.key_index]

	@property
	def is_complete(self) -> bool:
		return self.answered >= self.settings.max_questions

	@property
	def key_pending(self) -> bool:
		return self._announced_key != self.key_index

	def announce_key(self) -> float:
		"""Play the reference scale of the active key; returns its duration if the player reports one."""
		idx = self.key_index
		self.player.play_scale(self.keys[idx], REFERENCE_SCALE)
		self._announced_key = idx
		log.debug("session key %s (block %d)", self.keys[idx], idx)
		return float(getattr(self.player, "last_duration", 0.0))

	def next_question(self) -> Question:
		if self.state is TrialState.TERMINAL:
			raise TrialStateError("session has ended")
		if self.state is TrialState.AWAITING_ANSWER:
			raise TrialStateError("current question has not been answered")
		if self.is_complete:
			raise TrialStateError("session is complete")
		if self.key_pending:
			self.announce_key()
		self._seq += 1
		question = make_question(self.level, self.session_key, self.player, self.rng, self.clock(), self._seq)
		self.current_question = question
		self.state = TrialState.AWAITING_ANSWER
		self._presented_at = self.clock()
		log.debug("question %s: %s on %s", question.id, question.correct_answer, question.root_note)
		return question

	def replay(self) -> List[str]:
		if self.current_question is None:
			return []
		return render(self.player, self.current_question)

	def submit_answer(self, choice: str) -> Optional[Answer]:
		if self.state is not TrialState.AWAITING_ANSWER or self.current_question is None:
			return None
		answer = build_answer(self.current_question, choice, self.session_key, self.clock(), self._presented_at)
		self.analytics.record(answer)
		self.state = TrialState.ANSWERED
		log.debug("answer %s -> %s (%s)", answer.question_id, choice, "correct" if answer.is_correct else "wrong")
		return answer

	def end_session(self) -> SessionSummary:
		if self.state is TrialState.AWAITING_ANSWER and self.current_question is not None:
			log.debug("discarding unanswered question %s", self.current_question.id)
		self.current_question = None
		self.state = TrialState.TERMINAL
		stats = self.analytics.session_stats()
		return SessionSummary(
			level_id=self.level.id,
			stats=stats,
			insights=self.analytics.insights(),
			average_response_time_ms=self.analytics.average_response_time(),
			passed=stats.total_questions > 0 and self.curriculum.can_advance(self.level.id, stats.accuracy),
		)
