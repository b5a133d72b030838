from __future__ import annotations

from typing import Dict, List, Tuple

from .curriculum import display_name
from .models import (
	Answer,
	ConfusionPair,
	IntervalVariantWeakness,
	ScaleDegreeWeakness,
	SessionStats,
	WeaknessReport,
)

DEGREE_LABELS = ["I", "ii", "iii", "IV", "V", "vi", "vii°"]

CATEGORY_PLURALS = {
	"interval": "intervals",
	"triad": "triads",
	"seventh_chord": "seventh chords",
	"mode": "modes",
	"scale_degree": "scale degrees",
}

MIN_ATTEMPTS = 2


def degree_label(degree: int) -> str:
	if 0 <= degree < len(DEGREE_LABELS):
		return DEGREE_LABELS[degree]
	return str(degree)


def _variant_suffix(answer: Answer) -> str:
	return f" ({answer.direction or 'ascending'}, {answer.presentation or 'melodic'})"


def _accuracy(correct: int, attempts: int) -> float:
	return (correct / attempts) * 100.0 if attempts else 0.0


class _Tally:
	__slots__ = ("attempts", "correct")

	def __init__(self) -> None:
		self.attempts = 0
		self.correct = 0

	def add(self, ok: bool) -> None:
		self.attempts += 1
		if ok:
			self.correct += 1

	@property
	def accuracy(self) -> float:
		return _accuracy(self.correct, self.attempts)


class AnalyticsEngine:
	"""Answer log for one session and the reports derived from it.

	Every report is rebuilt from the full log on each call. Sorting is
	stable, so equal accuracies (or counts) keep the order in which their
	group first appeared.
	"""

	def __init__(self) -> None:
		self._answers: List[Answer] = []

	@property
	def answers(self) -> Tuple[Answer, ...]:
		return tuple(self._answers)

	def __len__(self) -> int:
		return len(self._answers)

	def record(self, answer: Answer) -> None:
		self._answers.append(answer)

	def reset(self) -> None:
		self._answers = []

	def average_response_time(self) -> float:
		if not self._answers:
			return 0.0
		return sum(a.response_time_ms for a in self._answers) / len(self._answers)

	def session_stats(self) -> SessionStats:
		total = len(self._answers)
		correct = sum(1 for a in self._answers if a.is_correct)
		return SessionStats(
			total_questions=total,
			correct_answers=correct,
			accuracy=_accuracy(correct, total),
			weaknesses=self._item_weaknesses(),
			scale_degree_weaknesses=self._scale_degree_weaknesses(),
			interval_variant_weaknesses=self._interval_variant_weaknesses(),
			confusion_matrix=self._confusion_matrix(),
		)

	def _item_weaknesses(self) -> List[WeaknessReport]:
		groups: Dict[str, _Tally] = {}
		for a in self._answers:
			groups.setdefault(a.full_description, _Tally()).add(a.is_correct)
		reports = [
			WeaknessReport(item=item, attempts=t.attempts, correct=t.correct, accuracy=t.accuracy)
			for item, t in groups.items()
		]
		reports.sort(key=lambda r: r.accuracy)
		return reports

	def _scale_degree_weaknesses(self) -> List[ScaleDegreeWeakness]:
		groups: Dict[Tuple[int, str], _Tally] = {}
		for a in self._answers:
			if a.scale_degree is None:
				continue
			groups.setdefault((a.scale_degree, a.category), _Tally()).add(a.is_correct)
		reports = []
		for (degree, category), t in groups.items():
			label = degree_label(degree)
			reports.append(ScaleDegreeWeakness(
				degree=degree,
				label=label,
				category=category,
				attempts=t.attempts,
				correct=t.correct,
				accuracy=t.accuracy,
				context=f"{CATEGORY_PLURALS.get(category, category)} from {label}",
			))
		reports.sort(key=lambda r: r.accuracy)
		return reports

	def _interval_variant_weaknesses(self) -> List[IntervalVariantWeakness]:
		groups: Dict[Tuple[str, str, str], _Tally] = {}
		for a in self._answers:
			if a.category != "interval" or a.direction is None or a.presentation is None:
				continue
			groups.setdefault((a.item_type, a.direction, a.presentation), _Tally()).add(a.is_correct)
		reports = [
			IntervalVariantWeakness(
				quality=quality,
				direction=direction,
				presentation=presentation,
				label=f"{display_name(quality)} ({direction}, {presentation})",
				attempts=t.attempts,
				correct=t.correct,
				accuracy=t.accuracy,
			)
			for (quality, direction, presentation), t in groups.items()
		]
		reports.sort(key=lambda r: r.accuracy)
		return reports

	def _confusion_matrix(self) -> List[ConfusionPair]:
		counts: Dict[Tuple[str, str], int] = {}
		for a in self._answers:
			if a.is_correct:
				continue
			mistook = display_name(a.user_answer)
			actually_was = display_name(a.correct_answer)
			if a.category == "interval":
				suffix = _variant_suffix(a)
				mistook += suffix
				actually_was += suffix
			counts[(mistook, actually_was)] = counts.get((mistook, actually_was), 0) + 1
		pairs = [ConfusionPair(mistook=m, actually_was=w, count=n) for (m, w), n in counts.items()]
		pairs.sort(key=lambda p: -p.count)
		return pairs

	def insights(self) -> List[str]:
		if not self._answers:
			return []
		stats = self.session_stats()
		out: List[str] = []

		if stats.accuracy >= 90:
			out.append("Excellent performance! You're ready for the next level.")
		elif stats.accuracy >= 75:
			out.append("Good work! A bit more practice and you'll master this level.")
		elif stats.accuracy >= 60:
			out.append("Keep practicing. Focus on the items you're struggling with.")
		else:
			out.append("This level is challenging. Slow down and focus on one item at a time.")

		variants = stats.interval_variant_weaknesses
		if variants:
			weak = [v for v in variants if v.attempts >= MIN_ATTEMPTS and v.accuracy < 70]
			if weak:
				out.append(f"Focus on: {weak[0].label} ({weak[0].accuracy:.0f}%)")
			strong = [v for v in reversed(variants) if v.attempts >= MIN_ATTEMPTS and v.accuracy >= 85]
			if strong:
				out.append(f"Strongest: {strong[0].label} ({strong[0].accuracy:.0f}%)")
		else:
			weak_items = [w for w in stats.weaknesses if w.attempts >= MIN_ATTEMPTS and w.accuracy < 60]
			if weak_items:
				out.append("Focus on: " + ", ".join(w.item for w in weak_items[:3]))
			strong_items = [w for w in stats.weaknesses if w.attempts >= MIN_ATTEMPTS and w.accuracy >= 90]
			if strong_items:
				out.append("You're strong at: " + ", ".join(w.item for w in strong_items[:2]))

		weak_degrees = [
			d for d in stats.scale_degree_weaknesses
			if d.attempts >= MIN_ATTEMPTS and d.accuracy < 60
		]
		if weak_degrees:
			out.append("Struggle with: " + ", ".join(d.context for d in weak_degrees[:2]))

		distinct = len({a.item_type for a in self._answers})
		if stats.confusion_matrix and distinct > 2:
			top = stats.confusion_matrix[0]
			if top.count >= MIN_ATTEMPTS:
				out.append(f"Often confuse {top.actually_was} with {top.mistook} ({top.count} times)")

		return out
