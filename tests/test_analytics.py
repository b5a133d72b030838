import itertools

from diatonic_ear.analytics import AnalyticsEngine
from diatonic_ear.models import Question
from diatonic_ear.trainer import build_answer

_ids = itertools.count()


def answer(category, correct, chosen, root="C", key="C", direction=None, presentation=None, context=None, elapsed=1.0):
	q = Question(
		id=f"q_{next(_ids)}",
		category=category,
		correct_answer=correct,
		root_note=root,
		created_at=100.0,
		context=context,
		direction=direction,
		presentation=presentation,
	)
	return build_answer(q, chosen, key, submitted_at=100.0 + elapsed)


def engine_with(answers):
	eng = AnalyticsEngine()
	for a in answers:
		eng.record(a)
	return eng


def test_empty_session_stats():
	stats = AnalyticsEngine().session_stats()
	assert stats.total_questions == 0
	assert stats.correct_answers == 0
	assert stats.accuracy == 0
	assert stats.weaknesses == []
	assert stats.scale_degree_weaknesses == []
	assert stats.interval_variant_weaknesses == []
	assert stats.confusion_matrix == []
	assert AnalyticsEngine().insights() == []
	assert AnalyticsEngine().average_response_time() == 0.0


def test_triad_scenario():
	answers = [answer("triad", "major", "major") for _ in range(7)]
	answers += [answer("triad", "major", "minor") for _ in range(3)]
	eng = engine_with(answers)
	stats = eng.session_stats()
	assert stats.total_questions == 10
	assert stats.correct_answers == 7
	assert stats.accuracy == 70.0
	top = stats.confusion_matrix[0]
	assert (top.mistook, top.actually_was, top.count) == ("Minor", "Major", 3)
	assert stats.weaknesses[0].item == "C Major"
	assert stats.scale_degree_weaknesses[0].label == "I"
	assert stats.scale_degree_weaknesses[0].context == "triads from I"
	insights = eng.insights()
	assert insights[0].startswith("Keep practicing")
	# only one quality was ever asked, so the confusion is not worth reporting
	assert not any(line.startswith("Often confuse") for line in insights)


def test_stats_are_idempotent_and_full_description():
	eng = engine_with([answer("triad", "minor", "major", root="D"), answer("triad", "minor", "minor", root="D")])
	assert eng.session_stats() == eng.session_stats()
	for a in eng.answers:
		assert a.full_description == "D Minor"


def test_item_weakness_order_is_stable():
	eng = engine_with([
		answer("triad", "major", "minor", root="F"),
		answer("triad", "minor", "major", root="A"),
		answer("triad", "major", "major", root="G"),
	])
	items = [w.item for w in eng.session_stats().weaknesses]
	assert items == ["F Major", "A Minor", "G Major"]


def test_confusion_counts_sum_to_incorrect():
	eng = engine_with([
		answer("triad", "major", "minor"),
		answer("triad", "minor", "diminished", root="D"),
		answer("triad", "minor", "diminished", root="E"),
		answer("triad", "diminished", "diminished", root="B"),
		answer("triad", "major", "minor", root="F"),
	])
	stats = eng.session_stats()
	incorrect = stats.total_questions - stats.correct_answers
	assert sum(p.count for p in stats.confusion_matrix) == incorrect
	assert [(p.mistook, p.actually_was) for p in stats.confusion_matrix] == [("Minor", "Major"), ("Diminished", "Minor")]


def test_scale_degree_grouping_by_degree_and_category():
	eng = engine_with([
		answer("triad", "minor", "major", root="D"),
		answer("triad", "minor", "minor", root="D"),
		answer("interval", "major_3rd", "minor_3rd", root="D"),
		answer("triad", "major", "major", root="G"),
	])
	reports = eng.session_stats().scale_degree_weaknesses
	assert [(r.label, r.category, r.accuracy) for r in reports] == [
		("ii", "interval", 0.0),
		("ii", "triad", 50.0),
		("V", "triad", 100.0),
	]


def test_scale_degree_and_mode_answers_have_no_degree():
	eng = engine_with([
		answer("scale_degree", "3", "3", root="E", key="E", context="major"),
		answer("mode", "dorian", "ionian", root="E", key="E"),
	])
	assert all(a.scale_degree is None for a in eng.answers)
	assert eng.session_stats().scale_degree_weaknesses == []


def test_out_of_range_degree_is_bucketed_as_is():
	a = answer("triad", "major", "major").model_copy(update={"scale_degree": 9})
	reports = engine_with([a]).session_stats().scale_degree_weaknesses
	assert reports[0].degree == 9
	assert reports[0].label == "9"


def test_interval_variants_and_insights():
	answers = [
		answer("interval", "minor_3rd", "major_3rd", direction="descending", presentation="melodic"),
		answer("interval", "minor_3rd", "major_3rd", direction="descending", presentation="melodic"),
		answer("interval", "major_3rd", "major_3rd", direction="descending", presentation="melodic"),
		answer("interval", "major_3rd", "major_3rd", direction="descending", presentation="melodic"),
	]
	eng = engine_with(answers)
	stats = eng.session_stats()
	labels = [v.label for v in stats.interval_variant_weaknesses]
	assert labels == ["Minor 3rd (descending, melodic)", "Major 3rd (descending, melodic)"]
	assert stats.confusion_matrix[0].mistook == "Major 3rd (descending, melodic)"
	assert stats.confusion_matrix[0].actually_was == "Minor 3rd (descending, melodic)"
	insights = eng.insights()
	assert insights == [
		"This level is challenging. Slow down and focus on one item at a time.",
		"Focus on: Minor 3rd (descending, melodic) (0%)",
		"Strongest: Major 3rd (descending, melodic) (100%)",
		"Struggle with: intervals from I",
	]


def test_no_variants_without_direction():
	eng = engine_with([answer("interval", "major_3rd", "major_3rd")])
	stats = eng.session_stats()
	assert stats.interval_variant_weaknesses == []


def test_insight_cascade_order():
	answers = []
	answers += [answer("triad", "major", "major") for _ in range(6)]
	answers += [answer("triad", "minor", "diminished", root="D") for _ in range(2)]
	answers += [answer("triad", "diminished", "diminished", root="B") for _ in range(2)]
	eng = engine_with(answers)
	insights = eng.insights()
	assert insights == [
		"Good work! A bit more practice and you'll master this level.",
		"Focus on: D Minor",
		"You're strong at: C Major, B Diminished",
		"Struggle with: triads from ii",
		"Often confuse Minor with Diminished (2 times)",
	]


def test_excellent_band():
	eng = engine_with([answer("mode", "ionian", "ionian") for _ in range(9)] + [answer("mode", "dorian", "ionian")])
	assert eng.insights()[0] == "Excellent performance! You're ready for the next level."


def test_reset_and_response_time():
	eng = engine_with([answer("triad", "major", "major", elapsed=0.5), answer("triad", "major", "major", elapsed=1.5)])
	assert eng.average_response_time() == 1000.0
	eng.reset()
	assert len(eng) == 0
	assert eng.session_stats().total_questions == 0


def _capped_session():
	answers = []
	for root, quality in [("C", "major"), ("D", "minor"), ("E", "minor"), ("F", "major")]:
		answers += [answer("triad", quality, "diminished", root=root) for _ in range(2)]
	for root, quality in [("G", "major"), ("A", "minor"), ("B", "diminished")]:
		answers += [answer("triad", quality, quality, root=root) for _ in range(2)]
	return engine_with(answers)


def test_insight_lists_are_capped():
	assert _capped_session().insights() == [
		"This level is challenging. Slow down and focus on one item at a time.",
		"Focus on: C Major, D Minor, E Minor",
		"You're strong at: G Major, A Minor",
		"Struggle with: triads from I, triads from ii",
		"Often confuse Major with Diminished (4 times)",
	]


def test_equal_counts_keep_first_seen_order():
	stats = _capped_session().session_stats()
	assert [(p.mistook, p.actually_was, p.count) for p in stats.confusion_matrix] == [
		("Diminished", "Major", 4),
		("Diminished", "Minor", 4),
	]
	assert [d.label for d in stats.scale_degree_weaknesses] == ["I", "ii", "iii", "IV", "V", "vi", "vii°"]
	assert [w.item for w in stats.weaknesses][:4] == ["C Major", "D Minor", "E Minor", "F Major"]


def test_single_attempt_variant_is_not_a_focus():
	eng = engine_with([
		answer("interval", "minor_3rd", "major_3rd", direction="descending", presentation="melodic"),
		answer("interval", "major_3rd", "major_3rd", direction="descending", presentation="melodic"),
		answer("interval", "major_3rd", "major_3rd", direction="descending", presentation="melodic"),
	])
	assert eng.insights() == [
		"Keep practicing. Focus on the items you're struggling with.",
		"Strongest: Major 3rd (descending, melodic) (100%)",
	]
