import logging
from typing import Any, List, Optional

import altair as alt
import pandas as pd
import streamlit as st

from diatonic_ear.audio import SynthPlayer, join, wav_bytes
from diatonic_ear.curriculum import CURRICULUM, CurriculumLevel, display_name
from diatonic_ear.models import Settings, SessionSummary, Waveform, settings_bounds
from diatonic_ear.storage import load_completed_levels, load_settings, mark_completed, save_settings
from diatonic_ear.trainer import LevelConfigurationError, Session, TrialState


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
log = logging.getLogger("diatonic_ear.app")

st.set_page_config(page_title="Diatonic Ear Trainer", page_icon=None, layout="centered")


def get_state() -> Any:
	if "settings" not in st.session_state:
		st.session_state.settings = load_settings()
	if "completed" not in st.session_state:
		st.session_state.completed = load_completed_levels()
	if "session" not in st.session_state:
		st.session_state.session = None
	if "summary" not in st.session_state:
		st.session_state.summary = None
	if "audio" not in st.session_state:
		st.session_state.audio = None
	if "pending_audio" not in st.session_state:
		st.session_state.pending_audio = []
	if "feedback" not in st.session_state:
		st.session_state.feedback = None  # {"correct": bool, "text": str}
	return st.session_state


def _slider(label: str, field: str, value: Any, step: Any) -> Any:
	# slider range is exactly the range Settings accepts
	low, high = settings_bounds(field)
	return st.sidebar.slider(label, min_value=low, max_value=high, value=value, step=step)


def sidebar_controls(s: Settings) -> Settings:
	st.sidebar.header("Settings")
	waveforms = ["sine", "triangle", "saw"]
	waveform_str = st.sidebar.selectbox("Waveform", waveforms, index=waveforms.index(s.waveform))
	volume = _slider("Volume", "volume", s.volume, 0.05)
	speed = _slider("Playback speed", "playback_speed", s.playback_speed, 0.25)
	per_key = _slider("Questions per key", "questions_per_key", s.questions_per_key, 1)
	keys = _slider("Keys per session", "keys_per_session", s.keys_per_session, 1)
	unlock_all = st.sidebar.checkbox("Unlock all levels", value=s.unlock_all)
	waveform: Waveform = waveform_str  # type: ignore[assignment]
	new_s = Settings(
		waveform=waveform,
		volume=volume,
		playback_speed=speed,
		questions_per_key=per_key,
		keys_per_session=keys,
		unlock_all=unlock_all,
	)
	if new_s != s:
		save_settings(new_s)
	return new_s


def _flush_audio() -> None:
	pending = st.session_state.pending_audio
	if pending:
		st.session_state.audio = wav_bytes(join(pending))
		pending.clear()


def start_session(level: CurriculumLevel, s: Settings) -> bool:
	player = SynthPlayer(
		waveform=s.waveform,
		volume=s.volume,
		speed=s.playback_speed,
		sink=st.session_state.pending_audio.append,
	)
	try:
		session = Session(level, player, settings=s)
	except LevelConfigurationError as exc:
		st.error(str(exc))
		return False
	st.session_state.session = session
	st.session_state.summary = None
	st.session_state.feedback = None
	session.next_question()
	_flush_audio()
	return True


def finish_session(session: Session) -> SessionSummary:
	summary = session.end_session()
	if summary.passed:
		st.session_state.completed = mark_completed(session.level.id)
		log.info("level %s completed at %.1f%%", session.level.id, summary.stats.accuracy)
	st.session_state.session = None
	st.session_state.summary = summary
	return summary


def learning_path(s: Settings, completed: List[str]) -> Optional[CurriculumLevel]:
	st.subheader("Learning path")
	current = CURRICULUM.current_level(completed)
	chosen = None
	for segment in CURRICULUM.segments:
		done = sum(1 for level in segment.levels if level.id in completed)
		with st.expander(f"{segment.name} ({done}/{len(segment.levels)})", expanded=segment.id == CURRICULUM.segment_of(current.id).id):
			st.caption(segment.description)
			for level in segment.levels:
				unlocked = CURRICULUM.is_unlocked(level.id, completed, s.unlock_all)
				mark = "done" if level.id in completed else ("current" if level.id == current.id else "")
				label = f"{level.name} {'[' + mark + ']' if mark else ''}"
				if st.button(label, key=f"level-{level.id}", disabled=not unlocked, use_container_width=True):
					chosen = level
	return chosen


def show_summary(summary: SessionSummary) -> None:
	stats = summary.stats
	st.subheader("Session results")
	st.write(f"Score: {stats.correct_answers} / {stats.total_questions} ({stats.accuracy:.0f}%)")
	st.write(f"Average response time: {summary.average_response_time_ms / 1000:.1f}s")
	if summary.passed:
		st.success("Level passed.")
		nxt = CURRICULUM.next_level(summary.level_id)
		if nxt is not None:
			st.write(f"Next lesson: {nxt.name}")
	for line in summary.insights:
		st.write(line)

	if stats.weaknesses:
		st.subheader("Results by item")
		df = pd.DataFrame([w.model_dump() for w in stats.weaknesses])
		df["accuracy"] = df["accuracy"].round(1)
		st.dataframe(df, hide_index=True)

	if stats.scale_degree_weaknesses:
		st.subheader("Results by scale degree")
		st.dataframe(
			pd.DataFrame([d.model_dump(include={"context", "attempts", "correct", "accuracy"}) for d in stats.scale_degree_weaknesses]),
			hide_index=True,
		)

	if stats.confusion_matrix:
		st.subheader("Confusion heatmap")
		df = pd.DataFrame([p.model_dump() for p in stats.confusion_matrix])
		chart = alt.Chart(df).mark_rect().encode(
			x=alt.X("mistook:N", sort=None),
			y=alt.Y("actually_was:N", sort=None),
			color=alt.Color("count:Q", scale=alt.Scale(scheme="oranges")),
			tooltip=["actually_was", "mistook", "count"],
		).properties(width=400, height=300)
		st.altair_chart(chart, use_container_width=True)


def practice(session: Session) -> None:
	level = session.level
	st.title(level.name)
	st.caption(level.description)
	st.write(
		f"Key: {session.session_key} major · question "
		f"{min(session.answered + 1, session.settings.max_questions)} of {session.settings.max_questions}"
	)

	player = session.player
	assert isinstance(player, SynthPlayer)
	cols = st.columns(3)
	if cols[0].button("Replay", use_container_width=True):
		session.replay()
		_flush_audio()
	if cols[1].button(f"{session.session_key} scale", use_container_width=True):
		player.play_scale_reference(session.session_key)
		_flush_audio()
	if cols[2].button("I-V-I", use_container_width=True):
		player.play_tonic_reference(session.session_key)
		_flush_audio()

	if st.session_state.audio is not None:
		st.audio(st.session_state.audio, format="audio/wav", autoplay=True)

	if st.session_state.feedback is not None:
		if st.session_state.feedback.get("correct"):
			st.success(st.session_state.feedback.get("text", "Correct!"))
		else:
			st.error(st.session_state.feedback.get("text", "Incorrect"))

	st.subheader("What do you hear?")
	btn_cols = st.columns(2)
	for idx, item in enumerate(level.items):
		with btn_cols[idx % 2]:
			disabled = session.state is not TrialState.AWAITING_ANSWER
			if st.button(display_name(item), key=f"opt-{item}", disabled=disabled, use_container_width=True):
				answer = session.submit_answer(item)
				if answer is not None:
					if answer.is_correct:
						st.session_state.feedback = {"correct": True, "text": "Correct!"}
					else:
						text = f"Incorrect, it was {answer.full_description}"
						st.session_state.feedback = {"correct": False, "text": text}
					st.session_state.audio = None
					st.rerun()

	st.markdown("---")
	if session.state is TrialState.ANSWERED:
		if session.is_complete:
			if st.button("See results", use_container_width=True):
				finish_session(session)
				st.rerun()
		elif st.button("Next", use_container_width=True):
			st.session_state.feedback = None
			session.next_question()
			_flush_audio()
			st.rerun()
	if st.button("End Session"):
		finish_session(session)
		st.rerun()


def main() -> None:
	state = get_state()
	s = sidebar_controls(state.settings)
	state.settings = s

	if state.session is not None:
		practice(state.session)
		return

	st.title("Diatonic Ear Trainer")
	if state.summary is not None:
		show_summary(state.summary)
		st.markdown("---")
	chosen = learning_path(s, state.completed)
	if chosen is not None and start_session(chosen, s):
		st.rerun()


if __name__ == "__main__":
	main()
