SR = 44100

import io
import logging
from typing import Callable, List, Optional, Sequence, Tuple, cast

import numpy as np
import numpy.typing as npt
import soundfile as sf

from .theory import REFERENCE_SCALE, degree_offsets, interval_offsets, midi_to_freq, note_label, note_to_midi

log = logging.getLogger(__name__)

Buffer = npt.NDArray[np.float32]


def tone(freq: float, dur: float, waveform: str = "sine") -> Buffer:
	"""Generate a single tone with a simple attack/release envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		waveform: One of {"sine","triangle","saw"}
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	omega = 2.0 * np.pi * freq
	if waveform == "sine":
		x = np.sin(omega * t).astype(np.float32)
	elif waveform == "triangle":
		# 2/pi * arcsin(sin)
		x = ((2.0 / np.pi) * np.arcsin(np.sin(omega * t))).astype(np.float32)
	else:
		phase = (freq * t).astype(np.float32)
		x = (2.0 * (phase - np.floor(phase + 0.5))).astype(np.float32)

	# 5ms attack, 50ms release
	attack = min(int(0.005 * SR), len(x))
	release = min(int(0.050 * SR), len(x) - attack)
	env = np.ones_like(x, dtype=np.float32)
	if attack > 0:
		env[:attack] = np.linspace(0.0, 1.0, attack, endpoint=False, dtype=np.float32)
	if release > 0:
		env[-release:] = np.linspace(1.0, 0.0, release, endpoint=False, dtype=np.float32)

	return cast(Buffer, (x * env).astype(np.float32))


def _normalize(x: Buffer) -> Buffer:
	max_abs = float(np.max(np.abs(x))) if x.size else 1.0
	if max_abs > 0.0:
		x = (x / max_abs).astype(np.float32)
	return cast(Buffer, x)


def melodic(freqs: Sequence[float], gap: float = 0.10, dur: float = 0.60, waveform: str = "sine") -> Buffer:
	n_gap = np.zeros(int(SR * gap), dtype=np.float32)
	parts: List[Buffer] = []
	for i, f in enumerate(freqs):
		if i:
			parts.append(n_gap)
		parts.append(tone(f, dur, waveform))
	if not parts:
		return np.zeros(0, dtype=np.float32)
	return np.concatenate(parts)


def harmonic(freqs: Sequence[float], dur: float = 1.0, waveform: str = "sine") -> Buffer:
	if not freqs:
		return np.zeros(0, dtype=np.float32)
	x = np.sum([tone(f, dur, waveform) for f in freqs], axis=0).astype(np.float32)
	return _normalize(x)


def join(buffers: Sequence[Buffer], gap: float = 0.5) -> Buffer:
	silence = np.zeros(int(SR * gap), dtype=np.float32)
	parts: List[Buffer] = []
	for x in buffers:
		if parts:
			parts.append(silence)
		parts.append(x)
	if not parts:
		return np.zeros(0, dtype=np.float32)
	return np.concatenate(parts)


def wav_bytes(x: Buffer) -> bytes:
	buf = io.BytesIO()
	sf.write(buf, x, SR, format="WAV")
	return buf.getvalue()


def duration_of(x: Buffer) -> float:
	return len(x) / float(SR)


def _freqs(labels: Sequence[str]) -> List[float]:
	return [midi_to_freq(note_to_midi(n)) for n in labels]


class SynthPlayer:
	"""Renders stimuli to sample buffers and hands each one to `sink`.

	Every play_* call returns the note labels it rendered, which is all the
	trainer needs; `last_buffer` and `last_duration` describe the most recent
	rendering for callers that pace playback or export audio.
	"""

	def __init__(
		self,
		waveform: str = "sine",
		volume: float = 0.9,
		speed: float = 1.0,
		octave: int = 4,
		sink: Optional[Callable[[Buffer], None]] = None,
	) -> None:
		self.waveform = waveform
		self.volume = volume
		self.speed = speed
		self.octave = octave
		self.sink = sink
		self.last_buffer: Buffer = np.zeros(0, dtype=np.float32)
		self.last_duration = 0.0

	def _scaled(self, seconds: float) -> float:
		return seconds / self.speed

	def _emit(self, x: Buffer, labels: List[str]) -> List[str]:
		x = (x * self.volume).astype(np.float32)
		self.last_buffer = x
		self.last_duration = duration_of(x)
		log.debug("rendered %s (%.2fs)", " ".join(labels), self.last_duration)
		if self.sink is not None:
			self.sink(x)
		return labels

	def _labels(self, root: str, offsets: Sequence[int]) -> List[str]:
		return [note_label(root, o, self.octave) for o in offsets]

	def play_interval(
		self,
		root: str,
		quality: str,
		direction: str = "ascending",
		presentation: str = "melodic",
	) -> List[str]:
		labels = self._labels(root, interval_offsets(quality, direction))
		freqs = _freqs(labels)
		if presentation == "harmonic":
			x = harmonic(freqs, dur=self._scaled(1.0), waveform=self.waveform)
		else:
			x = melodic(freqs, gap=self._scaled(0.10), dur=self._scaled(0.60), waveform=self.waveform)
		return self._emit(x, labels)

	def play_chord(self, root: str, offsets: Sequence[int]) -> List[str]:
		labels = self._labels(root, offsets)
		return self._emit(harmonic(_freqs(labels), dur=self._scaled(1.5), waveform=self.waveform), labels)

	def play_scale(self, root: str, pattern: Sequence[int]) -> List[str]:
		labels = self._labels(root, pattern)
		x = melodic(_freqs(labels), gap=self._scaled(0.05), dur=self._scaled(0.25), waveform=self.waveform)
		return self._emit(x, labels)

	def play_scale_degree(self, root: str, degree: int, context: str) -> List[str]:
		offsets = degree_offsets(degree, context)
		if len(offsets) == 1:
			labels = self._labels(root, offsets)
			return self._emit(tone(_freqs(labels)[0], self._scaled(1.0), self.waveform), labels)
		return self.play_chord(root, offsets)

	def play_scale_reference(self, root: str) -> float:
		"""Major scale up and back down; returns its duration in seconds."""
		self.play_scale(root, REFERENCE_SCALE)
		return self.last_duration

	def play_tonic_reference(self, root: str) -> List[str]:
		"""I-V-I in the major key of `root`."""
		progression: List[Tuple[int, ...]] = [(0, 4, 7), (-5, -1, 2), (0, 4, 7)]
		gap = np.zeros(int(SR * self._scaled(0.1)), dtype=np.float32)
		parts: List[Buffer] = []
		labels: List[str] = []
		for chord in progression:
			chord_labels = self._labels(root, chord)
			labels.extend(chord_labels)
			if parts:
				parts.append(gap)
			parts.append(harmonic(_freqs(chord_labels), dur=self._scaled(0.8), waveform=self.waveform))
		return self._emit(np.concatenate(parts), labels)
