import re
from typing import Dict, List, Optional, Tuple, Union

NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

MAJOR_SCALE: Tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)
NATURAL_MINOR_SCALE: Tuple[int, ...] = (0, 2, 3, 5, 7, 8, 10)

SCALES: Dict[str, Tuple[int, ...]] = {
	"major": MAJOR_SCALE,
	"natural_minor": NATURAL_MINOR_SCALE,
}

INTERVALS: Dict[str, int] = {
	"minor_2nd": 1,
	"major_2nd": 2,
	"minor_3rd": 3,
	"major_3rd": 4,
	"perfect_4th": 5,
	"tritone": 6,
	"perfect_5th": 7,
	"minor_6th": 8,
	"major_6th": 9,
	"minor_7th": 10,
	"major_7th": 11,
	"octave": 12,
}

TRIADS: Dict[str, Tuple[int, ...]] = {
	"major": (0, 4, 7),
	"minor": (0, 3, 7),
	"diminished": (0, 3, 6),
	"augmented": (0, 4, 8),
}

SEVENTH_CHORDS: Dict[str, Tuple[int, ...]] = {
	"major_7": (0, 4, 7, 11),
	"minor_7": (0, 3, 7, 10),
	"dominant_7": (0, 4, 7, 10),
	"half_diminished_7": (0, 3, 6, 10),
	"diminished_7": (0, 3, 6, 9),
	"minor_major_7": (0, 3, 7, 11),
	"augmented_major_7": (0, 4, 8, 11),
}

MODES: Dict[str, Tuple[int, ...]] = {
	"ionian": (0, 2, 4, 5, 7, 9, 11),
	"dorian": (0, 2, 3, 5, 7, 9, 10),
	"phrygian": (0, 1, 3, 5, 7, 8, 10),
	"lydian": (0, 2, 4, 6, 7, 9, 11),
	"mixolydian": (0, 2, 4, 5, 7, 9, 10),
	"aeolian": (0, 2, 3, 5, 7, 8, 10),
	"locrian": (0, 1, 3, 5, 6, 8, 10),
}

SCALE_DEGREES = ["1", "2", "3", "4", "5", "6", "7"]

# (third, fifth) above the chord root -> triad quality
TRIAD_QUALITIES: Dict[Tuple[int, int], str] = {
	(4, 7): "major",
	(3, 7): "minor",
	(3, 6): "diminished",
	(4, 8): "augmented",
}

# (third, fifth, seventh) above the chord root -> seventh chord quality
SEVENTH_QUALITIES: Dict[Tuple[int, int, int], str] = {
	(4, 7, 11): "major_7",
	(3, 7, 10): "minor_7",
	(4, 7, 10): "dominant_7",
	(3, 6, 10): "half_diminished_7",
	(3, 6, 9): "diminished_7",
	(3, 7, 11): "minor_major_7",
	(4, 8, 11): "augmented_major_7",
}

TRIAD_FALLBACK = "diminished"
SEVENTH_FALLBACK = "half_diminished_7"

A4_MIDI = 69
A4_FREQ = 440.0
C4_MIDI = 60

_LABEL_RE = re.compile(r"([A-G]#?)(-?\d+)")


def pitch_index(note: str) -> int:
	try:
		return NOTES.index(note)
	except ValueError:
		raise ValueError(f"unknown pitch class: {note!r}") from None


def transpose(note: str, semitones: int) -> str:
	return NOTES[(pitch_index(note) + semitones) % 12]


def note_label(root: str, semitones: int = 0, octave: int = 4) -> str:
	"""Label such as "E5" for the note `semitones` above `root` in `octave`.

	Offsets past B carry into the next octave and negative offsets borrow
	from the one below.
	"""
	absolute = pitch_index(root) + semitones
	return f"{NOTES[absolute % 12]}{octave + absolute // 12}"


def note_to_midi(label: str) -> int:
	m = _LABEL_RE.fullmatch(label)
	if m is None:
		raise ValueError(f"unknown note label: {label!r}")
	name, octave = m.group(1), int(m.group(2))
	return C4_MIDI + (octave - 4) * 12 + pitch_index(name)


def midi_to_freq(m: int) -> float:
	return float(A4_FREQ * (2.0 ** ((m - A4_MIDI) / 12.0)))


def scale_pattern(scale_type: str) -> Tuple[int, ...]:
	return SCALES[scale_type]


def semitones_of(category: str, quality: str) -> Union[int, Tuple[int, ...]]:
	"""Semitone content of a quality label.

	Intervals give a single distance (1-12); triads, seventh chords and
	modes give offsets from the root, starting at 0.
	"""
	if category == "interval":
		return INTERVALS[quality]
	if category == "triad":
		return TRIADS[quality]
	if category == "seventh_chord":
		return SEVENTH_CHORDS[quality]
	if category == "mode":
		return MODES[quality]
	if category == "scale_degree":
		return MAJOR_SCALE[int(quality) - 1]
	raise KeyError(category)


def _span(pattern: Tuple[int, ...], degree: int, steps: int) -> int:
	return (pattern[(degree + steps) % 7] - pattern[degree]) % 12


def chord_offsets(scale_type: str, degree: int, size: int = 3) -> Tuple[int, ...]:
	"""Stack thirds on `degree` of the scale; size 3 for triads, 4 for sevenths."""
	pattern = scale_pattern(scale_type)
	return tuple(_span(pattern, degree, 2 * i) for i in range(size))


def quality_of_degree(scale_type: str, degree: int, size: int = 3) -> str:
	third, fifth, *rest = chord_offsets(scale_type, degree, size)
	if size == 3:
		return TRIAD_QUALITIES.get((third, fifth), TRIAD_FALLBACK)
	return SEVENTH_QUALITIES.get((third, fifth, rest[0]), SEVENTH_FALLBACK)


def diatonic_roots(key: str, scale_type: str = "major") -> List[str]:
	return [transpose(key, s) for s in scale_pattern(scale_type)]


def diatonic_chords(key: str, size: int = 3, scale_type: str = "major") -> List[Tuple[str, str]]:
	return [
		(root, quality_of_degree(scale_type, degree, size))
		for degree, root in enumerate(diatonic_roots(key, scale_type))
	]


def scale_degree_of(root: str, key: str) -> Optional[int]:
	"""0-based position of `root` in the major scale of `key`, or None if it is not diatonic."""
	offset = (pitch_index(root) - pitch_index(key) + 12) % 12
	if offset in MAJOR_SCALE:
		return MAJOR_SCALE.index(offset)
	return None


def interval_offsets(quality: str, direction: str = "ascending") -> Tuple[int, int]:
	d = INTERVALS[quality]
	if direction == "descending":
		d = -d
	return 0, d


def category_items(category: str) -> List[str]:
	if category == "interval":
		return list(INTERVALS.keys())
	if category == "triad":
		return list(TRIADS.keys())
	if category == "seventh_chord":
		return list(SEVENTH_CHORDS.keys())
	if category == "mode":
		return list(MODES.keys())
	if category == "scale_degree":
		return list(SCALE_DEGREES)
	raise KeyError(category)


# context -> (scale type, notes per stimulus); 1 means a single scale tone
DEGREE_CONTEXTS: Dict[str, Tuple[str, int]] = {
	"major": ("major", 1),
	"natural_minor": ("natural_minor", 1),
	"major_triads": ("major", 3),
	"minor_triads": ("natural_minor", 3),
	"major_7ths": ("major", 4),
	"minor_7ths": ("natural_minor", 4),
}


def degree_offsets(degree: int, context: str) -> Tuple[int, ...]:
	"""Offsets from the tonic for the stimulus heard on `degree` in `context`."""
	scale_type, size = DEGREE_CONTEXTS[context]
	base = scale_pattern(scale_type)[degree]
	if size == 1:
		return (base,)
	return tuple(base + o for o in chord_offsets(scale_type, degree, size))


# major scale up one octave and back down, the cue for a new session key
REFERENCE_SCALE: Tuple[int, ...] = MAJOR_SCALE + (12,) + MAJOR_SCALE[::-1]
