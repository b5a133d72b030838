from __future__ import annotations

import random
from typing import List, NamedTuple, Optional, Sequence

from .theory import diatonic_chords, diatonic_roots

ALL_DEGREES = (0, 1, 2, 3, 4, 5, 6)


class Candidate(NamedTuple):
	root: str
	quality: str
	degree: Optional[int] = None


def filter_diatonic(
	category: str,
	items: Sequence[str],
	key_root: str,
	allowed_degrees: Optional[Sequence[int]] = None,
	rng: Optional[random.Random] = None,
) -> List[Candidate]:
	"""Answer candidates for `items` that occur naturally in the major key of `key_root`.

	Intervals keep every requested quality and draw a root uniformly from the
	allowed diatonic roots. Triads and seventh chords keep the diatonic chords
	whose quality was requested and whose degree is allowed. Modes are paired
	with the tonic unchanged. An empty result means the requested items and
	degrees never meet in a major key.
	"""
	degrees = ALL_DEGREES if allowed_degrees is None else tuple(allowed_degrees)
	if category == "interval":
		rng = rng or random.Random()
		scale = diatonic_roots(key_root)
		pool = [(d, scale[d]) for d in degrees if 0 <= d < 7]
		if not pool:
			return []
		out = []
		for quality in items:
			degree, root = rng.choice(pool)
			out.append(Candidate(root, quality, degree))
		return out
	if category in ("triad", "seventh_chord"):
		size = 3 if category == "triad" else 4
		return [
			Candidate(root, quality, degree)
			for degree, (root, quality) in enumerate(diatonic_chords(key_root, size))
			if quality in items and degree in degrees
		]
	if category == "mode":
		return [Candidate(key_root, quality) for quality in items]
	raise ValueError(f"no diatonic filter for category {category!r}")
