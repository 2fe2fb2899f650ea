"""The pitch table.

The grid has one row per pitch, highest first, so the row index of a pitch is
its position in ``PITCHES``. Names are ``<Letter>[#]<Octave>`` with C4 as
Middle C::

	import steproll.pitches

	steproll.pitches.PITCHES[0]                # "B5"
	steproll.pitches.row_of("C4")              # 23
	steproll.pitches.notation_key("C#4")       # "c#/4"
	steproll.pitches.midi_number("A4")         # 69

The table is a tuple and never changes while the process runs.
"""

import re
import typing


_NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_PITCH_PATTERN = re.compile(r"^([A-Ga-g])([#b]?)(-?\d+)$")

_LETTER_SEMITONES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def _build_table (low_octave: int, high_octave: int) -> typing.Tuple[str, ...]:

	"""Build the descending pitch list from the top of ``high_octave`` to the bottom of ``low_octave``."""

	names: typing.List[str] = []

	for octave in range(high_octave, low_octave - 1, -1):
		for note in reversed(_NOTE_NAMES):
			names.append(f"{note}{octave}")

	return tuple(names)


# B5 down to C3 - three octaves, 36 rows.
PITCHES: typing.Tuple[str, ...] = _build_table(low_octave=3, high_octave=5)


def parse_pitch (name: str) -> typing.Tuple[str, str, int]:

	"""Split a pitch name into letter, accidental and octave.

	Returns:
		``(letter, accidental, octave)`` with the letter upper-cased and the
		accidental either ``""``, ``"#"`` or ``"b"``.

	Raises:
		ValueError: If the name is not ``<Letter>[#|b]<Octave>``.
	"""

	match = _PITCH_PATTERN.match(name)

	if match is None:
		raise ValueError(f"Invalid pitch name {name!r}")

	letter, accidental, octave = match.groups()

	return letter.upper(), accidental, int(octave)


def notation_key (name: str) -> str:

	"""Convert a pitch name to the notation key convention.

	The key is the lower-case letter, the accidental, a slash and the octave:
	``"C#4"`` becomes ``"c#/4"`` and ``"C4"`` becomes ``"c/4"``.
	"""

	letter, accidental, octave = parse_pitch(name)

	return f"{letter.lower()}{accidental}/{octave}"


def midi_number (name: str) -> int:

	"""Return the MIDI note number of a pitch name (C4 = 60)."""

	letter, accidental, octave = parse_pitch(name)

	semitone = _LETTER_SEMITONES[letter]

	if accidental == "#":
		semitone += 1
	elif accidental == "b":
		semitone -= 1

	number = (octave + 1) * 12 + semitone

	if not 0 <= number <= 127:
		raise ValueError(f"Pitch {name!r} is outside the MIDI note range")

	return number


def display_name (name: str) -> str:

	"""Row header label, with the sharp sign typeset."""

	return name.replace("#", "♯")


def is_c (name: str) -> bool:

	"""True for the C rows, which the grid views shade as octave markers."""

	letter, accidental, _ = parse_pitch(name)

	return letter == "C" and not accidental


def row_of (name: str, pitches: typing.Sequence[str] = PITCHES) -> int:

	"""Return the grid row of a pitch name.

	Raises:
		ValueError: If the pitch is not in the table.
	"""

	try:
		return list(pitches).index(name)
	except ValueError:
		raise ValueError(f"Pitch {name!r} is not in the pitch table") from None
