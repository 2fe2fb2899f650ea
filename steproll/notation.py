"""Notation projection: the grid as measures of chord and rest symbols.

Columns are cut into measures of ``STEPS_PER_MEASURE`` steps. Every step
becomes exactly one symbol: a chord carrying the notation keys of its active
pitches, or a rest. Every symbol lasts one sixteenth. Only the first measure
carries the clef and time signature.

Keys follow the notation-library convention (``"c#/4"``), see
``steproll.pitches.notation_key``.

The layout also carries the canvas geometry a renderer needs: 40 pixels per
step plus a margin, one stave per measure. Renderers are expected to be
cleared before each ``render()`` call; the editor never diffs layouts.
"""

import dataclasses
import typing

import steproll.constants
import steproll.constants.durations
import steproll.grid
import steproll.pitches


CLEF = "treble"
TIME_SIGNATURE = f"{steproll.constants.BEATS_PER_MEASURE}/4"

STEP_WIDTH = 40
STAVE_X = 10
STAVE_Y = 20
CANVAS_MARGIN = 100
CANVAS_HEIGHT = 150


@dataclasses.dataclass(frozen=True)
class StepSymbol:

	"""
	One sixteenth: a chord when ``duration`` is a note value, a rest when it ends in ``r``.
	"""

	keys: typing.Tuple[str, ...]
	duration: str

	@property
	def is_rest (self) -> bool:

		"""True for rest symbols."""

		return self.duration.endswith("r")


@dataclasses.dataclass(frozen=True)
class Measure:

	"""
	A stave's worth of step symbols and its annotations.
	"""

	index: int
	symbols: typing.Tuple[StepSymbol, ...]
	clef: typing.Optional[str] = None
	time_signature: typing.Optional[str] = None
	x: int = 0
	width: int = STEP_WIDTH * steproll.constants.STEPS_PER_MEASURE


@dataclasses.dataclass(frozen=True)
class NotationLayout:

	"""
	The measure sequence plus the canvas size for a renderer.
	"""

	measures: typing.Tuple[Measure, ...]
	width: int
	height: int = CANVAS_HEIGHT

	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""JSON-ready form, used by the web UI."""

		return {
			"width": self.width,
			"height": self.height,
			"measures": [
				{
					"index": measure.index,
					"x": measure.x,
					"y": STAVE_Y,
					"width": measure.width,
					"clef": measure.clef,
					"time_signature": measure.time_signature,
					"notes": [{"keys": list(symbol.keys), "duration": symbol.duration} for symbol in measure.symbols]
				}
				for measure in self.measures
			]
		}


class NotationRenderer (typing.Protocol):

	"""
	Anything that can draw a notation layout.
	"""

	def clear (self) -> None:

		"""Remove everything previously drawn."""

		...

	def render (self, layout: NotationLayout) -> None:

		"""Draw a full layout."""

		...


def _sorted_keys (pitches: typing.Iterable[str]) -> typing.Tuple[str, ...]:

	"""Notation keys of a chord, lowest pitch first."""

	ordered = sorted(pitches, key=steproll.pitches.midi_number)

	return tuple(steproll.pitches.notation_key(pitch) for pitch in ordered)


def step_symbol (grid: steproll.grid.Grid, col: int) -> StepSymbol:

	"""The chord or rest symbol for one column."""

	pitches = grid.chord_at(col)

	if not pitches:
		return StepSymbol(keys=(steproll.constants.durations.REST_KEY,), duration=steproll.constants.durations.REST)

	return StepSymbol(keys=_sorted_keys(pitches), duration=steproll.constants.durations.NOTE)


def project (grid: steproll.grid.Grid) -> typing.List[Measure]:

	"""Build the measures of the grid, first measure annotated."""

	steps_per_measure = steproll.constants.STEPS_PER_MEASURE
	stave_width = STEP_WIDTH * steps_per_measure
	measures: typing.List[Measure] = []

	for index in range(grid.num_measures):

		start = index * steps_per_measure
		symbols = tuple(step_symbol(grid, col) for col in range(start, start + steps_per_measure))
		first = index == 0

		measures.append(Measure(
			index = index,
			symbols = symbols,
			clef = CLEF if first else None,
			time_signature = TIME_SIGNATURE if first else None,
			x = STAVE_X + index * stave_width,
			width = stave_width
		))

	return measures


def canvas_width (grid: steproll.grid.Grid) -> int:

	"""Canvas width in pixels, proportional to the step count."""

	return STEP_WIDTH * grid.num_steps + CANVAS_MARGIN


def layout (grid: steproll.grid.Grid) -> NotationLayout:

	"""Project the grid and attach the canvas geometry."""

	return NotationLayout(measures=tuple(project(grid)), width=canvas_width(grid))
