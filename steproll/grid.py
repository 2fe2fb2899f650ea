import logging
import typing

import steproll.constants
import steproll.pitches


logger = logging.getLogger(__name__)


class Grid:

	"""
	The pitch-by-step note matrix.

	``active[row][col]`` is True when the pitch of ``row`` sounds at step
	``col``. The grid is the single source of truth for the editor: the
	playback, notation and MIDI projections all read it and never write it.
	It changes only through ``toggle()`` and ``grow()``.
	"""

	def __init__ (
		self,
		pitches: typing.Sequence[str] = steproll.pitches.PITCHES,
		num_steps: int = steproll.constants.INITIAL_MEASURES * steproll.constants.STEPS_PER_MEASURE
	) -> None:

		"""Create an empty grid.

		Parameters:
			pitches: Row pitch names, highest first.
			num_steps: Initial width; must be a positive multiple of
				``STEPS_PER_MEASURE``.
		"""

		if not pitches:
			raise ValueError("Grid needs at least one pitch")

		_check_step_count(num_steps, "Step count")

		self.pitches: typing.Tuple[str, ...] = tuple(pitches)
		self._num_steps = num_steps
		self._cells: typing.List[typing.List[bool]] = [[False] * num_steps for _ in self.pitches]


	@property
	def num_pitches (self) -> int:

		"""Number of rows."""

		return len(self.pitches)


	@property
	def num_steps (self) -> int:

		"""Number of columns in every row."""

		return self._num_steps


	@property
	def num_measures (self) -> int:

		"""Number of whole measures (the width is always a whole number of them)."""

		return self._num_steps // steproll.constants.STEPS_PER_MEASURE


	def _check_cell (self, row: int, col: int) -> None:

		"""Reject out-of-range coordinates, including negative ones."""

		if not 0 <= row < self.num_pitches:
			raise IndexError(f"Row {row} out of range (0-{self.num_pitches - 1})")

		if not 0 <= col < self._num_steps:
			raise IndexError(f"Column {col} out of range (0-{self._num_steps - 1})")


	def toggle (self, row: int, col: int) -> bool:

		"""Flip one cell and return its new state.

		Raises:
			IndexError: If ``row`` or ``col`` is outside the grid.
		"""

		self._check_cell(row, col)

		value = not self._cells[row][col]
		self._cells[row][col] = value

		return value


	def grow (self, extra_steps: int = steproll.constants.STEPS_PER_MEASURE) -> None:

		"""Append ``extra_steps`` empty columns to every row.

		The widened rows are built aside and swapped in with the new width in
		one assignment, so a reader sees either the old grid or the new one.
		"""

		_check_step_count(extra_steps, "Grow step count")

		padding = [False] * extra_steps
		cells = [row + padding for row in self._cells]

		self._cells, self._num_steps = cells, self._num_steps + extra_steps

		logger.info(f"Grid grown by {extra_steps} steps to {self._num_steps} ({self.num_measures} measures)")


	def is_active (self, row: int, col: int) -> bool:

		"""Return the state of one cell."""

		self._check_cell(row, col)

		return self._cells[row][col]


	def row (self, row: int) -> typing.Tuple[bool, ...]:

		"""Return a read-only copy of one row."""

		if not 0 <= row < self.num_pitches:
			raise IndexError(f"Row {row} out of range (0-{self.num_pitches - 1})")

		return tuple(self._cells[row])


	def chord_at (self, col: int) -> typing.List[str]:

		"""Pitches active at a step, in row order. Empty means a rest."""

		if not 0 <= col < self._num_steps:
			raise IndexError(f"Column {col} out of range (0-{self._num_steps - 1})")

		cells = self._cells

		return [pitch for row, pitch in enumerate(self.pitches) if cells[row][col]]


	def active_columns (self) -> typing.Iterator[typing.Tuple[int, typing.List[str]]]:

		"""Yield ``(col, pitches)`` for every step that has at least one active pitch."""

		for col in range(self._num_steps):

			pitches = self.chord_at(col)

			if pitches:
				yield col, pitches


	def active_cells (self) -> typing.List[typing.Tuple[int, int]]:

		"""All active ``(row, col)`` coordinates, row by row."""

		return [
			(row, col)
			for row, cells in enumerate(self._cells)
			for col, value in enumerate(cells)
			if value
		]


def _check_step_count (steps: int, label: str) -> None:

	"""Step counts must be whole measures."""

	if steps <= 0:
		raise ValueError(f"{label} must be positive")

	if steps % steproll.constants.STEPS_PER_MEASURE != 0:
		raise ValueError(f"{label} must be a multiple of {steproll.constants.STEPS_PER_MEASURE}")
