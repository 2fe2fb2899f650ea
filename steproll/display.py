"""Terminal view of the piano-roll grid.

Renders one row per pitch, highest first, with a bar line between measures.
Active cells show ``X``, empty cells ``.``, and the C rows carry a ``-``
marker so octaves are easy to find. While the loop plays, the header marks
the playhead column with ``v``::

	                 v
	        |1                               |
	C♯4     |. . . . . . . . . . . . . . . . |
	C4    - |X . . . X . . . X . . . . . . . |

Long grids are cut to the terminal width.
"""

import shutil
import typing

import steproll.constants
import steproll.pitches

if typing.TYPE_CHECKING:
	from steproll.editor import Editor


_LABEL_WIDTH = 7
_MIN_TERMINAL_WIDTH = 40


class GridDisplay:

	"""Multi-line ASCII rendering of an editor's grid and playhead.

	Call ``build()`` after a change (the editor's ``"render"`` and
	``"playhead"`` events are the natural triggers), then read ``lines`` or
	``render()``.
	"""

	def __init__ (self, editor: "Editor", width: typing.Optional[int] = None) -> None:

		"""Store the editor to read from.

		Parameters:
			editor: The session whose grid is shown.
			width: Character width to fit into; the terminal width when omitted.
		"""

		self._editor = editor
		self._width = width
		self._lines: typing.List[str] = []

	@property
	def lines (self) -> typing.List[str]:

		"""The most recently built lines."""

		return list(self._lines)

	@staticmethod
	def _cell_char (active: bool) -> str:

		return "X" if active else "."

	def _fit_columns (self, num_steps: int, term_width: int) -> int:

		"""How many steps fit beside the row labels (two characters per step plus bar lines)."""

		steps_per_measure = steproll.constants.STEPS_PER_MEASURE
		measure_width = steps_per_measure * 2 + 1
		available = term_width - _LABEL_WIDTH - 2
		measures = max(1, available // measure_width)

		return min(num_steps, measures * steps_per_measure)

	def _measure_cells (self, values: typing.Sequence[str]) -> str:

		"""Join step characters, inserting a bar line after each measure."""

		steps_per_measure = steproll.constants.STEPS_PER_MEASURE
		chunks = [
			" ".join(values[start:start + steps_per_measure]) + " |"
			for start in range(0, len(values), steps_per_measure)
		]

		return "|" + "".join(chunks)

	def build (self) -> None:

		"""Rebuild the lines from the current grid and playhead."""

		term_width = self._width if self._width is not None else shutil.get_terminal_size(fallback=(80, 24)).columns

		if term_width < _MIN_TERMINAL_WIDTH:
			self._lines = []
			return

		grid = self._editor.grid
		playhead = self._editor.playhead
		columns = self._fit_columns(grid.num_steps, term_width)
		steps_per_measure = steproll.constants.STEPS_PER_MEASURE
		pad = " " * (_LABEL_WIDTH + 1)

		lines: typing.List[str] = []

		if playhead is not None and playhead < columns:
			# One character for the opening bar, two per step, one per earlier bar line.
			offset = 1 + playhead * 2 + playhead // steps_per_measure
			lines.append(pad + " " * offset + "v")

		numbers = []
		for measure in range(columns // steps_per_measure):
			numbers.append(str(measure + 1).ljust(steps_per_measure * 2))
		lines.append(pad + "|" + "|".join(numbers) + "|")

		for row, pitch in enumerate(grid.pitches):
			label = steproll.pitches.display_name(pitch)[:_LABEL_WIDTH - 1].ljust(_LABEL_WIDTH - 1)
			marker = "-" if steproll.pitches.is_c(pitch) else " "
			cells = [self._cell_char(active) for active in grid.row(row)[:columns]]
			lines.append(f"{label}{marker} {self._measure_cells(cells)}")

		self._lines = lines

	def render (self) -> str:

		"""Build and return the view as one string."""

		self.build()

		return "\n".join(self._lines)
