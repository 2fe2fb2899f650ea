import steproll.display
import steproll.editor
import steproll.pitches
import steproll.transport


def _editor () -> steproll.editor.Editor:

	return steproll.editor.Editor(transport=steproll.transport.Transport())


def _row_line (lines, name: str) -> str:

	"""The display line for one pitch row."""

	label = steproll.pitches.display_name(name)

	return next(line for line in lines if line.startswith(label.ljust(6)))


def test_one_line_per_pitch_plus_header () -> None:

	"""A stopped editor shows the measure header and every pitch row."""

	display = steproll.display.GridDisplay(_editor(), width=120)
	display.build()

	lines = display.lines

	assert len(lines) == 1 + 36
	assert lines[0].startswith(" " * 8 + "|1 ")
	assert "|2 " in lines[0]
	assert lines[1].startswith("B5")
	assert lines[-1].startswith("C3    -")


def test_active_cells_and_c_marker () -> None:

	"""Active cells show X, C rows carry the octave marker and bar lines split measures."""

	editor = _editor()
	editor.toggle(steproll.pitches.row_of("C4"), 0)
	editor.toggle(steproll.pitches.row_of("C4"), 17)

	display = steproll.display.GridDisplay(editor, width=120)
	display.build()

	line = _row_line(display.lines, "C4")

	assert line.startswith("C4    - |X . ")
	assert line.count("X") == 2
	assert line.count("|") == 3
	assert line[8 + 1 + 2 * 17 + 1] == "X"


def test_sharps_use_sharp_sign () -> None:

	"""Sharp pitches are labelled with the sharp sign and no C marker."""

	display = steproll.display.GridDisplay(_editor(), width=120)
	display.build()

	assert _row_line(display.lines, "C#4").startswith("C♯4     |")


def test_playhead_marker_lines_up_with_column () -> None:

	"""The playhead arrow sits above the cell it marks."""

	editor = _editor()
	editor.toggle(0, 20)
	editor.playhead = 20

	display = steproll.display.GridDisplay(editor, width=120)
	display.build()

	lines = display.lines
	arrow = lines[0].index("v")

	assert arrow == 8 + 1 + 2 * 20 + 1
	assert lines[2][arrow] == "X"


def test_narrow_width_cuts_measures () -> None:

	"""Only whole measures that fit the width are shown."""

	editor = _editor()
	editor.toggle(0, 20)

	display = steproll.display.GridDisplay(editor, width=60)
	display.build()

	assert display.lines[0].count("|") == 2
	assert "X" not in display.lines[1]


def test_too_narrow_shows_nothing () -> None:

	"""Below the minimum width the display is empty."""

	display = steproll.display.GridDisplay(_editor(), width=30)

	assert display.render() == ""
	assert display.lines == []
