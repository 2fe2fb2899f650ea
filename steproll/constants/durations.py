"""Duration codes used at the collaborator boundaries.

Every grid step is a sixteenth note. The transport speaks Tone-style note
values (``"16n"``, ``"2m"``), the notation layout and the MIDI export use the
bare note value (``"16"``), and a notation rest appends ``"r"``::

	import steproll.constants.durations as dur

	transport.to_seconds(dur.STEP)      # 0.125 at 120 BPM
	StepSymbol(keys=["c/4"], duration=dur.NOTE)
"""

STEP = "16n"
NOTE = "16"
REST = "16r"

# Pitch used to place a rest glyph on a treble stave.
REST_KEY = "b/4"
