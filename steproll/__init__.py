"""
steproll - a piano-roll step sequencer core for Python.

Notes live on a pitch-by-step grid of booleans: one row per pitch, one
column per sixteenth note, sixteen columns to the measure. Clicking a cell
flips it. Everything else is derived from the grid, one way:

- **Playback.** Each sounding step becomes a chord event at a
  ``measure:beat:step`` time code. The transport loops those events over
  the length of the grid and calls the instrument on time.
- **Notation.** The grid is cut into measures of chord and rest symbols,
  keyed for a notation library (``"c#/4"``), with clef and time signature on
  the first measure.
- **MIDI export.** Each sounding step becomes one chord event at an
  absolute tick, written to a standard MIDI file with ``mido``.

The grid grows a measure at a time when the view scrolls near its end; a
timed guard drops the repeated requests a scroll produces.

Minimal example:

    ```python
    import steproll
    import steproll.pitches

    editor = steproll.Editor(bpm=120)
    editor.toggle(steproll.pitches.row_of("C4"), 0)
    editor.toggle(steproll.pitches.row_of("E4"), 0)
    editor.export_midi("melody.mid")
    ```

Package-level exports: ``Editor``, ``Grid``, ``Transport``, ``MidiInstrument``, ``PITCHES``.
"""

import steproll.editor
import steproll.grid
import steproll.instrument
import steproll.pitches
import steproll.transport


Editor = steproll.editor.Editor
Grid = steproll.grid.Grid
Transport = steproll.transport.Transport
MidiInstrument = steproll.instrument.MidiInstrument
PITCHES = steproll.pitches.PITCHES
