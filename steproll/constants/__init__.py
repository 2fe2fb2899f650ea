"""Constants for steproll.

This package contains the grid and timing constants shared by the grid store
and the three projectors, plus two submodules:

- ``steproll.constants.durations`` - Duration codes handed to the transport, notation and MIDI collaborators
- ``steproll.constants.velocity`` - MIDI velocity defaults for previews and export

One grid step is a sixteenth note and a measure is one bar of 4/4, so a
measure always holds 16 steps.
"""

STEPS_PER_MEASURE = 16
BEATS_PER_MEASURE = 4
STEPS_PER_BEAT = STEPS_PER_MEASURE // BEATS_PER_MEASURE

INITIAL_MEASURES = 2

DEFAULT_BPM = 120

# Standard MIDI file resolution.
DEFAULT_TICKS_PER_QUARTER = 480

# General MIDI program written at the start of the exported track.
DEFAULT_PROGRAM = 1

# Seconds a grow request holds the in-flight flag after it completes.
GROW_COOLDOWN = 0.1
