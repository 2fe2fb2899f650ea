"""MIDI velocity constants.

Velocity is the MIDI attack strength (0-127).
"""

# Playback and toggle previews
DEFAULT_VELOCITY = 100

# Exported notes (half of full scale)
EXPORT_VELOCITY = 64

# MIDI standard range
MIN_VELOCITY = 0
MAX_VELOCITY = 127
