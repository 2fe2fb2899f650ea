import base64
import dataclasses
import io
import logging
import typing

import mido

import steproll.constants
import steproll.constants.durations
import steproll.constants.velocity
import steproll.grid
import steproll.pitches


logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class NoteEvent:

	"""
	A chord at an absolute tick, as handed to the MIDI file writer.
	"""

	pitches: typing.Tuple[str, ...]
	start_tick: int
	duration: str = steproll.constants.durations.NOTE


def ticks_per_step (ticks_per_quarter: int) -> int:

	"""Ticks in one grid step (a sixteenth note)."""

	if ticks_per_quarter <= 0:
		raise ValueError("Ticks per quarter must be positive")

	if ticks_per_quarter % steproll.constants.STEPS_PER_BEAT != 0:
		raise ValueError(f"Ticks per quarter must be a multiple of {steproll.constants.STEPS_PER_BEAT}")

	return ticks_per_quarter // steproll.constants.STEPS_PER_BEAT


def duration_ticks (duration: str, ticks_per_quarter: int) -> int:

	"""Convert a bare note-value code (``"4"``, ``"16"``) to ticks."""

	try:
		value = int(duration)
	except ValueError:
		raise ValueError(f"Invalid duration code {duration!r}") from None

	if value <= 0 or (ticks_per_quarter * 4) % value != 0:
		raise ValueError(f"Duration {duration!r} does not divide into whole ticks at {ticks_per_quarter} PPQ")

	return ticks_per_quarter * 4 // value


def project (grid: steproll.grid.Grid, ticks_per_quarter: int = steproll.constants.DEFAULT_TICKS_PER_QUARTER) -> typing.List[NoteEvent]:

	"""
	One chord event per sounding step, in step order.

	Simultaneous pitches stay together in one event so the file writer can
	emit them as a chord. Silent steps are left out.
	"""

	step_ticks = ticks_per_step(ticks_per_quarter)

	return [
		NoteEvent(pitches=tuple(pitches), start_tick=col * step_ticks)
		for col, pitches in grid.active_columns()
	]


def build_midi_file (
	events: typing.Iterable[NoteEvent],
	program: int = steproll.constants.DEFAULT_PROGRAM,
	ticks_per_quarter: int = steproll.constants.DEFAULT_TICKS_PER_QUARTER,
	bpm: typing.Optional[float] = None,
	velocity: int = steproll.constants.velocity.EXPORT_VELOCITY,
	channel: int = 0
) -> mido.MidiFile:

	"""Write note events into a single-track MIDI file.

	Parameters:
		events: Chord events with absolute start ticks.
		program: General MIDI program sent before the first note.
		ticks_per_quarter: File resolution; start ticks must already use it.
		bpm: When given, a ``set_tempo`` meta message leads the track.
		velocity: Note-on velocity for every note.
		channel: MIDI channel (0-15).
	"""

	if not 0 <= program <= 127:
		raise ValueError("Program must be between 0 and 127")

	if not steproll.constants.velocity.MIN_VELOCITY < velocity <= steproll.constants.velocity.MAX_VELOCITY:
		raise ValueError("Velocity must be between 1 and 127")

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = ticks_per_quarter
	track = mido.MidiTrack()
	mid.tracks.append(track)

	if bpm is not None:
		track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))

	track.append(mido.Message('program_change', channel=channel, program=program, time=0))

	# (tick, order, message) - note offs sort ahead of note ons at the same tick.
	timeline: typing.List[typing.Tuple[int, int, mido.Message]] = []

	for event in events:

		length = duration_ticks(event.duration, ticks_per_quarter)

		for pitch in event.pitches:
			note = steproll.pitches.midi_number(pitch)
			timeline.append((event.start_tick, 1, mido.Message('note_on', channel=channel, note=note, velocity=velocity)))
			timeline.append((event.start_tick + length, 0, mido.Message('note_off', channel=channel, note=note, velocity=0)))

	timeline.sort(key=lambda item: (item[0], item[1]))

	last_tick = 0

	for tick, _, message in timeline:
		message.time = tick - last_tick
		track.append(message)
		last_tick = tick

	return mid


def to_bytes (midi_file: mido.MidiFile) -> bytes:

	"""Serialize a MIDI file to its binary form."""

	buffer = io.BytesIO()
	midi_file.save(file=buffer)

	return buffer.getvalue()


def data_uri (midi_file: mido.MidiFile) -> str:

	"""A ``data:`` URI a browser can download directly."""

	encoded = base64.b64encode(to_bytes(midi_file)).decode("ascii")

	return f"data:audio/midi;base64,{encoded}"


def export (
	grid: steproll.grid.Grid,
	filename: str = "melody.mid",
	program: int = steproll.constants.DEFAULT_PROGRAM,
	ticks_per_quarter: int = steproll.constants.DEFAULT_TICKS_PER_QUARTER,
	bpm: typing.Optional[float] = None
) -> str:

	"""Project the grid and save it as a MIDI file. Returns the filename."""

	events = project(grid, ticks_per_quarter)
	mid = build_midi_file(events, program=program, ticks_per_quarter=ticks_per_quarter, bpm=bpm)

	logger.info(f"Saving MIDI export ({len(events)} chord events) to {filename}...")

	mid.save(filename)

	logger.info(f"Saved {filename}")

	return filename
