import base64
import pathlib

import mido
import pytest

import steproll.grid
import steproll.midi_export
import steproll.pitches

from steproll.midi_export import NoteEvent


def test_single_note_example () -> None:

	"""C4 at column 0 at 480 PPQ exports as one event at tick 0."""

	grid = steproll.grid.Grid(pitches=["C4"], num_steps=16)
	grid.toggle(0, 0)

	assert steproll.midi_export.project(grid, ticks_per_quarter=480) == [NoteEvent(pitches=("C4",), start_tick=0, duration="16")]


def test_empty_grid_exports_nothing () -> None:

	"""No sounding steps, no note events."""

	assert steproll.midi_export.project(steproll.grid.Grid()) == []


def test_start_ticks_are_sixteenths () -> None:

	"""Each step is a quarter of ticks_per_quarter."""

	grid = steproll.grid.Grid()
	grid.toggle(0, 1)
	grid.toggle(0, 17)

	assert [event.start_tick for event in steproll.midi_export.project(grid, 480)] == [120, 2040]
	assert [event.start_tick for event in steproll.midi_export.project(grid, 128)] == [32, 544]


def test_chord_is_one_event () -> None:

	"""Simultaneous pitches stay in a single chord event."""

	grid = steproll.grid.Grid()
	grid.toggle(steproll.pitches.row_of("E4"), 0)
	grid.toggle(steproll.pitches.row_of("C4"), 0)

	events = steproll.midi_export.project(grid)

	assert len(events) == 1
	assert set(events[0].pitches) == {"C4", "E4"}


@pytest.mark.parametrize("tpq", [0, -480, 6, 479])
def test_bad_resolution_rejected (tpq: int) -> None:

	"""Resolutions that do not divide into sixteenths are rejected."""

	with pytest.raises(ValueError):
		steproll.midi_export.project(steproll.grid.Grid(), tpq)


def test_duration_ticks () -> None:

	"""Note-value codes convert to ticks."""

	assert steproll.midi_export.duration_ticks("16", 480) == 120
	assert steproll.midi_export.duration_ticks("4", 480) == 480
	assert steproll.midi_export.duration_ticks("1", 480) == 1920

	with pytest.raises(ValueError):
		steproll.midi_export.duration_ticks("16n", 480)


def test_build_midi_file_messages () -> None:

	"""The track has a program change then paired note on/off messages."""

	events = [
		NoteEvent(pitches=("C4", "E4"), start_tick=0),
		NoteEvent(pitches=("G4",), start_tick=120),
	]

	mid = steproll.midi_export.build_midi_file(events, program=1, ticks_per_quarter=480)

	assert mid.ticks_per_beat == 480
	assert len(mid.tracks) == 1

	messages = [m for m in mid.tracks[0] if not m.is_meta]
	assert messages[0].type == "program_change"
	assert messages[0].program == 1

	notes = [(m.type, m.note, m.time) for m in messages[1:]]
	assert notes == [
		("note_on", 60, 0),
		("note_on", 64, 0),
		("note_off", 60, 120),
		("note_off", 64, 0),
		("note_on", 67, 0),
		("note_off", 67, 120),
	]


def test_build_midi_file_tempo () -> None:

	"""A tempo meta message leads the track when bpm is given."""

	mid = steproll.midi_export.build_midi_file([], bpm=100)
	first = mid.tracks[0][0]

	assert first.is_meta
	assert first.type == "set_tempo"
	assert first.tempo == mido.bpm2tempo(100)


def test_build_midi_file_validates_program () -> None:

	"""Program numbers must be valid MIDI."""

	with pytest.raises(ValueError):
		steproll.midi_export.build_midi_file([], program=128)


def test_export_round_trip (tmp_path: pathlib.Path) -> None:

	"""export() writes a file mido reads back with the same notes."""

	grid = steproll.grid.Grid()
	grid.toggle(steproll.pitches.row_of("A4"), 4)
	filename = str(tmp_path / "melody.mid")

	assert steproll.midi_export.export(grid, filename, bpm=120) == filename

	mid = mido.MidiFile(filename)
	note_ons = [m for m in mid.tracks[0] if m.type == "note_on"]

	assert mid.ticks_per_beat == 480
	assert [m.note for m in note_ons] == [69]
	assert note_ons[0].velocity == 64


def test_bytes_and_data_uri () -> None:

	"""The binary payload is a standard MIDI file, also offered as a data URI."""

	grid = steproll.grid.Grid()
	grid.toggle(0, 0)
	mid = steproll.midi_export.build_midi_file(steproll.midi_export.project(grid))

	payload = steproll.midi_export.to_bytes(mid)
	uri = steproll.midi_export.data_uri(mid)

	assert payload.startswith(b"MThd")
	assert uri.startswith("data:audio/midi;base64,")
	assert base64.b64decode(uri.split(",", 1)[1]) == payload
