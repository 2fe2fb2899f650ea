"""Command-line entry point.

Usage::

	python -m steproll --config song.yaml --export melody.mid
	python -m steproll --config song.yaml --play --bars 8
	python -m steproll --web

The YAML configuration is optional::

	editor:
	  bpm: 110
	  measures: 2
	  grow_cooldown: 0.1
	midi:
	  device_name: "IAC Driver Bus 1"
	  program: 1
	  ticks_per_quarter: 480
	notes:
	  - [C4, 0]
	  - [E4, 4]
	  - [G4, 8]
"""

import argparse
import asyncio
import logging
import os
import typing

import yaml

import steproll.constants
import steproll.display
import steproll.editor
import steproll.instrument
import steproll.pitches
import steproll.web_ui


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def load_config (config_path: str = 'config.yaml') -> dict:

	"""
	Load configuration from a YAML file.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	with open(config_path, 'r') as f:
		return yaml.safe_load(f) or {}


def build_editor (config: dict, instrument: typing.Optional[steproll.instrument.Instrument] = None) -> steproll.editor.Editor:

	"""
	Create an editor from the ``editor`` and ``midi`` sections of a configuration.
	"""

	editor_config = config.get('editor', {}) or {}
	midi_config = config.get('midi', {}) or {}

	return steproll.editor.Editor(
		instrument = instrument,
		bpm = editor_config.get('bpm', steproll.constants.DEFAULT_BPM),
		measures = editor_config.get('measures', steproll.constants.INITIAL_MEASURES),
		grow_cooldown = editor_config.get('grow_cooldown', steproll.constants.GROW_COOLDOWN),
		ticks_per_quarter = midi_config.get('ticks_per_quarter', steproll.constants.DEFAULT_TICKS_PER_QUARTER),
		program = midi_config.get('program', steproll.constants.DEFAULT_PROGRAM)
	)


def seed_notes (editor: steproll.editor.Editor, notes: typing.Iterable[typing.Sequence[typing.Any]]) -> int:

	"""
	Switch on the configured ``[pitch, step]`` cells, widening the grid as needed.

	Returns the number of cells switched on. Cells listed twice stay on.
	"""

	count = 0

	for entry in notes:

		if len(entry) != 2:
			raise ValueError(f"Note entry {entry!r} must be [pitch, step]")

		pitch, step = str(entry[0]), int(entry[1])
		row = steproll.pitches.row_of(pitch, editor.grid.pitches)

		if step < 0:
			raise ValueError(f"Note entry {entry!r} has a negative step")

		while step >= editor.grid.num_steps:
			editor.grid.grow(steproll.constants.STEPS_PER_MEASURE)

		if not editor.grid.is_active(row, step):
			editor.toggle(row, step)
			count += 1

	return count


async def run_playback (editor: steproll.editor.Editor, bars: typing.Optional[int] = None) -> None:

	"""
	Loop the grid until ``bars`` measures have played, or forever.
	"""

	await editor.start_playback()

	try:
		if bars:
			await asyncio.sleep(editor.transport.to_seconds(f"{bars}m"))
		else:
			await asyncio.Event().wait()
	finally:
		await editor.stop_playback()


async def run_web (editor: steproll.editor.Editor, port: int) -> None:

	"""
	Serve the editor to a browser front end until interrupted.
	"""

	web = steproll.web_ui.WebUI(editor, ws_port=port)
	web.start()

	try:
		await asyncio.Event().wait()
	finally:
		web.stop()
		await editor.stop_playback()


def main (argv: typing.Optional[typing.List[str]] = None) -> None:

	"""
	Main entry point for the steproll application.
	"""

	parser = argparse.ArgumentParser(description="steproll piano-roll step sequencer")
	parser.add_argument("--config", default="config.yaml", help="YAML configuration file (default: config.yaml)")
	parser.add_argument("--export", metavar="PATH", help="Write the grid to a standard MIDI file")
	parser.add_argument("--play", action="store_true", help="Loop the grid on a MIDI output")
	parser.add_argument("--bars", type=int, default=None, help="Stop playback after this many bars")
	parser.add_argument("--web", action="store_true", help="Serve the WebSocket UI")
	parser.add_argument("--port", type=int, default=8765, help="WebSocket port (default: 8765)")
	parser.add_argument("--device", default=None, help="MIDI output device name")
	args = parser.parse_args(argv)

	logger.info("steproll starting...")

	config = load_config(args.config)
	midi_config = config.get('midi', {}) or {}

	instrument: typing.Optional[steproll.instrument.MidiInstrument] = None

	if args.play or args.web:
		instrument = steproll.instrument.MidiInstrument(
			output_device_name = args.device or midi_config.get('device_name'),
			program = midi_config.get('program', steproll.constants.DEFAULT_PROGRAM)
		)

	editor = build_editor(config, instrument)
	seed_notes(editor, config.get('notes', []) or [])

	print(steproll.display.GridDisplay(editor).render())

	if args.export:
		editor.export_midi(args.export)

	if instrument is not None and not instrument.load():
		logger.error("No MIDI output - playback disabled.")
		return

	try:
		if args.web:
			asyncio.run(run_web(editor, args.port))
		elif args.play:
			asyncio.run(run_playback(editor, args.bars))
	except KeyboardInterrupt:
		logger.info("Stopping...")
	finally:
		if instrument is not None:
			instrument.close()


if __name__ == "__main__":
	main()
