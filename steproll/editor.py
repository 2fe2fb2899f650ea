import logging
import typing

import mido

import steproll.constants
import steproll.constants.durations
import steproll.event_emitter
import steproll.grid
import steproll.grow_guard
import steproll.instrument
import steproll.midi_export
import steproll.notation
import steproll.pitches
import steproll.playback
import steproll.transport


logger = logging.getLogger(__name__)


class Editor:

	"""
	One piano-roll editing session.

	The editor owns the grid and is the only place it is mutated. Each
	mutation is followed by the projections that depend on it: the notation
	is redrawn from scratch, and when the loop is playing the playback part
	is disposed of and rescheduled from the new grid. The MIDI projection is
	built on demand.

	Example:
		```python
		editor = steproll.editor.Editor(bpm=110)
		editor.toggle(steproll.pitches.row_of("C4"), 0)
		editor.export_midi("melody.mid")
		```

	Events (register with ``editor.events.on(name, callback)``):
		``"toggle"`` (row, col, value), ``"grow"`` (num_steps),
		``"render"`` (layout), ``"playhead"`` (col or None), ``"start"``, ``"stop"``.
	"""

	def __init__ (
		self,
		instrument: typing.Optional[steproll.instrument.Instrument] = None,
		bpm: float = steproll.constants.DEFAULT_BPM,
		measures: int = steproll.constants.INITIAL_MEASURES,
		pitches: typing.Sequence[str] = steproll.pitches.PITCHES,
		notation_renderer: typing.Optional[steproll.notation.NotationRenderer] = None,
		grow_cooldown: float = steproll.constants.GROW_COOLDOWN,
		ticks_per_quarter: int = steproll.constants.DEFAULT_TICKS_PER_QUARTER,
		program: int = steproll.constants.DEFAULT_PROGRAM,
		transport: typing.Optional[steproll.transport.Transport] = None,
		guard: typing.Optional[steproll.grow_guard.GrowGuard] = None
	) -> None:

		"""Create a session with an empty grid.

		Parameters:
			instrument: Sound source for previews and playback; silent when omitted.
			bpm: Initial tempo.
			measures: Initial grid width in measures.
			pitches: Row pitch names, highest first.
			notation_renderer: Receives the notation layout after every change.
			grow_cooldown: Seconds a grow keeps later grow requests suppressed.
			ticks_per_quarter: MIDI export resolution.
			program: General MIDI program for the export.
			transport: Clock to play on; a new one at ``bpm`` when omitted.
			guard: Grow guard; a new one with ``grow_cooldown`` when omitted.
		"""

		if measures <= 0:
			raise ValueError("Measures must be positive")

		self.grid = steproll.grid.Grid(pitches=pitches, num_steps=measures * steproll.constants.STEPS_PER_MEASURE)
		self.instrument = instrument
		self.notation_renderer = notation_renderer
		self.ticks_per_quarter = ticks_per_quarter
		self.program = program

		self.transport = transport if transport is not None else steproll.transport.Transport(bpm=bpm)
		self.guard = guard if guard is not None else steproll.grow_guard.GrowGuard(cooldown=grow_cooldown)
		self.events = steproll.event_emitter.EventEmitter()

		if transport is not None:
			self.transport.set_bpm(bpm)

		self.playhead: typing.Optional[int] = None
		self._playing = False

		self.transport.events.on("step", self._on_step)
		self.transport.events.on("stop", self._on_transport_stop)

		self.redraw()


	@property
	def bpm (self) -> float:

		"""Current tempo."""

		return self.transport.bpm


	@property
	def playing (self) -> bool:

		"""True between ``start_playback()`` and ``stop_playback()`` while the transport runs."""

		return self._playing and self.transport.state == "started"


	@property
	def ready (self) -> bool:

		"""True once the instrument (if any) has finished loading."""

		return self.instrument is None or self.instrument.loaded


	# ------------------------------------------------------------------
	# Grid mutation
	# ------------------------------------------------------------------

	def toggle (self, row: int, col: int) -> bool:

		"""Flip a cell, preview it, and refresh the projections.

		Raises:
			IndexError: If the cell is outside the grid.
		"""

		value = self.grid.toggle(row, col)

		if value and self.instrument is not None and self.instrument.loaded:
			self.instrument.trigger_attack(self.grid.pitches[row])

		self.redraw()
		self._reschedule_if_playing()

		self.events.emit_sync("toggle", row, col, value)

		return value


	def request_grow (self) -> bool:

		"""Append one measure unless a grow is already in flight.

		Returns:
			True if the grid grew, False if the request was suppressed.
		"""

		grew = self.guard.run(self._grow)

		if grew:
			self.events.emit_sync("grow", self.grid.num_steps)

		return grew


	def _grow (self) -> None:

		"""Grow by a measure and re-project everything before the guard releases."""

		self.grid.grow(steproll.constants.STEPS_PER_MEASURE)
		self.redraw()
		self._reschedule_if_playing()

		logger.info(f"Measure added - total steps: {self.grid.num_steps}")


	def set_bpm (self, bpm: float) -> None:

		"""Change the tempo; a playing loop picks it up on the next step."""

		self.transport.set_bpm(bpm)


	# ------------------------------------------------------------------
	# Projections
	# ------------------------------------------------------------------

	def redraw (self) -> None:

		"""Rebuild the notation layout and hand it to the renderer on a cleared canvas."""

		self.notation = steproll.notation.layout(self.grid)

		if self.notation_renderer is not None:
			self.notation_renderer.clear()
			self.notation_renderer.render(self.notation)

		self.events.emit_sync("render", self.notation)


	def playback_schedule (self) -> steproll.playback.PlaybackSchedule:

		"""The playback projection at the current tempo."""

		return steproll.playback.schedule(self.grid, bpm=self.transport.bpm)


	def midi_events (self) -> typing.List[steproll.midi_export.NoteEvent]:

		"""The MIDI projection at the session's resolution."""

		return steproll.midi_export.project(self.grid, self.ticks_per_quarter)


	def midi_file (self) -> mido.MidiFile:

		"""Build the export as a ``mido.MidiFile``."""

		return steproll.midi_export.build_midi_file(
			self.midi_events(),
			program = self.program,
			ticks_per_quarter = self.ticks_per_quarter,
			bpm = self.transport.bpm
		)


	def midi_bytes (self) -> bytes:

		"""The export as standard MIDI file bytes."""

		return steproll.midi_export.to_bytes(self.midi_file())


	def export_midi (self, filename: str = "melody.mid") -> str:

		"""Save the export to ``filename`` and return it."""

		return steproll.midi_export.export(
			self.grid,
			filename = filename,
			program = self.program,
			ticks_per_quarter = self.ticks_per_quarter,
			bpm = self.transport.bpm
		)


	# ------------------------------------------------------------------
	# Playback
	# ------------------------------------------------------------------

	def _schedule_part (self) -> steproll.transport.Part:

		"""Dispose of the current part and install a fresh projection."""

		schedule = self.playback_schedule()

		self.transport.dispose()

		return self.transport.schedule(
			schedule.events,
			self._on_event,
			loop = schedule.loop,
			loop_measures = schedule.loop_measures
		)


	def _reschedule_if_playing (self) -> None:

		"""Keep a playing loop in step with the grid."""

		if self.playing:
			self._schedule_part()


	def _on_event (self, start_time: float, event: steproll.playback.PlaybackEvent) -> None:

		"""Transport callback: play the chord for one step."""

		if self.instrument is None:
			return

		duration = self.transport.to_seconds(steproll.constants.durations.STEP)
		self.instrument.trigger_attack_release(event.notes, duration, start_time)


	def _on_step (self, col: int) -> None:

		"""Move the playhead highlight."""

		if not self._playing:
			return

		self.playhead = col
		self.events.emit_sync("playhead", col)


	def _on_transport_stop (self) -> None:

		"""The clock stopped, by request or on its own: playback is over."""

		self._playing = False
		self._clear_playhead()


	def _clear_playhead (self) -> None:

		if self.playhead is None:
			return

		self.playhead = None
		self.events.emit_sync("playhead", None)


	async def start_playback (self) -> None:

		"""Wait for the instrument, then loop the current grid from the top."""

		if self.playing:
			return

		if self.instrument is not None and not self.instrument.loaded:
			logger.info("Waiting for instrument to load...")
			await self.instrument.wait_until_loaded()

		self._schedule_part()
		self._playing = True

		await self.transport.start()
		await self.events.emit_async("start")


	async def stop_playback (self) -> None:

		"""Stop at once and clear the playhead highlight."""

		self._playing = False

		await self.transport.stop()

		if self.transport.part is not None:
			self.transport.part.stop()

		if self.instrument is not None:
			self.instrument.release_all()

		self._clear_playhead()

		await self.events.emit_async("stop")


	async def toggle_playback (self) -> bool:

		"""Start when stopped, stop when playing. Returns the new playing state."""

		if self.transport.state == "started":
			await self.stop_playback()
		else:
			await self.start_playback()

		return self.playing
