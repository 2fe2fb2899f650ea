"""The sound source the editor plays through.

The editor does not synthesize anything. It asks an ``Instrument`` to start
a pitch when a cell is switched on and to play each chord of the loop for
one step. ``MidiInstrument`` does this by sending note messages to a MIDI
output port, so any hardware or software synth can voice the grid.

An instrument reports when it is ready through ``loaded`` /
``wait_until_loaded()``; the editor waits for it before starting playback.
"""

import asyncio
import logging
import time
import typing

import mido

import steproll.constants
import steproll.constants.velocity
import steproll.midi_utils
import steproll.pitches


logger = logging.getLogger(__name__)


class Instrument (typing.Protocol):

	"""
	What the editor needs from a sound source.
	"""

	@property
	def loaded (self) -> bool:

		"""True once the instrument can make sound."""

		...

	async def wait_until_loaded (self) -> None:

		"""Return once ``loaded`` is True."""

		...

	def trigger_attack (self, name: str) -> None:

		"""Start a pitch now."""

		...

	def trigger_attack_release (self, names: typing.Sequence[str], duration: float, start_time: float) -> None:

		"""Play pitches at ``start_time`` (``time.perf_counter()`` clock) for ``duration`` seconds."""

		...

	def release_all (self) -> None:

		"""Silence everything that is sounding."""

		...


class MidiInstrument:

	"""
	An instrument that voices pitches on a MIDI output port.
	"""

	def __init__ (
		self,
		output_device_name: typing.Optional[str] = None,
		channel: int = 0,
		program: typing.Optional[int] = steproll.constants.DEFAULT_PROGRAM,
		velocity: int = steproll.constants.velocity.DEFAULT_VELOCITY,
		release: float = 1.0
	) -> None:

		"""Configure the instrument. Nothing is opened until ``load()``.

		Parameters:
			output_device_name: MIDI output port; the first available port when omitted.
			channel: MIDI channel (0-15).
			program: Program change sent after the port opens, or None for none.
			velocity: Note-on velocity.
			release: Seconds a previewed pitch (``trigger_attack``) sounds before its note-off.
		"""

		if not 0 <= channel <= 15:
			raise ValueError("Channel must be between 0 and 15")

		if release < 0:
			raise ValueError("Release cannot be negative")

		self.output_device_name = output_device_name
		self.channel = channel
		self.program = program
		self.velocity = velocity
		self.release = release

		self.midi_out: typing.Any = None
		self.active_notes: typing.Set[int] = set()
		self._loaded = asyncio.Event()

		# At most one pending note-off per note; a retrigger cuts it short.
		self._pending_offs: typing.Dict[int, asyncio.TimerHandle] = {}
		self._scheduled: typing.Dict[int, asyncio.TimerHandle] = {}
		self._next_strike = 0


	@property
	def loaded (self) -> bool:

		"""True once an output port is open."""

		return self._loaded.is_set()


	def load (self) -> bool:

		"""Open the output port and signal load completion. Returns success."""

		if self.loaded:
			return True

		device_name, midi_out = steproll.midi_utils.select_output_device(self.output_device_name)

		if device_name is None:
			logger.error("Instrument not loaded: no MIDI output available")
			return False

		self.output_device_name = device_name
		self.midi_out = midi_out

		if self.program is not None:
			self._send(mido.Message('program_change', channel=self.channel, program=self.program))

		self._loaded.set()
		logger.info(f"Instrument loaded on '{device_name}'")

		return True


	async def wait_until_loaded (self) -> None:

		"""Wait for ``load()`` to succeed."""

		await self._loaded.wait()


	def _send (self, message: mido.Message) -> None:

		"""Send a message, logging (not raising) device failures."""

		if self.midi_out is None:
			return

		try:
			self.midi_out.send(message)
		except Exception:
			logger.exception("MIDI send failed (device may be disconnected)")


	def note_on (self, name: str) -> None:

		"""Send a note-on for a pitch name, first ending the pitch if it is already sounding."""

		note = steproll.pitches.midi_number(name)

		if note in self.active_notes:
			self._end_note(note)

		self.active_notes.add(note)
		self._send(mido.Message('note_on', channel=self.channel, note=note, velocity=self.velocity))


	def note_off (self, name: str) -> None:

		"""Send a note-off for a pitch name."""

		self._end_note(steproll.pitches.midi_number(name))


	def _end_note (self, note: int) -> None:

		"""Cancel the note's pending release, if any, and send its note-off now."""

		handle = self._pending_offs.pop(note, None)

		if handle is not None:
			handle.cancel()

		self.active_notes.discard(note)
		self._send(mido.Message('note_off', channel=self.channel, note=note, velocity=0))


	def _strike (self, name: str, duration: float) -> None:

		"""Start a pitch and arm its single pending release."""

		self.note_on(name)

		note = steproll.pitches.midi_number(name)

		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			return

		self._pending_offs[note] = loop.call_later(duration, self._end_note, note)


	def trigger_attack (self, name: str) -> None:

		"""Start a pitch now and release it after ``release`` seconds when a loop is running."""

		if not self.loaded:
			return

		self._strike(name, self.release)


	def trigger_attack_release (self, names: typing.Sequence[str], duration: float, start_time: float) -> None:

		"""Strike pitches at ``start_time`` and release them ``duration`` seconds later.

		A pitch struck again before its release (the same pitch on the next
		step) is ended first, so note-ons and note-offs for a pitch always
		alternate. Must be called from the running event loop (the transport
		callback is).
		"""

		if not self.loaded:
			return

		loop = asyncio.get_running_loop()
		delay = max(0.0, start_time - time.perf_counter())

		for name in names:
			key = self._next_strike
			self._next_strike += 1
			self._scheduled[key] = loop.call_later(delay, self._scheduled_strike, key, name, duration)


	def _scheduled_strike (self, key: int, name: str, duration: float) -> None:

		self._scheduled.pop(key, None)
		self._strike(name, duration)


	def release_all (self) -> None:

		"""Cancel every scheduled strike and release, and note-off every sounding pitch."""

		for handle in self._scheduled.values():
			handle.cancel()

		self._scheduled.clear()

		for handle in self._pending_offs.values():
			handle.cancel()

		self._pending_offs.clear()

		for note in list(self.active_notes):
			self._send(mido.Message('note_off', channel=self.channel, note=note, velocity=0))

		self.active_notes.clear()


	def close (self) -> None:

		"""Silence and close the port."""

		self.release_all()

		if self.midi_out is not None:
			self.midi_out.close()
			self.midi_out = None

		self._loaded.clear()
