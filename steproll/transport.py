import asyncio
import dataclasses
import logging
import time
import typing

import steproll.constants
import steproll.event_emitter
import steproll.playback


logger = logging.getLogger(__name__)


PartCallback = typing.Callable[[float, steproll.playback.PlaybackEvent], typing.Any]


def parse_time_code (code: str) -> int:

	"""Convert a ``measure:beat:step`` time code to an absolute step index."""

	parts = code.split(":")

	if len(parts) != 3:
		raise ValueError(f"Invalid time code {code!r} (expected measure:beat:step)")

	try:
		measure, beat, step = (int(part) for part in parts)
	except ValueError:
		raise ValueError(f"Invalid time code {code!r} (expected measure:beat:step)") from None

	if measure < 0 or beat < 0 or step < 0:
		raise ValueError(f"Invalid time code {code!r} (negative field)")

	return (
		measure * steproll.constants.STEPS_PER_MEASURE +
		beat * steproll.constants.STEPS_PER_BEAT +
		step
	)


@dataclasses.dataclass
class Part:

	"""
	A scheduled event sequence owned by the transport.

	Events are indexed by their step within the part. A looping part wraps
	around every ``loop_steps`` steps; a one-shot part ends the playback when
	the transport passes its end.
	"""

	callback: PartCallback
	events_by_step: typing.Dict[int, typing.List[steproll.playback.PlaybackEvent]]
	loop: bool
	loop_steps: int
	active: bool = True
	disposed: bool = False

	def events_at (self, step: int) -> typing.List[steproll.playback.PlaybackEvent]:

		"""Events scheduled on one step of the part."""

		if not self.active or self.disposed:
			return []

		return self.events_by_step.get(step, [])


	def stop (self) -> None:

		"""Silence the part; it stays installed."""

		self.active = False


	def dispose (self) -> None:

		"""Release the part. A disposed part never fires again."""

		self.active = False
		self.disposed = True
		self.events_by_step = {}


class Transport:

	"""
	A looping step clock that fires part events on time.

	The clock advances one step (a sixteenth note) at a time. At each step
	the events of the installed part that fall on the position within the
	loop are passed to the part callback together with their scheduled
	``time.perf_counter()`` time, then a ``"step"`` event is emitted with the
	position. Only one part is installed at a time: scheduling a new one
	disposes of the old one.
	"""

	def __init__ (
		self,
		bpm: float = steproll.constants.DEFAULT_BPM,
		render_steps: int = 0
	) -> None:

		"""Create a stopped transport.

		Parameters:
			bpm: Tempo in quarter notes per minute.
			render_steps: When positive, run in render mode: simulate time as
				fast as possible and stop after this many steps. Used for
				offline runs and tests.
		"""

		if render_steps < 0:
			raise ValueError("Render steps cannot be negative")

		self.render_mode: bool = render_steps > 0
		self.render_steps = render_steps

		self.events = steproll.event_emitter.EventEmitter()
		self.task: typing.Optional[asyncio.Task] = None
		self.running = False
		self.position = 0
		self.start_time = 0.0

		self._part: typing.Optional[Part] = None

		self.current_bpm: float = 0
		self.seconds_per_beat = 0.0
		self.seconds_per_step = 0.0

		self.set_bpm(bpm)


	@property
	def bpm (self) -> float:

		"""Current tempo."""

		return self.current_bpm


	@property
	def state (self) -> str:

		"""``"started"`` while the clock runs, else ``"stopped"``."""

		return "started" if self.running else "stopped"


	@property
	def part (self) -> typing.Optional[Part]:

		"""The installed part, if any."""

		return self._part


	def set_bpm (self, bpm: float) -> None:

		"""Change the tempo. Takes effect from the next step."""

		if bpm <= 0:
			raise ValueError("BPM must be positive")

		self.current_bpm = bpm
		self.seconds_per_beat = 60.0 / bpm
		self.seconds_per_step = self.seconds_per_beat / steproll.constants.STEPS_PER_BEAT

		logger.info(f"BPM set to {self.current_bpm:.2f}")


	def to_seconds (self, duration: typing.Union[str, float]) -> float:

		"""Convert a duration to seconds at the current tempo.

		Accepts note values (``"16n"`` = a sixteenth, ``"4n"`` = a beat),
		measure counts (``"2m"``) and plain seconds.
		"""

		if isinstance(duration, (int, float)):
			return float(duration)

		seconds_per_measure = self.seconds_per_beat * steproll.constants.BEATS_PER_MEASURE

		try:
			if duration.endswith("n"):
				value = int(duration[:-1])
				if value <= 0:
					raise ValueError
				return self.seconds_per_beat * 4 / value

			if duration.endswith("m"):
				return float(duration[:-1]) * seconds_per_measure

			return float(duration)

		except ValueError:
			raise ValueError(f"Invalid duration {duration!r}") from None


	def schedule (
		self,
		events: typing.Iterable[steproll.playback.PlaybackEvent],
		callback: PartCallback,
		loop: bool = True,
		loop_measures: int = 1
	) -> Part:

		"""Install a new part, disposing of the previous one first."""

		if loop_measures <= 0:
			raise ValueError("Loop length must be at least one measure")

		self.dispose()

		events_by_step: typing.Dict[int, typing.List[steproll.playback.PlaybackEvent]] = {}

		for event in events:
			step = parse_time_code(event.time)
			events_by_step.setdefault(step, []).append(event)

		part = Part(
			callback = callback,
			events_by_step = events_by_step,
			loop = loop,
			loop_steps = loop_measures * steproll.constants.STEPS_PER_MEASURE
		)

		self._part = part

		logger.debug(f"Scheduled part: {sum(len(v) for v in events_by_step.values())} events over {loop_measures} measures")

		return part


	def dispose (self) -> None:

		"""Dispose of the installed part, if any."""

		if self._part is not None:
			self._part.dispose()
			self._part = None


	async def start (self) -> None:

		"""Start the clock from step 0 in a separate asyncio task."""

		if self.running:
			return

		self.position = 0
		self.running = True
		self.task = asyncio.create_task(self._run_loop())

		logger.info("Transport started")

		await self.events.emit_async("start")


	async def stop (self) -> None:

		"""Stop the clock immediately."""

		if not self.running and self.task is None:
			return

		self.running = False

		task, self.task = self.task, None

		if task is not None and task is not asyncio.current_task():
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass

		logger.info("Transport stopped")

		await self.events.emit_async("stop")


	async def play (self) -> None:

		"""Start and wait until the clock stops on its own (render mode or a one-shot part)."""

		await self.start()

		task = self.task

		try:
			if task:
				await task
		except asyncio.CancelledError:
			pass
		finally:
			await self.stop()


	async def _run_loop (self) -> None:

		"""Main clock loop.

		In normal mode the loop sleeps between steps to keep tempo. In render
		mode it simulates time, advancing exactly one step per iteration.
		"""

		self.start_time = time.perf_counter()
		next_step_time = self.start_time

		while self.running:

			current_time = next_step_time if self.render_mode else time.perf_counter()

			while current_time >= next_step_time:
				self._advance_step(next_step_time)
				next_step_time += self.seconds_per_step

				if not self.running:
					break

			if not self.running:
				break

			if self.render_mode:
				# Let tasks queued by callbacks run between steps.
				await asyncio.sleep(0)
			else:
				sleep_time = next_step_time - time.perf_counter()
				if sleep_time > 0:
					await asyncio.sleep(sleep_time)

		# Ended on its own (render length or one-shot part) rather than through stop().
		if self.task is asyncio.current_task():
			self.task = None
			logger.info("Transport stopped")
			await self.events.emit_async("stop")


	def _advance_step (self, step_time: float) -> None:

		"""Fire the events due at the current position and move on one step."""

		part = self._part
		loop_step = self.position

		if part is not None:

			if part.loop:
				loop_step = self.position % part.loop_steps

			elif self.position >= part.loop_steps:
				logger.info("Part complete.")
				self.running = False
				return

			for event in part.events_at(loop_step):
				try:
					part.callback(step_time, event)
				except Exception:
					logger.exception(f"Part callback failed at {event.time}")

		self.events.emit_sync("step", loop_step)

		self.position += 1

		if self.render_mode and self.position >= self.render_steps:
			self.running = False
