"""Playback projection: the grid as a list of timed chord events.

Each step with at least one active pitch becomes one ``PlaybackEvent`` whose
time code is ``measure:beat:step`` (4 beats per measure, 4 steps per beat).
Silent steps produce nothing - there are no rest events in the stream. The
list is handed to the transport, which loops it over the grid's length::

	schedule = steproll.playback.schedule(grid, bpm=120)
	transport.schedule(schedule.events, callback, loop=schedule.loop, loop_measures=schedule.loop_measures)
"""

import dataclasses
import typing

import steproll.constants
import steproll.constants.durations
import steproll.grid


@dataclasses.dataclass(frozen=True)
class PlaybackEvent:

	"""
	A chord to trigger at a transport time code.
	"""

	time: str
	notes: typing.Tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class PlaybackSchedule:

	"""
	Everything the transport needs to loop the grid.
	"""

	events: typing.Tuple[PlaybackEvent, ...]
	bpm: float
	loop_measures: int
	step_duration: str = steproll.constants.durations.STEP
	loop: bool = True

	@property
	def loop_end (self) -> str:

		"""Loop length as a measure code, e.g. ``"2m"``."""

		return f"{self.loop_measures}m"


def time_code (col: int) -> str:

	"""Return the ``measure:beat:step`` time code of a grid column."""

	if col < 0:
		raise ValueError("Column cannot be negative")

	measure, position = divmod(col, steproll.constants.STEPS_PER_MEASURE)
	beat, step = divmod(position, steproll.constants.STEPS_PER_BEAT)

	return f"{measure}:{beat}:{step}"


def project (grid: steproll.grid.Grid) -> typing.List[PlaybackEvent]:

	"""Build the playback events for every sounding step, in step order."""

	return [
		PlaybackEvent(time=time_code(col), notes=tuple(pitches))
		for col, pitches in grid.active_columns()
	]


def schedule (
	grid: steproll.grid.Grid,
	bpm: float = steproll.constants.DEFAULT_BPM,
	step_duration: str = steproll.constants.durations.STEP
) -> PlaybackSchedule:

	"""Project the grid and bundle the events with tempo and loop length."""

	if bpm <= 0:
		raise ValueError("BPM must be positive")

	return PlaybackSchedule(
		events = tuple(project(grid)),
		bpm = bpm,
		loop_measures = grid.num_measures,
		step_duration = step_duration
	)
