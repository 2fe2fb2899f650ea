import logging
import time
import typing

import steproll.constants


logger = logging.getLogger(__name__)


class GrowGuard:

	"""
	A timed in-flight flag that lets one grow run and drops the rest.

	The grid grows when the view scrolls near its right edge, and the scroll
	signal repeats many times in quick succession. The flag is taken when a
	grow starts and only released ``cooldown`` seconds after the grow (and
	the redraw it triggers) has finished. Requests that arrive while it is
	held are dropped rather than queued.
	"""

	def __init__ (self, cooldown: float = steproll.constants.GROW_COOLDOWN, clock: typing.Callable[[], float] = time.monotonic) -> None:

		"""Create a free guard.

		Parameters:
			cooldown: Seconds the flag stays held after the action completes.
			clock: Monotonic time source, replaceable in tests.
		"""

		if cooldown < 0:
			raise ValueError("Cooldown cannot be negative")

		self.cooldown = cooldown
		self._clock = clock
		self._held = False
		self._release_at: typing.Optional[float] = None


	@property
	def in_flight (self) -> bool:

		"""True while an action runs or its cooldown has not yet elapsed."""

		if not self._held:
			return False

		if self._release_at is None:
			return True

		if self._clock() >= self._release_at:
			self._held = False
			self._release_at = None
			return False

		return True


	def run (self, action: typing.Callable[[], typing.Any]) -> bool:

		"""Run ``action`` unless the guard is held.

		Returns:
			True if the action ran, False if the request was suppressed.
		"""

		if self.in_flight:
			logger.debug("Grow request suppressed (previous grow still in flight)")
			return False

		self._held = True
		self._release_at = None

		try:
			action()
		finally:
			self._release_at = self._clock() + self.cooldown

		return True


	def release (self) -> None:

		"""Drop the flag immediately."""

		self._held = False
		self._release_at = None
