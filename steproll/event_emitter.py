import asyncio
import collections
import logging
import typing


logger = logging.getLogger(__name__)

CallbackType = typing.Callable[..., typing.Any]


class EventEmitter:

	"""
	Named notifications for the transport and the editor.

	Listeners may be plain functions or coroutine functions. ``emit_sync``
	is for callers that cannot await (a toggle from the UI); it runs plain
	listeners at once and hands coroutine listeners to the running event
	loop. ``emit_async`` awaits them instead.
	"""

	def __init__ (self) -> None:

		self._listeners: typing.DefaultDict[str, typing.List[CallbackType]] = collections.defaultdict(list)


	def on (self, event_name: str, callback: CallbackType) -> None:

		"""Register a callback for an event name."""

		self._listeners[event_name].append(callback)


	def off (self, event_name: str, callback: CallbackType) -> None:

		"""
		Unregister a previously registered callback.

		Raises ``ValueError`` if the callback is not registered for the event.
		"""

		if callback not in self._listeners.get(event_name, []):
			raise ValueError(f"Callback not registered for event {event_name!r}")

		self._listeners[event_name].remove(callback)


	def listeners (self, event_name: str) -> typing.List[CallbackType]:

		"""A copy of the callbacks registered for an event."""

		return list(self._listeners.get(event_name, []))


	def emit_sync (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""Notify listeners without awaiting.

		Coroutine listeners are scheduled as tasks on the running loop; with no
		running loop they cannot run and are skipped with a warning.
		"""

		for callback in self.listeners(event_name):

			if asyncio.iscoroutinefunction(callback):

				try:
					loop = asyncio.get_running_loop()
				except RuntimeError:
					logger.warning(f"No running event loop - async listener for {event_name!r} skipped")
					continue

				loop.create_task(callback(*args, **kwargs))

			else:
				callback(*args, **kwargs)


	async def emit_async (self, event_name: str, *args: typing.Any, **kwargs: typing.Any) -> None:

		"""Notify listeners, awaiting the async ones together."""

		pending: typing.List[typing.Awaitable[typing.Any]] = []

		for callback in self.listeners(event_name):

			if asyncio.iscoroutinefunction(callback):
				pending.append(callback(*args, **kwargs))

			else:
				callback(*args, **kwargs)

		if pending:
			await asyncio.gather(*pending)
