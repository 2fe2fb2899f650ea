import asyncio
import typing

import pytest

import steproll.event_emitter


def test_sync_listeners_receive_arguments () -> None:

	"""Plain listeners run at once, in registration order."""

	emitter = steproll.event_emitter.EventEmitter()
	calls: typing.List[typing.Tuple[str, int]] = []

	emitter.on("step", lambda step: calls.append(("a", step)))
	emitter.on("step", lambda step: calls.append(("b", step)))

	emitter.emit_sync("step", 3)

	assert calls == [("a", 3), ("b", 3)]


def test_off_removes_listener () -> None:

	"""A removed listener is no longer called; removing twice is an error."""

	emitter = steproll.event_emitter.EventEmitter()
	calls: typing.List[int] = []

	emitter.on("step", calls.append)
	emitter.off("step", calls.append)
	emitter.emit_sync("step", 1)

	assert calls == []
	assert emitter.listeners("step") == []

	with pytest.raises(ValueError):
		emitter.off("step", calls.append)


def test_emit_without_listeners_is_quiet () -> None:

	"""Emitting an event nobody listens to does nothing."""

	steproll.event_emitter.EventEmitter().emit_sync("nothing", 1, 2)


def test_async_listener_skipped_without_loop () -> None:

	"""With no running loop, emit_sync cannot schedule coroutine listeners."""

	emitter = steproll.event_emitter.EventEmitter()
	calls: typing.List[int] = []

	async def listener (value: int) -> None:
		calls.append(value)

	emitter.on("step", listener)
	emitter.emit_sync("step", 1)

	assert calls == []


@pytest.mark.asyncio
async def test_emit_sync_schedules_async_listener () -> None:

	"""Coroutine listeners run on the loop shortly after emit_sync."""

	emitter = steproll.event_emitter.EventEmitter()
	calls: typing.List[int] = []

	async def listener (value: int) -> None:
		calls.append(value)

	emitter.on("step", listener)
	emitter.emit_sync("step", 7)

	assert calls == []

	await asyncio.sleep(0)

	assert calls == [7]


@pytest.mark.asyncio
async def test_emit_async_awaits_all () -> None:

	"""emit_async runs plain listeners and awaits coroutine listeners."""

	emitter = steproll.event_emitter.EventEmitter()
	calls: typing.List[str] = []

	async def slow () -> None:
		await asyncio.sleep(0)
		calls.append("async")

	emitter.on("stop", lambda: calls.append("sync"))
	emitter.on("stop", slow)

	await emitter.emit_async("stop")

	assert sorted(calls) == ["async", "sync"]
