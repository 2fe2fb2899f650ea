import asyncio
import typing

import mido
import pytest

import steproll.notation


class FakeMidiOut:

	"""Minimal MIDI output stub that keeps what it was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		"""Record the outgoing message."""

		self.sent.append(message)

	def close (self) -> None:

		"""Mark the fake device closed."""

		self.closed = True


# Module-level reference so tests can inspect the most recently opened port.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	"""Return a fixed list of MIDI output names for tests."""

	return ["Dummy MIDI", "Other MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	"""Return a fake MIDI output regardless of the name."""

	global _current_fake_output
	fake = FakeMidiOut()
	_current_fake_output = fake
	return fake


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido to use fake MIDI outputs."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


@pytest.fixture
def fake_output (patch_midi: None) -> typing.Callable[[], typing.Optional[FakeMidiOut]]:

	"""Accessor for the fake port opened most recently."""

	return lambda: _current_fake_output


class FakeInstrument:

	"""Instrument stub recording every trigger call."""

	def __init__ (self, loaded: bool = True) -> None:

		self._loaded = loaded
		self.attacks: typing.List[str] = []
		self.chords: typing.List[typing.Tuple[typing.Tuple[str, ...], float, float]] = []
		self.releases = 0
		self.waited = False

	@property
	def loaded (self) -> bool:

		return self._loaded

	def set_loaded (self) -> None:

		self._loaded = True

	async def wait_until_loaded (self) -> None:

		await asyncio.sleep(0)
		self.waited = True
		self._loaded = True

	def trigger_attack (self, name: str) -> None:

		self.attacks.append(name)

	def trigger_attack_release (self, names: typing.Sequence[str], duration: float, start_time: float) -> None:

		self.chords.append((tuple(names), duration, start_time))

	def release_all (self) -> None:

		self.releases += 1


@pytest.fixture
def fake_instrument () -> FakeInstrument:

	"""A loaded instrument stub."""

	return FakeInstrument()


@pytest.fixture
def unloaded_instrument () -> FakeInstrument:

	"""An instrument stub that only loads once waited on."""

	return FakeInstrument(loaded=False)


class RecordingRenderer:

	"""Notation renderer stub that logs clear/render calls in order."""

	def __init__ (self) -> None:

		self.calls: typing.List[str] = []
		self.layouts: typing.List[steproll.notation.NotationLayout] = []

	def clear (self) -> None:

		self.calls.append("clear")

	def render (self, layout: steproll.notation.NotationLayout) -> None:

		self.calls.append("render")
		self.layouts.append(layout)


@pytest.fixture
def renderer () -> RecordingRenderer:

	"""A fresh recording renderer."""

	return RecordingRenderer()


class FakeClock:

	"""Manually advanced monotonic clock."""

	def __init__ (self) -> None:

		self.now = 0.0

	def __call__ (self) -> float:

		return self.now

	def advance (self, seconds: float) -> None:

		self.now += seconds


@pytest.fixture
def clock () -> FakeClock:

	"""A clock frozen at zero until advanced."""

	return FakeClock()
