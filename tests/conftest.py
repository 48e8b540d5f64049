import asyncio
import typing

import mido
import pytest

import scalekeys.samples


class FakeMidiOut:

	"""MIDI output stub that records what was sent."""

	def __init__ (self) -> None:

		self.sent: typing.List[mido.Message] = []
		self.closed = False

	def send (self, message: mido.Message) -> None:

		self.sent.append(message)

	def close (self) -> None:

		self.closed = True


# Module-level reference so tests can inspect the most recently opened port.
_current_fake_output: typing.Optional[FakeMidiOut] = None


def _fake_get_output_names () -> typing.List[str]:

	return ["Dummy MIDI"]


def _fake_open_output (name: str) -> FakeMidiOut:

	global _current_fake_output
	_current_fake_output = FakeMidiOut()
	return _current_fake_output


@pytest.fixture
def patch_midi (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Patch mido so no real MIDI device is touched."""

	monkeypatch.setattr(mido, "get_output_names", _fake_get_output_names)
	monkeypatch.setattr(mido, "open_output", _fake_open_output)


class FakeVoice:

	"""Start-once playable handle that remembers the sample it was cloned from."""

	def __init__ (self, sample: str) -> None:

		self.sample = sample
		self.started = False
		self.stopped = False

	def start (self) -> None:

		if self.started:
			raise RuntimeError("Voice has already been started")

		self.started = True

	def stop (self) -> None:

		self.stopped = True

	def clone (self) -> "FakeVoice":

		return FakeVoice(self.sample)


class FakeBackend:

	"""Sample backend that fails for chosen notes and tracks load concurrency."""

	def __init__ (self, failing: typing.Iterable[str] = ()) -> None:

		self.failing = set(failing)
		self.requested: typing.List[str] = []
		self.in_flight = 0
		self.max_in_flight = 0

	async def load (self, address: scalekeys.samples.SampleAddress) -> FakeVoice:

		self.requested.append(address.path)
		self.in_flight += 1
		self.max_in_flight = max(self.max_in_flight, self.in_flight)

		try:
			# Yield so every load is in flight before any completes.
			await asyncio.sleep(0)

			if str(address.note) in self.failing:
				raise FileNotFoundError(address.path)

			return FakeVoice(address.path)

		finally:
			self.in_flight -= 1


@pytest.fixture
def backend () -> FakeBackend:

	return FakeBackend()


@pytest.fixture
def library (backend: FakeBackend) -> scalekeys.samples.SampleLibrary:

	return scalekeys.samples.SampleLibrary(backend)
