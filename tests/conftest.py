import typing

import pytest

import beatgraph.audio.context
import beatgraph.buffers


class FakeClock:

	"""Device clock stub that only moves when a test advances it."""

	def __init__ (self, start: float = 0.0) -> None:

		"""Start the clock at ``start`` seconds."""

		self.current_time = start


	def advance (self, seconds: float) -> None:

		"""Move the clock forward."""

		self.current_time += seconds


class RecordingVoices:

	"""Voice bank stub that records every trigger instead of building audio."""

	def __init__ (self, clock: typing.Optional[FakeClock] = None) -> None:

		"""Optionally keep a clock so triggers can be compared with the time they were issued."""

		self.clock = clock
		self.calls: typing.List[typing.Tuple[str, float, int]] = []
		self.issued_at: typing.List[float] = []


	def trigger (self, instrument: str, when: float, value: int) -> bool:

		"""Record the trigger."""

		self.calls.append((instrument, when, value))

		if self.clock is not None:
			self.issued_at.append(self.clock.current_time)

		return True


class DryBus:

	"""Mix bus stand-in without reverb, so voice output can be inspected directly."""

	def __init__ (self, context: beatgraph.audio.context.AudioContext) -> None:

		"""Connect a persistent gain straight to the destination."""

		self.input = context.create_gain()
		self.input.persistent = True
		self.input.connect(context.destination)


	def connect_voice (self, node: typing.Any) -> None:

		"""Connect a voice chain to the bus input."""

		node.connect(self.input)


@pytest.fixture
def clock () -> FakeClock:

	"""A fake device clock at zero."""

	return FakeClock()


@pytest.fixture
def voices (clock: FakeClock) -> RecordingVoices:

	"""A recording voice bank tied to the fake clock."""

	return RecordingVoices(clock)


@pytest.fixture
def offline () -> beatgraph.audio.context.OfflineAudioContext:

	"""A small mono offline context (8 kHz keeps renders fast)."""

	return beatgraph.audio.context.OfflineAudioContext(sample_rate=8000, channels=1, block_size=256)


@pytest.fixture(autouse=True)
def fresh_shared_buffers () -> typing.Iterator[None]:

	"""Start every test with empty shared buffer caches."""

	beatgraph.buffers.NOISE.clear()
	beatgraph.buffers.REVERB_IMPULSE.clear()

	yield

	beatgraph.buffers.NOISE.clear()
	beatgraph.buffers.REVERB_IMPULSE.clear()
