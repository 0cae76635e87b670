import threading
import typing

import numpy as np

import beatgraph.audio.nodes
import beatgraph.constants


class AudioContext:

	"""
	Owns an audio graph and the clock it renders against.

	``current_time`` is derived from the number of frames rendered so far, so
	it is the device's own notion of time rather than the wall clock. Node
	start/stop times and parameter automation are all expressed on this
	clock.

	Rendering and graph edits are serialized by ``lock``. The device renders
	from its own thread while the sequencer connects new voices from the
	event loop.
	"""

	def __init__ (self, sample_rate: int = beatgraph.constants.DEFAULT_SAMPLE_RATE, channels: int = beatgraph.constants.DEFAULT_CHANNELS) -> None:

		"""Create an empty graph whose clock reads zero."""

		if sample_rate <= 0:
			raise ValueError("Sample rate must be positive")

		if channels not in (1, 2):
			raise ValueError("Only mono and stereo output are supported")

		self.sample_rate = int(sample_rate)
		self.channels = int(channels)
		self.lock = threading.RLock()
		self.frame = 0
		self.destination = beatgraph.audio.nodes.DestinationNode(self)


	@property
	def current_time (self) -> float:

		"""Seconds of audio rendered so far."""

		return self.frame / self.sample_rate


	def time_to_frame (self, when: float) -> int:

		"""Convert context seconds to the nearest frame index."""

		return int(round(when * self.sample_rate))


	def create_oscillator (self) -> beatgraph.audio.nodes.OscillatorNode:

		"""Create an unstarted sine oscillator."""

		return beatgraph.audio.nodes.OscillatorNode(self)


	def create_buffer_source (self) -> beatgraph.audio.nodes.BufferSourceNode:

		"""Create an unstarted buffer player."""

		return beatgraph.audio.nodes.BufferSourceNode(self)


	def create_gain (self) -> beatgraph.audio.nodes.GainNode:

		"""Create a unity gain stage."""

		return beatgraph.audio.nodes.GainNode(self)


	def create_biquad_filter (self) -> beatgraph.audio.nodes.BiquadFilterNode:

		"""Create a low-pass filter."""

		return beatgraph.audio.nodes.BiquadFilterNode(self)


	def create_convolver (self) -> beatgraph.audio.nodes.ConvolverNode:

		"""Create a convolver with no impulse."""

		return beatgraph.audio.nodes.ConvolverNode(self)


	def render (self, frames: int) -> np.ndarray:

		"""
		Render the next ``frames`` frames and advance the clock.

		Returns a ``(channels, frames)`` array.
		"""

		with self.lock:
			block = self.destination.pull(self.frame, frames)
			self.frame += frames

		return block


class OfflineAudioContext (AudioContext):

	"""
	A context that renders only when asked, as fast as the CPU allows.

	Time stands still between calls to :meth:`advance`, which makes it the
	natural clock for rendering to a file and for tests.
	"""

	def __init__ (
		self,
		sample_rate: int = beatgraph.constants.DEFAULT_SAMPLE_RATE,
		channels: int = beatgraph.constants.DEFAULT_CHANNELS,
		block_size: int = beatgraph.constants.DEFAULT_BLOCKSIZE
	) -> None:

		"""Create an offline context that keeps everything it renders."""

		super().__init__(sample_rate=sample_rate, channels=channels)

		if block_size <= 0:
			raise ValueError("Block size must be positive")

		self.block_size = block_size
		self._blocks: typing.List[np.ndarray] = []


	def advance (self, seconds: float) -> np.ndarray:

		"""Render until the clock reaches ``current_time + seconds`` and return the new audio."""

		target = self.time_to_frame(self.current_time + seconds)
		blocks: typing.List[np.ndarray] = []

		while self.frame < target:
			blocks.append(self.render(min(self.block_size, target - self.frame)))

		self._blocks.extend(blocks)

		if not blocks:
			return np.zeros((self.channels, 0))

		return np.concatenate(blocks, axis=1)


	def rendered (self) -> np.ndarray:

		"""All audio rendered so far, as one ``(channels, frames)`` array."""

		if not self._blocks:
			return np.zeros((self.channels, 0))

		return np.concatenate(self._blocks, axis=1)
