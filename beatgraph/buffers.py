"""Process-wide buffers synthesized once and shared read-only.

Every Hats hit plays the same 100 ms of white noise, and every mix bus uses
the same decaying-noise reverb impulse. Both are built lazily on first use.
A lock guards the first build because the device may render from its own
thread.
"""

import logging
import threading
import typing

import numpy as np

import beatgraph.constants.voices


logger = logging.getLogger(__name__)


class SharedBuffer:

	"""
	A lazily built buffer, memoized per sample rate.
	"""

	def __init__ (self, name: str, builder: typing.Callable[[int], np.ndarray]) -> None:

		"""Wrap ``builder``, which takes a sample rate and returns the buffer."""

		self.name = name
		self.builder = builder
		self.build_count = 0
		self._buffers: typing.Dict[int, np.ndarray] = {}
		self._lock = threading.Lock()


	def get (self, sample_rate: int) -> np.ndarray:

		"""Return the buffer for ``sample_rate``, building it on first request."""

		buffer = self._buffers.get(sample_rate)

		if buffer is not None:
			return buffer

		with self._lock:

			buffer = self._buffers.get(sample_rate)

			if buffer is None:
				buffer = self.builder(sample_rate)
				buffer.setflags(write=False)
				self._buffers[sample_rate] = buffer
				self.build_count += 1
				logger.debug(f"Built shared {self.name} buffer at {sample_rate} Hz: shape {buffer.shape}")

		return buffer


	def clear (self) -> None:

		"""Forget every built buffer and reset the build counter."""

		with self._lock:
			self._buffers = {}
			self.build_count = 0


def build_noise (sample_rate: int) -> np.ndarray:

	"""One channel of uniform white noise in [-1, 1), a tenth of a second long."""

	length = int(sample_rate * beatgraph.constants.voices.NOISE_BUFFER_SECONDS)
	rng = np.random.default_rng()

	return rng.uniform(-1.0, 1.0, size=(1, length))


def build_reverb_impulse (sample_rate: int) -> np.ndarray:

	"""
	Independent noise per channel, faded out by ``(1 - i / length) ** decay``.
	"""

	length = int(beatgraph.constants.voices.REVERB_SECONDS * sample_rate)
	channels = beatgraph.constants.voices.REVERB_CHANNELS
	rng = np.random.default_rng()

	envelope = (1.0 - np.arange(length) / length) ** beatgraph.constants.voices.REVERB_DECAY

	return rng.uniform(-1.0, 1.0, size=(channels, length)) * envelope


NOISE = SharedBuffer("noise", build_noise)
REVERB_IMPULSE = SharedBuffer("reverb impulse", build_reverb_impulse)
