import logging
import typing

import numpy as np
import sounddevice as sd

import beatgraph.audio.context
import beatgraph.constants


logger = logging.getLogger(__name__)


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[int]]:

	"""
	Find an audio output device.

	If ``device_name`` is given, the first output device whose name contains it
	is selected. Otherwise the system default output is used.

	Returns:
		A tuple of ``(device_name, device_index)``, or ``(None, None)`` when no
		suitable device exists.
	"""

	try:
		devices = sd.query_devices()
	except Exception:
		logger.exception("Failed to query audio devices")
		return None, None

	outputs = [(index, device["name"]) for index, device in enumerate(devices) if device["max_output_channels"] > 0]
	logger.info(f"Available audio outputs: {[name for _, name in outputs]}")

	if not outputs:
		logger.error("No audio output devices found.")
		return None, None

	if device_name is not None:

		for index, name in outputs:
			if device_name in name:
				logger.info(f"Selected audio output: {name}")
				return name, index

		logger.error(
			f"Audio output device '{device_name}' not found. "
			f"Available devices: {[name for _, name in outputs]}"
		)
		return None, None

	default_index = sd.default.device[1]

	for index, name in outputs:
		if index == default_index:
			logger.info(f"Using default audio output '{name}'")
			return name, index

	index, name = outputs[0]
	logger.info(f"No default output - using '{name}'")
	return name, index


class DeviceAudioContext (beatgraph.audio.context.AudioContext):

	"""
	A context rendered in real time by the sound card.

	PortAudio calls back from its own thread asking for blocks; each block is
	pulled from the graph, which advances ``current_time``. The clock therefore
	moves only while the stream is running.
	"""

	def __init__ (
		self,
		sample_rate: int = beatgraph.constants.DEFAULT_SAMPLE_RATE,
		channels: int = beatgraph.constants.DEFAULT_CHANNELS,
		blocksize: int = beatgraph.constants.DEFAULT_BLOCKSIZE,
		device: typing.Optional[typing.Union[int, str]] = None,
		latency: typing.Union[str, float] = 'low'
	) -> None:

		"""Open (but do not start) an output stream on ``device``."""

		super().__init__(sample_rate=sample_rate, channels=channels)

		self.blocksize = int(blocksize)
		self.device = device

		self.stream = sd.OutputStream(
			device = device,
			channels = self.channels,
			samplerate = self.sample_rate,
			blocksize = self.blocksize,
			dtype = 'float32',
			callback = self._callback,
			latency = latency
		)


	def _callback (self, outdata: np.ndarray, frames: int, time_info: typing.Any, status: sd.CallbackFlags) -> None:

		"""Fill the device buffer with the next block of the graph."""

		if status:
			logger.warning(f"Audio stream status: {status}")

		block = self.render(frames)

		outdata[:] = np.clip(block.T, -1.0, 1.0)


	def start (self) -> None:

		"""Start the stream - the clock begins to advance."""

		self.stream.start()
		logger.info(f"Audio output started ({self.sample_rate} Hz, {self.channels} channel(s), blocksize {self.blocksize})")


	def close (self) -> None:

		"""Stop and close the stream."""

		try:
			self.stream.stop()
			self.stream.close()
		except Exception:
			logger.exception("Failed to close audio stream (device may be disconnected)")

		logger.info("Audio output closed")


	def __enter__ (self) -> "DeviceAudioContext":

		self.start()
		return self


	def __exit__ (self, *exc_info: typing.Any) -> None:

		self.close()
