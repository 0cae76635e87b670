"""Audio graph nodes.

Nodes are rendered by pulling: the context asks its destination for a block
of frames, and every node asks its inputs in turn. Signals are 2-D arrays
shaped ``(channels, frames)``; mono signals are up-mixed by broadcasting when
they meet stereo ones.

Voices are fire-and-forget. Once a source node has played past its end it
reports ``finished``, its consumers drop it, and any processing node left
without inputs reports ``finished`` on the next block, so a whole voice
chain falls out of the graph without anyone holding a reference to it.
"""

import logging
import math
import typing

import numpy as np
import scipy.signal

import beatgraph.audio.params
import beatgraph.constants

if typing.TYPE_CHECKING:
	import beatgraph.audio.context


logger = logging.getLogger(__name__)

# Convolver impulse normalization, matching Web Audio's ConvolverNode.
GAIN_CALIBRATION = 0.00125
GAIN_CALIBRATION_SAMPLE_RATE = 44100.0
MIN_POWER = 0.000125


class AudioNode:

	"""
	Base class for anything that can be connected into the graph.
	"""

	# Persistent nodes (the mix bus, the destination) are never pruned.
	persistent: bool = False

	def __init__ (self, context: "beatgraph.audio.context.AudioContext") -> None:

		"""
		Attach the node to a context. It makes no sound until connected.
		"""

		self.context = context
		self.inputs: typing.List[AudioNode] = []
		self._had_inputs = False
		self._cache_start: typing.Optional[int] = None
		self._cache: typing.Optional[np.ndarray] = None


	def connect (self, destination: "AudioNode") -> "AudioNode":

		"""
		Feed this node's output into ``destination`` and return ``destination`` for chaining.
		"""

		with self.context.lock:
			destination.inputs.append(self)
			destination._had_inputs = True

		return destination


	@property
	def finished (self) -> bool:

		"""True once the node can produce nothing further and may be dropped."""

		return not self.persistent and self._had_inputs and not self.inputs


	def pull (self, start_frame: int, frames: int) -> np.ndarray:

		"""
		Return this node's output for a block, rendering it at most once.

		A node feeding several consumers (the mix bus feeds both the dry and
		the reverb path) is asked for the same block more than once.
		"""

		if self._cache is None or self._cache_start != start_frame or self._cache.shape[1] != frames:
			self._cache = self.process(start_frame, frames)
			self._cache_start = start_frame

		return self._cache


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Render one block. Subclasses implement this."""

		raise NotImplementedError


	def mix_inputs (self, start_frame: int, frames: int) -> np.ndarray:

		"""Sum all live inputs, dropping any that have finished."""

		self.inputs = [node for node in self.inputs if not node.finished]

		if not self.inputs:
			return np.zeros((1, frames))

		blocks = [node.pull(start_frame, frames) for node in self.inputs]
		channels = max(block.shape[0] for block in blocks)

		mixed = np.zeros((channels, frames))

		for block in blocks:
			mixed += block

		return mixed


class AudioScheduledSourceNode (AudioNode):

	"""
	A node that generates sound between a start and an optional stop time.
	"""

	def __init__ (self, context: "beatgraph.audio.context.AudioContext") -> None:

		"""Create an unstarted source."""

		super().__init__(context)

		self.start_frame: typing.Optional[int] = None
		self.stop_frame: typing.Optional[int] = None
		self._rendered_until = 0


	def start (self, when: float = 0.0) -> None:

		"""Begin generating at ``when`` seconds of context time."""

		if self.start_frame is not None:
			raise RuntimeError("start() can only be called once per source")

		self.start_frame = self.context.time_to_frame(when)


	def stop (self, when: float = 0.0) -> None:

		"""Stop generating at ``when`` seconds of context time."""

		if self.start_frame is None:
			raise RuntimeError("stop() called before start()")

		self.stop_frame = max(self.start_frame, self.context.time_to_frame(when))


	@property
	def end_frame (self) -> typing.Optional[int]:

		"""First frame after the source falls silent for good, if known."""

		return self.stop_frame


	@property
	def finished (self) -> bool:

		"""True once rendering has passed the end frame."""

		end = self.end_frame
		return end is not None and self._rendered_until >= end


	def active_mask (self, start_frame: int, frames: int) -> np.ndarray:

		"""Boolean mask of the frames in this block where the source is playing."""

		if self.start_frame is None:
			return np.zeros(frames, dtype=bool)

		positions = start_frame + np.arange(frames)
		mask = positions >= self.start_frame

		if self.stop_frame is not None:
			mask &= positions < self.stop_frame

		return mask


class OscillatorNode (AudioScheduledSourceNode):

	"""
	A periodic waveform generator with a sample-accurate frequency parameter.
	"""

	TYPES = ('sine', 'square', 'sawtooth', 'triangle')

	def __init__ (self, context: "beatgraph.audio.context.AudioContext") -> None:

		"""Create a 440 Hz sine oscillator."""

		super().__init__(context)

		self._type = 'sine'
		self.frequency = beatgraph.audio.params.AudioParam(context.sample_rate, 440.0)

		# Phase in cycles, carried between blocks.
		self._phase = 0.0


	@property
	def type (self) -> str:

		"""Waveform name."""

		return self._type


	@type.setter
	def type (self, value: str) -> None:

		if value not in self.TYPES:
			raise ValueError(f"Unknown oscillator type {value!r}")

		self._type = value


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Render the waveform over the active part of the block."""

		self._rendered_until = start_frame + frames

		active = self.active_mask(start_frame, frames)

		if not active.any():
			return np.zeros((1, frames))

		increments = self.frequency.render(start_frame, frames) / self.context.sample_rate * active
		phase = self._phase + np.cumsum(increments) - increments
		self._phase = float(phase[-1] + increments[-1]) % 1.0

		return (self._waveform(phase % 1.0) * active)[np.newaxis, :]


	def _waveform (self, phase: np.ndarray) -> np.ndarray:

		"""Evaluate one cycle of the waveform at phases in [0, 1)."""

		if self._type == 'square':
			return np.where(phase < 0.5, 1.0, -1.0)

		if self._type == 'sawtooth':
			return 2.0 * ((phase + 0.5) % 1.0) - 1.0

		if self._type == 'triangle':
			return 1.0 - 4.0 * np.abs(((phase + 0.25) % 1.0) - 0.5)

		return np.sin(2.0 * math.pi * phase)


class BufferSourceNode (AudioScheduledSourceNode):

	"""
	Plays a buffer once from its start time.
	"""

	def __init__ (self, context: "beatgraph.audio.context.AudioContext", buffer: typing.Optional[np.ndarray] = None) -> None:

		"""Create a player, optionally with its buffer already assigned."""

		super().__init__(context)

		self.buffer = buffer


	@property
	def end_frame (self) -> typing.Optional[int]:

		"""The buffer runs out on its own even without a stop time."""

		if self.start_frame is None or self.buffer is None:
			return self.stop_frame

		natural_end = self.start_frame + np.atleast_2d(self.buffer).shape[1]

		return natural_end if self.stop_frame is None else min(natural_end, self.stop_frame)


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Copy the slice of the buffer that falls in this block."""

		self._rendered_until = start_frame + frames

		if self.buffer is None or self.start_frame is None:
			return np.zeros((1, frames))

		buffer = np.atleast_2d(self.buffer)
		positions = start_frame + np.arange(frames) - self.start_frame
		mask = self.active_mask(start_frame, frames) & (positions < buffer.shape[1])

		out = np.zeros((buffer.shape[0], frames))

		if mask.any():
			out[:, mask] = buffer[:, positions[mask]]

		return out


class GainNode (AudioNode):

	"""
	Scales its input by a sample-accurate gain parameter.
	"""

	def __init__ (self, context: "beatgraph.audio.context.AudioContext") -> None:

		"""Create a unity gain stage."""

		super().__init__(context)

		self.gain = beatgraph.audio.params.AudioParam(context.sample_rate, 1.0)


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Apply the gain envelope to the mixed inputs."""

		return self.mix_inputs(start_frame, frames) * self.gain.render(start_frame, frames)[np.newaxis, :]


class BiquadFilterNode (AudioNode):

	"""
	Second-order low-pass or high-pass filter.

	Coefficients follow the Web Audio definitions, where ``Q`` for these two
	types is a resonance in dB. They are recomputed at every render quantum
	from the parameter values at the quantum's first frame, and filter state
	carries across blocks.
	"""

	TYPES = ('lowpass', 'highpass')

	def __init__ (self, context: "beatgraph.audio.context.AudioContext") -> None:

		"""Create a 350 Hz low-pass filter."""

		super().__init__(context)

		self._type = 'lowpass'
		self.frequency = beatgraph.audio.params.AudioParam(context.sample_rate, 350.0)
		self.Q = beatgraph.audio.params.AudioParam(context.sample_rate, 1.0)
		self._zi: typing.Optional[np.ndarray] = None


	@property
	def type (self) -> str:

		"""Filter response name."""

		return self._type


	@type.setter
	def type (self, value: str) -> None:

		if value not in self.TYPES:
			raise ValueError(f"Unknown filter type {value!r}")

		self._type = value


	def coefficients (self, frequency: float, q: float) -> typing.Tuple[np.ndarray, np.ndarray]:

		"""Return normalized ``(b, a)`` for a cutoff in Hz and a resonance in dB."""

		nyquist = self.context.sample_rate / 2.0
		cutoff = min(max(frequency, 0.0), nyquist) / nyquist

		lowpass = self._type == 'lowpass'

		# Degenerate cutoffs: fully open or fully closed.
		if cutoff >= 1.0:
			return (np.array([1.0, 0.0, 0.0]) if lowpass else np.zeros(3)), np.array([1.0, 0.0, 0.0])

		if cutoff <= 0.0:
			return (np.zeros(3) if lowpass else np.array([1.0, 0.0, 0.0])), np.array([1.0, 0.0, 0.0])

		w0 = math.pi * cutoff
		alpha = math.sin(w0) / (2.0 * 10 ** (q / 20.0))
		cos_w0 = math.cos(w0)

		if lowpass:
			b = np.array([(1.0 - cos_w0) / 2.0, 1.0 - cos_w0, (1.0 - cos_w0) / 2.0])
		else:
			b = np.array([(1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0])

		a = np.array([1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha])

		return b / a[0], a / a[0]


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Filter the mixed inputs one render quantum at a time."""

		signal = self.mix_inputs(start_frame, frames)

		if self._zi is None or self._zi.shape[0] != signal.shape[0]:
			self._zi = np.zeros((signal.shape[0], 2))

		frequencies = self.frequency.render(start_frame, frames)
		resonances = self.Q.render(start_frame, frames)

		out = np.empty_like(signal)
		quantum = beatgraph.constants.RENDER_QUANTUM

		for offset in range(0, frames, quantum):

			end = min(offset + quantum, frames)
			b, a = self.coefficients(frequencies[offset], resonances[offset])

			out[:, offset:end], self._zi = scipy.signal.lfilter(b, a, signal[:, offset:end], axis=-1, zi=self._zi)

		return out


class ConvolverNode (AudioNode):

	"""
	Convolves its input with an impulse response (overlap-add).

	A mono input is spread across every channel of the impulse, so a stereo
	impulse turns a mono mix into a stereo reverb.
	"""

	def __init__ (self, context: "beatgraph.audio.context.AudioContext", normalize: bool = True) -> None:

		"""Create a convolver with no impulse (silent until one is assigned)."""

		super().__init__(context)

		self.normalize = normalize
		self._buffer: typing.Optional[np.ndarray] = None
		self._impulse: typing.Optional[np.ndarray] = None
		self._tail: typing.Optional[np.ndarray] = None


	@property
	def buffer (self) -> typing.Optional[np.ndarray]:

		"""The impulse response as assigned (before normalization)."""

		return self._buffer


	@buffer.setter
	def buffer (self, value: typing.Optional[np.ndarray]) -> None:

		if value is None:
			self._buffer = self._impulse = self._tail = None
			return

		impulse = np.atleast_2d(np.asarray(value, dtype=np.float64))

		self._buffer = value
		self._impulse = impulse * self.normalization_scale(impulse) if self.normalize else impulse
		self._tail = None

		logger.debug(f"Convolver impulse set: {impulse.shape[0]} channel(s), {impulse.shape[1]} frames")


	@property
	def finished (self) -> bool:

		"""Finished only once its inputs are gone and the reverb tail has played out."""

		return super().finished and (self._tail is None or not self._tail.any())


	def normalization_scale (self, impulse: np.ndarray) -> float:

		"""Scale factor that brings an impulse of any length to a similar loudness."""

		power = math.sqrt(float(np.sum(impulse ** 2)) / impulse.size) if impulse.size else 0.0

		if not math.isfinite(power) or power < MIN_POWER:
			power = MIN_POWER

		return GAIN_CALIBRATION / power * GAIN_CALIBRATION_SAMPLE_RATE / self.context.sample_rate


	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Convolve the block and fold in the tail left over from earlier blocks."""

		signal = self.mix_inputs(start_frame, frames)

		if self._impulse is None:
			return np.zeros((1, frames))

		channels = max(signal.shape[0], self._impulse.shape[0])
		length = self._impulse.shape[1]

		if signal.any():
			signal = np.broadcast_to(signal, (channels, frames))
			impulse = np.broadcast_to(self._impulse, (channels, length))
			wet = np.stack([scipy.signal.fftconvolve(signal[c], impulse[c]) for c in range(channels)])
		else:
			wet = np.zeros((channels, frames + length - 1))

		if self._tail is not None:
			tail = np.broadcast_to(self._tail, (channels, self._tail.shape[1]))
			wet[:, :tail.shape[1]] += tail

		self._tail = wet[:, frames:].copy()

		return wet[:, :frames]


class DestinationNode (AudioNode):

	"""
	The end of the graph - mixes everything to the context's channel count.
	"""

	persistent = True

	def process (self, start_frame: int, frames: int) -> np.ndarray:

		"""Mix all inputs, then up-mix mono or down-mix stereo to the output layout."""

		mixed = self.mix_inputs(start_frame, frames)
		channels = self.context.channels

		if mixed.shape[0] == channels:
			return mixed

		if mixed.shape[0] == 1:
			return np.repeat(mixed, channels, axis=0)

		if channels == 1:
			return mixed.mean(axis=0, keepdims=True)

		return mixed[:channels]
