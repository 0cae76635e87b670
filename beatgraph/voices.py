import logging
import typing

import numpy as np

import beatgraph.audio.context
import beatgraph.buffers
import beatgraph.constants
import beatgraph.constants.voices as v
import beatgraph.routing
import beatgraph.tuning


logger = logging.getLogger(__name__)


class VoiceSynthesizer:

	"""
	Builds one short-lived subgraph per trigger.

	Each recipe creates its nodes, schedules its envelopes relative to the
	trigger time ``when``, starts its sources at ``when`` and stops them within
	a second. The finished chain is connected to the mix bus as the very last
	step, so the render thread never sees a half-built voice. Nothing is kept
	afterwards: the graph drops the chain once its sources have stopped.
	"""

	def __init__ (
		self,
		context: beatgraph.audio.context.AudioContext,
		bus: beatgraph.routing.MixBus,
		clap: typing.Optional[np.ndarray] = None
	) -> None:

		"""
		Parameters:
			context: The audio context whose clock ``when`` refers to.
			bus: Where every voice ends up.
			clap: The decoded clap sample as a ``(channels, frames)`` array at
				the context's sample rate. Required only if Clap is triggered.
		"""

		self.context = context
		self.bus = bus
		self.clap_sample = clap

		self._recipes: typing.Dict[str, typing.Callable[[float, int], None]] = {
			beatgraph.constants.KICK: lambda when, value: self.kick(when),
			beatgraph.constants.HATS: lambda when, value: self.hats(when),
			beatgraph.constants.CLAP: lambda when, value: self.clap(when),
			beatgraph.constants.BASS: self.bass,
		}


	def trigger (self, instrument: str, when: float, value: int) -> bool:

		"""
		Play ``instrument`` at ``when`` with a pattern value.

		A value of zero means "no event" and never produces a voice. Returns
		whether a voice was built.
		"""

		if value == 0:
			return False

		if instrument not in self._recipes:
			raise KeyError(f"No voice for instrument {instrument!r}")

		self._recipes[instrument](when, value)
		logger.debug(f"{instrument} voice at {when:.4f}s (value {value})")

		return True


	def kick (self, when: float) -> None:

		"""A sine swept down from 100 Hz to 30 Hz, layered with a short 40 Hz square click."""

		body = self.context.create_oscillator()
		body.frequency.value = v.KICK_START_FREQ
		body.frequency.set_target_at_time(v.KICK_END_FREQ, when, v.KICK_SWEEP_TIME_CONSTANT)

		body_gain = self.context.create_gain()
		body_gain.gain.set_value_at_time(v.KICK_GAIN, when)
		body_gain.gain.set_target_at_time(0.0, when, v.KICK_DECAY_TIME_CONSTANT)

		click = self.context.create_oscillator()
		click.type = 'square'
		click.frequency.value = v.KICK_CLICK_FREQ

		click_gain = self.context.create_gain()
		click_gain.gain.set_value_at_time(v.KICK_CLICK_GAIN, when)
		click_gain.gain.set_target_at_time(0.0, when, v.KICK_CLICK_DECAY_TIME_CONSTANT)

		body.connect(body_gain)
		click.connect(click_gain)

		for oscillator in (body, click):
			oscillator.start(when)
			oscillator.stop(when + v.VOICE_LIFETIME)

		self.bus.connect_voice(body_gain)
		self.bus.connect_voice(click_gain)


	def hats (self, when: float) -> None:

		"""The shared noise buffer with a fast decay, high-passed at 5 kHz."""

		noise = self.context.create_buffer_source()
		noise.buffer = beatgraph.buffers.NOISE.get(self.context.sample_rate)

		gain = self.context.create_gain()
		gain.gain.set_value_at_time(v.HATS_GAIN, when)
		gain.gain.set_target_at_time(0.0, when, v.HATS_DECAY_TIME_CONSTANT)

		highpass = self.context.create_biquad_filter()
		highpass.type = 'highpass'
		highpass.frequency.value = v.HATS_HIGHPASS_FREQ

		noise.connect(gain).connect(highpass)
		noise.start(when)

		self.bus.connect_voice(highpass)


	def clap (self, when: float) -> None:

		"""The clap sample at a fixed level, cut off after a second if it runs longer."""

		if self.clap_sample is None:
			raise RuntimeError("Clap triggered but no clap sample was supplied")

		sample = self.context.create_buffer_source()
		sample.buffer = self.clap_sample

		gain = self.context.create_gain()
		gain.gain.value = v.CLAP_GAIN

		sample.connect(gain)
		sample.start(when)
		sample.stop(when + v.VOICE_LIFETIME)

		self.bus.connect_voice(gain)


	def bass (self, when: float, note: int) -> None:

		"""Two unison saws through a resonant low-pass whose cutoff rises from 300 Hz towards 3 kHz."""

		frequency = beatgraph.tuning.note_to_freq(note)

		saws = [self.context.create_oscillator() for _ in range(2)]

		amp = self.context.create_gain()
		amp.gain.set_value_at_time(v.BASS_GAIN, when)
		amp.gain.set_target_at_time(0.0, when, v.BASS_DECAY_TIME_CONSTANT)

		lowpass = self.context.create_biquad_filter()
		lowpass.Q.value = v.BASS_FILTER_Q
		lowpass.frequency.set_value_at_time(v.BASS_FILTER_START_FREQ, when)
		lowpass.frequency.set_target_at_time(v.BASS_FILTER_END_FREQ, when, v.BASS_FILTER_TIME_CONSTANT)

		trim = self.context.create_gain()
		trim.gain.value = v.BASS_OUTPUT_GAIN

		for saw in saws:
			saw.type = 'sawtooth'
			saw.frequency.value = frequency
			saw.connect(amp)
			saw.start(when)
			saw.stop(when + v.VOICE_LIFETIME)

		amp.connect(lowpass).connect(trim)

		self.bus.connect_voice(trim)
