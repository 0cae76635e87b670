import logging
import typing

import numpy as np
import soundfile as sf

import beatgraph.audio.context
import beatgraph.constants
import beatgraph.constants.voices
import beatgraph.routing
import beatgraph.sequencer
import beatgraph.track
import beatgraph.voices


logger = logging.getLogger(__name__)


def render (
	track: beatgraph.track.Track,
	seconds: float,
	clap: typing.Optional[np.ndarray] = None,
	filename: typing.Optional[str] = None,
	sample_rate: int = beatgraph.constants.DEFAULT_SAMPLE_RATE,
	channels: int = beatgraph.constants.DEFAULT_CHANNELS,
	lookahead_beats: float = beatgraph.constants.DEFAULT_LOOKAHEAD_BEATS,
	tick_interval: float = beatgraph.constants.DEFAULT_TICK_INTERVAL,
	record_filename: typing.Optional[str] = None
) -> np.ndarray:

	"""Render a track to audio without real-time playback.

	The sequencer runs exactly as it would live - a scheduling pass every
	``tick_interval`` seconds against a lookahead window - but the clock is
	an offline context that advances only as fast as it can render. Scheduling
	stops after ``seconds``; rendering continues until every voice already
	scheduled has rung out.

	Parameters:
		track: The pattern to render.
		seconds: How long to keep scheduling new beats.
		clap: Clap sample at ``sample_rate``. When omitted, the Clap part is
			left out of the render.
		filename: Optional WAV file to write.
		sample_rate: Output sample rate.
		channels: 1 or 2.
		lookahead_beats: Scheduler lookahead.
		tick_interval: Simulated seconds between scheduling passes.
		record_filename: When given, the dispatched steps are also saved as a
			MIDI file.

	Returns:
		The rendered audio as a ``(channels, frames)`` array.

	Raises:
		ValueError: If ``seconds`` is not positive.

	Example:
		```python
		audio = beatgraph.offline.render(track, seconds=8, filename="loop.wav")
		```
	"""

	if seconds <= 0:
		raise ValueError("render() needs a positive number of seconds")

	if clap is None and beatgraph.constants.CLAP in track.instruments:
		logger.warning("No clap sample supplied - rendering without the Clap part")
		track = track.without(beatgraph.constants.CLAP)

	context = beatgraph.audio.context.OfflineAudioContext(sample_rate=sample_rate, channels=channels)
	bus = beatgraph.routing.MixBus(context)
	voices = beatgraph.voices.VoiceSynthesizer(context, bus, clap=clap)

	sequencer = beatgraph.sequencer.Sequencer(
		track,
		context,
		voices,
		lookahead_beats = lookahead_beats,
		tick_interval = tick_interval,
		record = record_filename is not None,
		record_filename = record_filename
	)

	sequencer.start()

	while context.current_time + tick_interval <= seconds:
		context.advance(tick_interval)
		sequencer.schedule_pass()

	sequencer.running = False
	sequencer.save_recording()

	# Every voice scheduled so far has stopped one lifetime after the last scheduled beat.
	end_time = max(seconds, sequencer.origin_time + sequencer.beats_to_seconds(sequencer.next_boundary)) + beatgraph.constants.voices.VOICE_LIFETIME
	context.advance(end_time - context.current_time)

	audio = context.rendered()

	logger.info(f"Rendered {audio.shape[1] / sample_rate:.2f}s of audio")

	if filename is not None:
		sf.write(filename, np.clip(audio.T, -1.0, 1.0), sample_rate)
		logger.info(f"Saved {filename}")

	return audio
