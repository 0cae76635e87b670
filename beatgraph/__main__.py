import asyncio
import logging
import sys

import beatgraph.audio.device
import beatgraph.audio.samples
import beatgraph.config
import beatgraph.constants
import beatgraph.routing
import beatgraph.sequencer
import beatgraph.track
import beatgraph.voices


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main () -> None:

	"""
	Main entry point: play the configured track on the sound card until interrupted.
	"""

	logger.info("beatgraph starting...")

	config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.yaml'
	config = beatgraph.config.load_config(config_path)

	track = beatgraph.track.Track.from_dict(config["track"])
	audio = config["audio"]
	options = config["sequencer"]

	_, device_index = beatgraph.audio.device.select_output_device(audio.get("device"))

	if audio.get("device") is not None and device_index is None:
		logger.error("Configured audio device is unavailable - aborting")
		sys.exit(1)

	context = beatgraph.audio.device.DeviceAudioContext(
		sample_rate = audio["sample_rate"],
		channels = audio["channels"],
		blocksize = audio["blocksize"],
		device = device_index
	)

	clap = None
	clap_path = config["samples"].get("clap")

	if beatgraph.constants.CLAP in track.instruments and clap_path:
		try:
			clap = beatgraph.audio.samples.load_sample(clap_path, context.sample_rate)
		except (OSError, RuntimeError):
			logger.exception(f"Could not load clap sample {clap_path!r}")

	if beatgraph.constants.CLAP in track.instruments and clap is None:
		logger.warning("No clap sample - playing without the Clap part")
		track = track.without(beatgraph.constants.CLAP)

	bus = beatgraph.routing.MixBus(context)
	voices = beatgraph.voices.VoiceSynthesizer(context, bus, clap=clap)

	sequencer = beatgraph.sequencer.Sequencer(
		track,
		context,
		voices,
		lookahead_beats = options["lookahead_beats"],
		tick_interval = options["tick_interval"],
		record = options["record"],
		record_filename = options["record_filename"]
	)

	with context:
		try:
			asyncio.run(sequencer.play(duration=config["duration"]))
		except KeyboardInterrupt:
			logger.info("Stopping...")


if __name__ == "__main__":
	main()
