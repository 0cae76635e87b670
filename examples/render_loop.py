"""
beatgraph Demo - Offline Render

Renders the built-in 135 BPM pattern to a WAV file and a matching MIDI file,
without opening a sound card.

How to read this file
─────────────────────
1. Pattern   - Build a Track from the {tempo, tracks} format.
2. Samples   - Load the clap sample if one is available.
3. Render    - Run the real sequencer against an offline clock.

The sequencer behaves exactly as it does live: a scheduling pass every
100 ms, a half-beat lookahead window, and every voice timestamped on the
audio clock. Only the clock is different, so the file sounds just like
``python -m beatgraph`` would.
"""

import logging
import os

import beatgraph
import beatgraph.audio.samples
import beatgraph.config


logging.basicConfig(level=logging.INFO)


SAMPLE_RATE = 44100
SECONDS = 16.0
CLAP_PATH = "clap.ogg"


# ─── Pattern ─────────────────────────────────────────────────────────

track = beatgraph.Track.from_dict(beatgraph.config.DEFAULT_PATTERN)


# ─── Samples ─────────────────────────────────────────────────────────
#
# Without a clap sample the Clap part is simply left out of the render.

clap = None

if os.path.exists(CLAP_PATH):
	clap = beatgraph.audio.samples.load_sample(CLAP_PATH, SAMPLE_RATE)


# ─── Render ──────────────────────────────────────────────────────────

beatgraph.render(
	track,
	seconds = SECONDS,
	clap = clap,
	filename = "loop.wav",
	sample_rate = SAMPLE_RATE,
	record_filename = "loop.mid"
)
