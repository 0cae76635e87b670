"""Synthesis recipe parameters.

All times are in seconds, frequencies in Hz and gains as linear amplitude.
Time constants describe exponential approach: after one time constant the
parameter has covered ~63% of the distance to its target.
"""

# Every voice stops (or runs out of material) within this many seconds of its trigger.
VOICE_LIFETIME = 1.0

# Kick - a swept sine body plus a short square click.
KICK_START_FREQ = 100.0
KICK_END_FREQ = 30.0
KICK_SWEEP_TIME_CONSTANT = 0.15
KICK_GAIN = 1.0
KICK_DECAY_TIME_CONSTANT = 0.1

KICK_CLICK_FREQ = 40.0
KICK_CLICK_GAIN = 0.5
KICK_CLICK_DECAY_TIME_CONSTANT = 0.01

# Hats - high-passed white noise.
HATS_HIGHPASS_FREQ = 5000.0
HATS_GAIN = 1.0
HATS_DECAY_TIME_CONSTANT = 0.02

# Noise buffer length as a fraction of the sample rate (~100 ms).
NOISE_BUFFER_SECONDS = 0.1

# Clap - sampled, fixed level.
CLAP_GAIN = 0.5

# Bass - two unison saws into a resonant low-pass sweep.
BASS_GAIN = 1.0
BASS_DECAY_TIME_CONSTANT = 0.1
BASS_FILTER_Q = 25.0
BASS_FILTER_START_FREQ = 300.0
BASS_FILTER_END_FREQ = 3000.0
BASS_FILTER_TIME_CONSTANT = 0.05
BASS_OUTPUT_GAIN = 0.5

# Reverb impulse - decaying stereo noise.
REVERB_SECONDS = 0.5
REVERB_DECAY = 0.5
REVERB_CHANNELS = 2
