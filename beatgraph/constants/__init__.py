"""Constants for beatgraph.

This package contains:

- ``beatgraph.constants`` - Timing defaults shared by the sequencer and renderer
- ``beatgraph.constants.voices`` - Synthesis recipe parameters (frequencies, time constants, gains)
- ``beatgraph.constants.gm_drums`` - General MIDI note numbers used when recording drum voices
"""

# Four sixteenth-note steps make one beat.
STEPS_PER_BEAT = 4

# Scheduler defaults.
DEFAULT_LOOKAHEAD_BEATS = 0.5
DEFAULT_TICK_INTERVAL = 0.1

# Audio defaults.
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_CHANNELS = 2
DEFAULT_BLOCKSIZE = 512

# Render quantum used for k-rate parameter updates (filter coefficients).
RENDER_QUANTUM = 128

# Instruments the voice synthesizer knows how to play.
KICK = "Kick"
HATS = "Hats"
CLAP = "Clap"
BASS = "Bass"

INSTRUMENTS = (KICK, HATS, CLAP, BASS)

# Recording resolution - ticks per beat in saved MIDI files.
MIDI_TICKS_PER_BEAT = 480
