"""General MIDI Level 1 note numbers for the drum voices.

Used when a sequencer recording is saved as a MIDI file, so the drum part
plays back on any GM-compatible instrument. Drums are written to channel 10
(0-indexed channel 9); the bass line uses its own note values on channel 1.
"""

import typing

import beatgraph.constants


KICK_1 = 36
HAND_CLAP = 39
HI_HAT_CLOSED = 42

DRUM_CHANNEL = 9
BASS_CHANNEL = 0

VELOCITY = 100

GM_DRUM_MAP: typing.Dict[str, int] = {
	beatgraph.constants.KICK: KICK_1,
	beatgraph.constants.CLAP: HAND_CLAP,
	beatgraph.constants.HATS: HI_HAT_CLOSED,
}
