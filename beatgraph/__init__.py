"""
beatgraph - a lookahead step sequencer with synthesized drum and bass voices.

A repeating pattern of sixteenth-note steps drives four voices - Kick,
Hats, Clap and Bass - built fresh on every hit from oscillators, noise,
filters and gain envelopes. Every sound is timestamped on the audio device's
own clock, so playback stays tight even though the scheduler itself wakes on a
coarse, jittery timer.

How it works:

- **Lookahead scheduling.** Every 100 ms the sequencer checks whether the
  next beat has entered a half-beat lookahead window. If it has, all four
  steps of that beat are handed to the voices with exact device
  timestamps. A late wake-up only delays the decision, never the sound.
- **Fire-and-forget voices.** Each hit builds a tiny audio graph, schedules
  its envelopes, starts, stops within a second, and drops out of the graph
  on its own.
- **Shared mix bus.** All voices meet on one bus with a dry path and a
  synthesized stereo reverb.
- **Pure numpy audio graph.** Oscillators, buffer players, gain, biquad
  filters and convolution with sample-accurate parameter automation, rendered
  in real time through ``sounddevice`` or offline to a WAV file.
- **Recording.** Save every dispatched step to a standard MIDI file.

Minimal example:

    ```python
    import beatgraph

    track = beatgraph.Track.from_dict({
        "tempo": 135,
        "tracks": {
            "Kick": [1, 0, 0, 0],
            "Hats": [0, 0, 1, 0],
            "Bass": [36, 0, 38, 36, 36, 38, 41, 0],
        },
    })

    beatgraph.render(track, seconds=8, filename="loop.wav")
    ```

Live playback reads ``config.yaml``: ``python -m beatgraph [config.yaml]``.

Package-level exports: ``Track``, ``Sequencer``, ``VoiceSynthesizer``, ``MixBus``, ``render``, ``note_to_freq``.
"""

import beatgraph.offline
import beatgraph.routing
import beatgraph.sequencer
import beatgraph.track
import beatgraph.tuning
import beatgraph.voices


Track = beatgraph.track.Track
Sequencer = beatgraph.sequencer.Sequencer
VoiceSynthesizer = beatgraph.voices.VoiceSynthesizer
MixBus = beatgraph.routing.MixBus
render = beatgraph.offline.render
note_to_freq = beatgraph.tuning.note_to_freq
