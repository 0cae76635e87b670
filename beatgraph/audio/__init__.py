"""A small pull-based audio graph.

- ``beatgraph.audio.params`` - Scheduled parameter automation
- ``beatgraph.audio.nodes`` - Oscillators, buffer players, gain, filters, convolution
- ``beatgraph.audio.context`` - The graph owner and its device clock, plus an offline variant
- ``beatgraph.audio.device`` - Real-time output through ``sounddevice`` (imported on demand)
- ``beatgraph.audio.samples`` - Loading audio files with ``soundfile``
"""
