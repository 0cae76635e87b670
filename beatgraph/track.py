import dataclasses
import math
import types
import typing

import yaml

import beatgraph.constants


StepArray = typing.Tuple[int, ...]


@dataclasses.dataclass (frozen=True)
class Track:

	"""
	An immutable tempo plus one step array per instrument.

	Each step is a sixteenth note. For Kick, Hats and Clap a non-zero value
	triggers the voice; for Bass the value is the MIDI note to play. Zero is
	always silence. Step arrays may have any positive length and wrap
	independently, so a 12-step hat line can run against a 32-step bass line.
	"""

	tempo: float
	instruments: typing.Mapping[str, StepArray] = dataclasses.field(default_factory=dict)


	def __post_init__ (self) -> None:

		"""Validate tempo and instrument names, and freeze the step arrays."""

		if not math.isfinite(self.tempo) or self.tempo <= 0:
			raise ValueError("Tempo must be a positive number")

		frozen: typing.Dict[str, StepArray] = {}

		for name, steps in self.instruments.items():

			if name not in beatgraph.constants.INSTRUMENTS:
				raise ValueError(f"Unknown instrument {name!r} (expected one of {', '.join(beatgraph.constants.INSTRUMENTS)})")

			steps = tuple(steps)

			if not steps:
				raise ValueError(f"Step array for {name!r} is empty")

			frozen[name] = steps

		object.__setattr__(self, "instruments", types.MappingProxyType(frozen))


	@classmethod
	def from_dict (cls, data: typing.Mapping[str, typing.Any]) -> "Track":

		"""
		Build a track from the ``{"tempo": ..., "tracks": {...}}`` pattern format.

		Step values are kept as given, so a fractional Bass value plays a
		detuned note and any non-zero drum value triggers.
		"""

		if "tempo" not in data:
			raise ValueError("Pattern is missing 'tempo'")

		tracks = data.get("tracks") or {}

		return cls(tempo=float(data["tempo"]), instruments={name: tuple(steps) for name, steps in tracks.items()})


	@classmethod
	def from_yaml (cls, path: str) -> "Track":

		"""Load a track from a YAML file in the same format as :meth:`from_dict`."""

		with open(path, 'r') as f:
			return cls.from_dict(yaml.safe_load(f))


	@property
	def beat_duration (self) -> float:

		"""Length of one beat in seconds."""

		return 60.0 / self.tempo


	def hit (self, instrument: str, step: int) -> int:

		"""
		Return the value at ``step`` for an instrument, wrapping around its length.

		Instruments the track does not define are always silent.
		"""

		steps = self.instruments.get(instrument)

		if steps is None:
			return 0

		return steps[step % len(steps)]


	def without (self, instrument: str) -> "Track":

		"""Return a copy of this track with one instrument removed."""

		return Track(tempo=self.tempo, instruments={name: steps for name, steps in self.instruments.items() if name != instrument})
