import dataclasses
import typing

import numpy as np


@dataclasses.dataclass
class AutomationEvent:

	"""
	A parameter change scheduled at an absolute context time.
	"""

	time: float
	kind: str							# 'set' or 'target'
	value: float
	time_constant: float = 0.0


class AudioParam:

	"""
	A node parameter whose value can be scheduled ahead of time.

	Follows the Web Audio automation model for the two event types the voices
	need. ``set_value_at_time`` jumps to a value; ``set_target_at_time`` starts
	an exponential approach to a target from whatever value is in effect at
	that moment. Before the first event the intrinsic ``value`` applies.
	Events with equal times take effect in insertion order.
	"""

	def __init__ (self, sample_rate: int, value: float) -> None:

		"""
		Initialize the parameter with its intrinsic value.
		"""

		self.sample_rate = sample_rate
		self.value = float(value)
		self.events: typing.List[AutomationEvent] = []


	def set_value_at_time (self, value: float, when: float) -> "AudioParam":

		"""Jump to ``value`` at ``when`` seconds."""

		self._insert(AutomationEvent(time=when, kind='set', value=float(value)))
		return self


	def set_target_at_time (self, target: float, when: float, time_constant: float) -> "AudioParam":

		"""Start approaching ``target`` at ``when``, covering ~63% of the distance every ``time_constant`` seconds."""

		if time_constant <= 0:
			raise ValueError("Time constant must be positive")

		self._insert(AutomationEvent(time=when, kind='target', value=float(target), time_constant=float(time_constant)))
		return self


	def _insert (self, event: AutomationEvent) -> None:

		"""Insert after any events at the same or earlier time."""

		index = len(self.events)

		while index > 0 and self.events[index - 1].time > event.time:
			index -= 1

		self.events.insert(index, event)


	def _segments (self) -> typing.Iterator[typing.Tuple[float, float, AutomationEvent, float]]:

		"""
		Yield ``(start, end, event, start_value)`` for each automation segment.

		``start_value`` is the value in effect just before the event, which is
		where a target approach begins.
		"""

		current = self.value

		for i, event in enumerate(self.events):

			end = self.events[i + 1].time if i + 1 < len(self.events) else np.inf

			yield event.time, end, event, current

			current = self._evaluate(event, current, end) if np.isfinite(end) else current


	@staticmethod
	def _evaluate (event: AutomationEvent, start_value: float, t: typing.Any) -> typing.Any:

		"""Value of a segment at time(s) ``t``."""

		if event.kind == 'set':
			return np.full_like(t, event.value, dtype=np.float64) if isinstance(t, np.ndarray) else event.value

		return event.value + (start_value - event.value) * np.exp(-(t - event.time) / event.time_constant)


	def value_at (self, when: float) -> float:

		"""Return the parameter value at a single point in time."""

		for start, end, event, start_value in self._segments():

			if when < start:
				break

			if when < end:
				return float(self._evaluate(event, start_value, when))

		return self.value


	def render (self, start_frame: int, frames: int) -> np.ndarray:

		"""Return one value per sample for the block beginning at ``start_frame``."""

		times = (start_frame + np.arange(frames)) / self.sample_rate
		values = np.full(frames, self.value, dtype=np.float64)

		if not self.events:
			return values

		for start, end, event, start_value in self._segments():

			mask = (times >= start) & (times < end)

			if mask.any():
				values[mask] = self._evaluate(event, start_value, times[mask])

		return values
