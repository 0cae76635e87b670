import asyncio
import dataclasses
import datetime
import logging
import typing

import mido

import beatgraph.constants
import beatgraph.constants.gm_drums
import beatgraph.track


logger = logging.getLogger(__name__)


@typing.runtime_checkable
class DeviceClock (typing.Protocol):

	"""
	Anything exposing the audio device's clock in seconds.
	"""

	@property
	def current_time (self) -> float:

		"""Seconds on the device clock."""

		...


@typing.runtime_checkable
class VoiceBank (typing.Protocol):

	"""
	Anything that can play an instrument at a future device time.
	"""

	def trigger (self, instrument: str, when: float, value: int) -> bool:

		"""Build a voice for ``instrument`` at ``when``."""

		...


@dataclasses.dataclass (frozen=True)
class Dispatch:

	"""
	One voice handed to the voice bank by a scheduling pass.
	"""

	instrument: str
	step: int							# Absolute sixteenth-note index since start
	when: float							# Device time in seconds
	value: int							# Pattern value (note number for Bass)


class Sequencer:

	"""
	Lookahead scheduler that keeps voices locked to the device clock.

	The sequencer wakes on a coarse timer (every ``tick_interval`` seconds)
	but never uses the timer to decide *when* things sound. Each pass reads
	the device clock, and if the lookahead window has reached the next
	unscheduled beat, it hands that beat's four sixteenth-note steps to the
	voice bank with exact device timestamps measured from the start of
	playback. A late tick therefore delays only the decision, never the sound.

	Steps whose time has already passed when their beat is reached (after a
	stall longer than the lookahead) are dropped rather than played late.
	"""

	def __init__ (
		self,
		track: beatgraph.track.Track,
		context: DeviceClock,
		voices: VoiceBank,
		lookahead_beats: float = beatgraph.constants.DEFAULT_LOOKAHEAD_BEATS,
		tick_interval: float = beatgraph.constants.DEFAULT_TICK_INTERVAL,
		record: bool = False,
		record_filename: typing.Optional[str] = None
	) -> None:

		"""Initialize a stopped sequencer.

		Parameters:
			track: The pattern to play. It is never modified.
			context: Supplies ``current_time``, the device clock in seconds.
			voices: Receives ``trigger(instrument, when, value)`` for each
				non-zero step.
			lookahead_beats: How far ahead of the clock, in beats, a beat may be
				scheduled. Larger values absorb more timer jitter.
			tick_interval: Seconds between scheduling passes once playing.
			record: When True, keep every dispatch and save them as a MIDI file
				on :meth:`stop`.
			record_filename: Optional filename for the recording (defaults to a
				timestamp).
		"""

		if lookahead_beats < 0:
			raise ValueError("Lookahead cannot be negative")

		if tick_interval <= 0:
			raise ValueError("Tick interval must be positive")

		self.track = track
		self.context = context
		self.voices = voices
		self.lookahead_beats = lookahead_beats
		self.tick_interval = tick_interval

		self.origin_time = 0.0
		self.next_boundary = 0
		self.running = False
		self.task: typing.Optional[asyncio.Task] = None
		self.dropped_steps = 0

		# Recording state
		self.recording = record
		self.record_filename = record_filename
		self.recorded_events: typing.List[Dispatch] = []


	@property
	def beat_duration (self) -> float:

		"""Seconds per beat at the track's tempo."""

		return self.track.beat_duration


	@property
	def step_duration (self) -> float:

		"""Seconds per sixteenth-note step."""

		return self.beat_duration / beatgraph.constants.STEPS_PER_BEAT


	def beats_to_seconds (self, beats: float) -> float:

		"""Convert a beat count to seconds."""

		return beats * self.beat_duration


	def seconds_to_beats (self, seconds: float) -> float:

		"""Convert seconds to a beat count."""

		return seconds / self.beat_duration


	def elapsed_beats (self) -> float:

		"""Beats elapsed on the device clock since :meth:`start`."""

		return self.seconds_to_beats(self.context.current_time - self.origin_time)


	def start (self) -> typing.List[Dispatch]:

		"""
		Anchor playback to the device clock now and schedule the first beat.

		Returns the dispatches of that first pass. Calling ``start()`` on a
		running sequencer does nothing.
		"""

		if self.running:
			return []

		self.origin_time = self.context.current_time
		self.next_boundary = 0
		self.running = True

		logger.info(f"Sequencer started at device time {self.origin_time:.3f}s ({self.track.tempo:.2f} BPM)")

		return self.schedule_pass()


	def schedule_pass (self) -> typing.List[Dispatch]:

		"""
		Dispatch the next beat if the lookahead window has reached it.

		Schedules at most one beat per pass; ``next_boundary`` advances by one
		beat only after all four of its steps have been handled.
		"""

		if not self.running:
			return []

		current = self.elapsed_beats()

		if current + self.lookahead_beats <= self.next_boundary:
			return []

		now = self.context.current_time
		step_duration = self.step_duration
		boundary_offset = self.beats_to_seconds(self.next_boundary)

		offsets = [boundary_offset + k * step_duration for k in range(beatgraph.constants.STEPS_PER_BEAT)]
		dispatched: typing.List[Dispatch] = []

		for instrument in self.track.instruments:

			for offset in offsets:

				step = int(round(offset / step_duration))
				value = self.track.hit(instrument, step)

				if value == 0:
					continue

				when = self.origin_time + offset

				if when < now:
					self.dropped_steps += 1
					logger.debug(f"Dropped late {instrument} step {step} ({now - when:.4f}s behind)")
					continue

				self.voices.trigger(instrument, when, value)

				dispatch = Dispatch(instrument=instrument, step=step, when=when, value=value)
				dispatched.append(dispatch)

				if self.recording:
					self.recorded_events.append(dispatch)

		logger.debug(f"Scheduled beat {self.next_boundary} at clock {current:.3f} beats: {len(dispatched)} voice(s)")

		self.next_boundary += 1

		return dispatched


	async def _run_loop (self) -> None:

		"""Run a scheduling pass every ``tick_interval`` seconds until stopped.

		Tick times are accumulated rather than measured from the previous
		wake-up, so the cadence does not drift. If the loop falls behind by
		more than a tick it re-arms from the current time instead of firing a
		burst of catch-up passes.
		"""

		loop = asyncio.get_running_loop()
		next_tick = loop.time()

		while self.running:

			next_tick += self.tick_interval
			delay = next_tick - loop.time()

			if delay > 0:
				await asyncio.sleep(delay)
			else:
				next_tick = loop.time()
				await asyncio.sleep(0)

			if not self.running:
				break

			self.schedule_pass()


	async def play (self, duration: typing.Optional[float] = None) -> None:

		"""
		Start playback, run the tick loop, and stop after ``duration`` seconds.

		With no duration, plays until the task is cancelled.
		"""

		self.start()
		self.task = asyncio.create_task(self._run_loop())

		try:
			if duration is None:
				await self.task
			else:
				await asyncio.wait_for(asyncio.shield(self.task), timeout=duration)
		except (asyncio.TimeoutError, asyncio.CancelledError):
			pass
		finally:
			await self.stop()


	async def stop (self) -> None:

		"""
		Stop the tick loop and save the recording, if any.

		Voices that are already scheduled still play out; nothing is retracted.
		"""

		if not self.running and self.task is None:
			return

		self.running = False

		if self.task:
			self.task.cancel()

			try:
				await self.task
			except asyncio.CancelledError:
				pass

			self.task = None

		if self.dropped_steps:
			logger.warning(f"{self.dropped_steps} step(s) were dropped because the scheduler fell behind")

		self.save_recording()

		logger.info("Sequencer stopped")


	def save_recording (self) -> None:

		"""Save the recorded dispatches to a MIDI file.

		Drum voices go to channel 10 using General MIDI notes; the bass line
		goes to channel 1 using its own note values. Each note lasts one step.
		"""

		if not self.recording or not self.recorded_events:
			return

		if self.record_filename:
			filename = self.record_filename
		else:
			now = datetime.datetime.now()
			filename = now.strftime("session_%Y%m%d_%H%M%S.mid")

		logger.info(f"Saving MIDI recording ({len(self.recorded_events)} events) to {filename}...")

		mid = mido.MidiFile(type=1)
		mid.ticks_per_beat = beatgraph.constants.MIDI_TICKS_PER_BEAT

		track = mido.MidiTrack()
		mid.tracks.append(track)
		track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(self.track.tempo), time=0))

		ticks_per_step = beatgraph.constants.MIDI_TICKS_PER_BEAT // beatgraph.constants.STEPS_PER_BEAT

		# (tick, order, message) - note offs sort ahead of note ons on the same tick.
		timeline: typing.List[typing.Tuple[int, int, mido.Message]] = []

		for event in self.recorded_events:

			if event.instrument == beatgraph.constants.BASS:
				channel = beatgraph.constants.gm_drums.BASS_CHANNEL
				note = event.value
			else:
				channel = beatgraph.constants.gm_drums.DRUM_CHANNEL
				note = beatgraph.constants.gm_drums.GM_DRUM_MAP[event.instrument]

			if note != int(note) or not 0 <= note <= 127:
				logger.warning(f"Skipping {event.instrument} note {note} at step {event.step} (not a MIDI note number)")
				continue

			note = int(note)

			start_tick = event.step * ticks_per_step

			timeline.append((start_tick, 1, mido.Message('note_on', channel=channel, note=note, velocity=beatgraph.constants.gm_drums.VELOCITY)))
			timeline.append((start_tick + ticks_per_step, 0, mido.Message('note_off', channel=channel, note=note, velocity=0)))

		timeline.sort(key=lambda item: (item[0], item[1]))

		last_tick = 0

		for tick, _, message in timeline:
			message.time = tick - last_tick
			track.append(message)
			last_tick = tick

		try:
			mid.save(filename)
			logger.info(f"Saved {filename}")
		except Exception as e:
			logger.error(f"Failed to save MIDI recording: {e}")
