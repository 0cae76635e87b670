"""Scheduling lead benchmark.

Runs the lookahead sequencer against the monotonic clock for a number of
bars and measures, for every voice it dispatches, how far ahead of the clock
the voice was scheduled. A positive lead means the sound was handed over in
time; steps that could not be scheduled before their time are counted as
dropped. Also reports how late each scheduling tick woke up.

No audio is produced, so the numbers show the scheduler alone.

Usage:
    python benchmarks/scheduling_lead.py [--bpm BPM] [--bars N]
                                         [--tick SECONDS] [--lookahead BEATS]
                                         [--load MS]

Options:
    --bpm BPM           Tempo in BPM (default: 135)
    --bars N            Number of bars to measure (default: 8)
    --tick SECONDS      Scheduler wake-up interval (default: 0.1)
    --lookahead BEATS   Lookahead window in beats (default: 0.5)
    --load MS           Simulated cost of building each voice, in ms (default: 0)
"""

import argparse
import asyncio
import logging
import statistics
import time

# Suppress sequencer logging during benchmark - we want clean output.
logging.basicConfig(level=logging.ERROR)

import beatgraph.constants
import beatgraph.sequencer
import beatgraph.track

# ---------------------------------------------------------------------------

BEATS_PER_BAR = 4


class LoopClock:

	"""Device clock stand-in that reads the monotonic clock."""

	def __init__ (self) -> None:

		self.origin = time.monotonic()


	@property
	def current_time (self) -> float:

		return time.monotonic() - self.origin


class LeadMeter:

	"""Voice bank that measures how early each voice arrives."""

	def __init__ (self, clock: LoopClock, load_seconds: float) -> None:

		self.clock = clock
		self.load_seconds = load_seconds
		self.leads: list[float] = []


	def trigger (self, instrument: str, when: float, value: int) -> bool:

		self.leads.append(when - self.clock.current_time)

		# Stand in for the cost of building a voice graph.
		if self.load_seconds:
			time.sleep(self.load_seconds)

		return True


def _run_benchmark (bpm: float, bars: int, tick: float, lookahead: float, load_ms: float) -> tuple[list[float], list[float], int]:

	"""Play *bars* bars of sixteenth-note hits and return (leads, tick lateness, dropped)."""

	clock = LoopClock()
	meter = LeadMeter(clock, load_ms / 1000.0)
	track = beatgraph.track.Track(tempo=bpm, instruments={beatgraph.constants.HATS: (1,)})

	sequencer = beatgraph.sequencer.Sequencer(track, clock, meter, lookahead_beats=lookahead, tick_interval=tick)
	lateness: list[float] = []

	total_seconds = sequencer.beats_to_seconds(bars * BEATS_PER_BAR)

	async def _run () -> None:

		original_pass = sequencer.schedule_pass
		expected = [clock.current_time + tick]

		def timed_pass () -> list[beatgraph.sequencer.Dispatch]:

			now = clock.current_time
			lateness.append(now - expected[0])
			expected[0] = now + tick

			return original_pass()

		sequencer.schedule_pass = timed_pass  # type: ignore[method-assign]

		await sequencer.play(duration=total_seconds)

	asyncio.run(_run())

	return meter.leads, lateness, sequencer.dropped_steps


def _print_report (leads: list[float], lateness: list[float], dropped: int, bpm: float, bars: int, tick: float, lookahead: float) -> None:

	if not leads:
		print("No voices were dispatched.")
		return

	ms = [lead * 1000 for lead in leads]
	late_ms = [max(0.0, value) * 1000 for value in lateness] or [0.0]

	step_ms = 60.0 / bpm / beatgraph.constants.STEPS_PER_BEAT * 1000
	window_ms = 60.0 / bpm * lookahead * 1000

	print(f"\nScheduling Lead Benchmark - {bars} bars at {bpm:.0f} BPM")
	print(f"{'─' * 62}")
	print(f"  Voices scheduled : {len(ms)}")
	print(f"  Steps dropped    : {dropped}")
	print(f"  Step interval    : {step_ms:.3f} ms")
	print(f"  Tick interval    : {tick * 1000:.3f} ms")
	print(f"  Lookahead window : {window_ms:.3f} ms")
	print(f"{'─' * 62}")
	print(f"  Min lead         : {min(ms):>8.3f} ms")
	print(f"  Mean lead        : {statistics.mean(ms):>8.3f} ms")
	print(f"  Max lead         : {max(ms):>8.3f} ms")
	print(f"  Mean tick late   : {statistics.mean(late_ms):>8.3f} ms")
	print(f"  Max tick late    : {max(late_ms):>8.3f} ms")
	print(f"{'─' * 62}")

	if dropped:
		rating = "Failing    (steps dropped - raise the lookahead or lower the load)"
	elif min(ms) < 5.0:
		rating = "Marginal   (< 5 ms spare - little headroom for device latency)"
	else:
		rating = "Good       (every voice scheduled with room to spare)"

	print(f"  Rating           : {rating}")
	print()


def main () -> None:

	parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
	parser.add_argument("--bpm",       type=float, default=135, help="Tempo in BPM (default: 135)")
	parser.add_argument("--bars",      type=int,   default=8,   help="Bars to measure (default: 8)")
	parser.add_argument("--tick",      type=float, default=beatgraph.constants.DEFAULT_TICK_INTERVAL, help="Tick interval in seconds")
	parser.add_argument("--lookahead", type=float, default=beatgraph.constants.DEFAULT_LOOKAHEAD_BEATS, help="Lookahead in beats")
	parser.add_argument("--load",      type=float, default=0.0, help="Simulated stall per voice in ms")
	args = parser.parse_args()

	leads, lateness, dropped = _run_benchmark(args.bpm, args.bars, args.tick, args.lookahead, args.load)
	_print_report(leads, lateness, dropped, args.bpm, args.bars, args.tick, args.lookahead)


if __name__ == "__main__":
	main()
