import concurrent.futures
import time

import numpy as np
import pytest

import beatgraph.buffers


def test_noise_built_once_per_rate () -> None:

	"""Repeated requests return the very same array."""

	first = beatgraph.buffers.NOISE.get(8000)
	second = beatgraph.buffers.NOISE.get(8000)

	assert first is second
	assert beatgraph.buffers.NOISE.build_count == 1

	beatgraph.buffers.NOISE.get(22050)

	assert beatgraph.buffers.NOISE.build_count == 2


def test_noise_shape_and_range () -> None:

	"""A tenth of a second of mono noise in [-1, 1)."""

	noise = beatgraph.buffers.NOISE.get(8000)

	assert noise.shape == (1, 800)
	assert noise.min() >= -1.0
	assert noise.max() < 1.0
	assert noise.std() > 0.3


def test_shared_buffers_are_read_only () -> None:

	"""No voice can scribble on a buffer every other voice shares."""

	noise = beatgraph.buffers.NOISE.get(8000)

	with pytest.raises(ValueError):
		noise[0, 0] = 0.0


def test_reverb_impulse_decays () -> None:

	"""Half a second of stereo noise, louder at the start than at the end."""

	impulse = beatgraph.buffers.REVERB_IMPULSE.get(8000)

	assert impulse.shape == (2, 4000)
	assert not np.array_equal(impulse[0], impulse[1])
	assert np.abs(impulse[:, -400:]).mean() < 0.5 * np.abs(impulse[:, :400]).mean()


def test_clear_forces_rebuild () -> None:

	"""clear() forgets built buffers and resets the counter."""

	first = beatgraph.buffers.NOISE.get(8000)
	beatgraph.buffers.NOISE.clear()

	assert beatgraph.buffers.NOISE.build_count == 0
	assert beatgraph.buffers.NOISE.get(8000) is not first


def test_concurrent_first_use_builds_once () -> None:

	"""Threads racing for the first request share one build."""

	def slow_builder (sample_rate: int) -> np.ndarray:

		time.sleep(0.05)
		return np.zeros((1, sample_rate))

	shared = beatgraph.buffers.SharedBuffer("slow", slow_builder)

	with concurrent.futures.ThreadPoolExecutor(max_workers=8) as pool:
		results = list(pool.map(lambda _: shared.get(100), range(8)))

	assert shared.build_count == 1
	assert all(result is results[0] for result in results)
