import pathlib

import numpy as np
import pytest
import soundfile as sf

import beatgraph.audio.samples


def test_resample_identity_returns_input () -> None:

	"""A ratio of one leaves the signal alone."""

	signal = np.ones((2, 10))

	assert beatgraph.audio.samples.resample_linear(signal, 1.0) is signal


def test_resample_down_and_up () -> None:

	"""Frames scale by 1 / ratio and follow the original by interpolation."""

	signal = np.arange(10, dtype=float)[np.newaxis, :]

	halved = beatgraph.audio.samples.resample_linear(signal, 2.0)
	doubled = beatgraph.audio.samples.resample_linear(signal, 0.5)

	np.testing.assert_allclose(halved, [[0.0, 2.0, 4.0, 6.0, 8.0]])
	assert doubled.shape == (1, 20)
	np.testing.assert_allclose(doubled[0, :5], [0.0, 0.5, 1.0, 1.5, 2.0])


def test_load_sample_channels_first (tmp_path: pathlib.Path) -> None:

	"""Samples load as (channels, frames) float arrays."""

	path = str(tmp_path / "clap.wav")
	data = np.column_stack([np.linspace(-0.5, 0.5, 200), np.zeros(200)])
	sf.write(path, data, 8000, subtype='FLOAT')

	buffer = beatgraph.audio.samples.load_sample(path, 8000)

	assert buffer.shape == (2, 200)
	np.testing.assert_allclose(buffer[0], data[:, 0], atol=1e-6)
	assert not buffer[1].any()


def test_load_sample_resamples (tmp_path: pathlib.Path) -> None:

	"""A file at another rate is converted to the context's rate."""

	path = str(tmp_path / "clap.wav")
	sf.write(path, np.zeros(2205), 22050, subtype='FLOAT')

	buffer = beatgraph.audio.samples.load_sample(path, 44100)

	assert buffer.shape == (1, 4410)


def test_load_missing_sample_raises (tmp_path: pathlib.Path) -> None:

	"""Missing files raise rather than returning silence."""

	with pytest.raises((OSError, RuntimeError)):
		beatgraph.audio.samples.load_sample(str(tmp_path / "missing.ogg"), 44100)
