import logging
import types
import typing

import numpy as np
import pytest

try:
	import sounddevice
except OSError:
	pytest.skip("PortAudio library not available", allow_module_level=True)

import beatgraph.audio.device


class FakeOutputStream:

	"""Records how it was opened and driven instead of touching a sound card."""

	def __init__ (self, **kwargs: typing.Any) -> None:

		self.kwargs = kwargs
		self.started = False
		self.stopped = False
		self.closed = False
		self.fail_on_stop = False


	def start (self) -> None:

		self.started = True


	def stop (self) -> None:

		if self.fail_on_stop:
			raise sounddevice.PortAudioError("device vanished")

		self.stopped = True


	def close (self) -> None:

		self.closed = True


@pytest.fixture
def fake_stream (monkeypatch: pytest.MonkeyPatch) -> None:

	"""Replace the PortAudio output stream."""

	monkeypatch.setattr(sounddevice, "OutputStream", FakeOutputStream)


@pytest.fixture
def fake_devices (monkeypatch: pytest.MonkeyPatch) -> None:

	"""A microphone, the default speakers and a USB interface."""

	devices = [
		{"name": "Built-in Mic", "max_output_channels": 0},
		{"name": "Speakers", "max_output_channels": 2},
		{"name": "USB Audio Interface", "max_output_channels": 8},
	]

	monkeypatch.setattr(sounddevice, "query_devices", lambda: devices)
	monkeypatch.setattr(sounddevice, "default", types.SimpleNamespace(device=(0, 1)))


# ── Device selection ─────────────────────────────────────────────────


def test_select_by_substring (fake_devices: None) -> None:

	"""A configured name matches any output containing it."""

	assert beatgraph.audio.device.select_output_device("USB") == ("USB Audio Interface", 2)


def test_select_default_output (fake_devices: None) -> None:

	"""Without a name the system default output is used."""

	assert beatgraph.audio.device.select_output_device() == ("Speakers", 1)


def test_select_ignores_inputs (fake_devices: None) -> None:

	"""Input-only devices never match."""

	assert beatgraph.audio.device.select_output_device("Mic") == (None, None)


def test_select_handles_query_failure (monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:

	"""A failing device query is logged and reported as no device."""

	def broken () -> None:
		raise sounddevice.PortAudioError("no host API")

	monkeypatch.setattr(sounddevice, "query_devices", broken)

	with caplog.at_level(logging.ERROR, logger="beatgraph.audio.device"):
		assert beatgraph.audio.device.select_output_device() == (None, None)

	assert "Failed to query" in caplog.text


# ── Real-time context ────────────────────────────────────────────────


def test_stream_opened_with_context_settings (fake_stream: None) -> None:

	"""The stream matches the context's rate, layout and block size."""

	context = beatgraph.audio.device.DeviceAudioContext(sample_rate=8000, channels=1, blocksize=128, device=3)

	kwargs = context.stream.kwargs

	assert kwargs["samplerate"] == 8000
	assert kwargs["channels"] == 1
	assert kwargs["blocksize"] == 128
	assert kwargs["device"] == 3
	assert kwargs["dtype"] == 'float32'
	assert kwargs["callback"] == context._callback


def test_callback_renders_and_advances_clock (fake_stream: None) -> None:

	"""Each callback pulls one block from the graph and moves the device clock."""

	context = beatgraph.audio.device.DeviceAudioContext(sample_rate=8000, channels=2, blocksize=128)

	source = context.create_buffer_source()
	source.buffer = np.array([[0.5, 2.0, -3.0]])
	source.start(0.0)
	source.connect(context.destination)

	outdata = np.zeros((128, 2), dtype=np.float32)
	context._callback(outdata, 128, None, None)

	assert context.current_time == pytest.approx(128 / 8000)
	np.testing.assert_allclose(outdata[:3, 0], [0.5, 1.0, -1.0])
	np.testing.assert_array_equal(outdata[:, 0], outdata[:, 1])


def test_context_manager_starts_and_closes (fake_stream: None) -> None:

	"""Entering starts the stream; leaving stops and closes it."""

	with beatgraph.audio.device.DeviceAudioContext(sample_rate=8000) as context:
		assert context.stream.started

	assert context.stream.stopped
	assert context.stream.closed


def test_close_survives_stream_errors (fake_stream: None, caplog: pytest.LogCaptureFixture) -> None:

	"""A stream that fails to stop is logged, not raised."""

	context = beatgraph.audio.device.DeviceAudioContext(sample_rate=8000)
	context.stream.fail_on_stop = True

	with caplog.at_level(logging.ERROR, logger="beatgraph.audio.device"):
		context.close()

	assert "Failed to close" in caplog.text
