import logging
import math

import numpy as np
import soundfile as sf


logger = logging.getLogger(__name__)


def resample_linear (signal: np.ndarray, ratio: float) -> np.ndarray:

	"""
	Resample a ``(channels, frames)`` signal by linear interpolation.

	``ratio`` is source rate / target rate; 2.0 halves the number of frames.
	"""

	if ratio == 1.0:
		return signal

	frames = signal.shape[1]
	new_frames = int(max(1, math.floor(frames / ratio)))
	positions = np.arange(new_frames) * ratio
	source = np.arange(frames)

	return np.stack([np.interp(positions, source, channel) for channel in signal])


def load_sample (path: str, sample_rate: int) -> np.ndarray:

	"""
	Load an audio file as a ``(channels, frames)`` float buffer at ``sample_rate``.

	Raises whatever ``soundfile`` raises when the file is missing or unreadable.
	"""

	data, file_rate = sf.read(path, dtype='float64', always_2d=True)
	buffer = data.T

	if file_rate != sample_rate:
		logger.info(f"Resampling {path} from {file_rate} Hz to {sample_rate} Hz")
		buffer = resample_linear(buffer, file_rate / sample_rate)

	logger.info(f"Loaded sample {path}: {buffer.shape[0]} channel(s), {buffer.shape[1] / sample_rate:.3f}s")

	return buffer
