"""Equal-tempered tuning relative to A4 (MIDI note 69) = 440 Hz."""

REFERENCE_NOTE = 69
REFERENCE_FREQ = 440.0


def note_to_freq (note: float) -> float:

	"""Convert a MIDI note number to a frequency in Hz.

	Out-of-range notes are not rejected - they simply give very low or very
	high frequencies.

	Example:
		```python
		note_to_freq(69)  # 440.0
		note_to_freq(57)  # 220.0
		```
	"""

	return REFERENCE_FREQ * 2 ** ((note - REFERENCE_NOTE) / 12)
