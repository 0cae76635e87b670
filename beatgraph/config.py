import copy
import logging
import os
import typing

import yaml

import beatgraph.constants


logger = logging.getLogger(__name__)


# Two bars of sixteenths at 135 BPM: four-on-the-floor kick, off-beat hats,
# clap on the backbeat and a wandering bass line.
DEFAULT_PATTERN: typing.Dict[str, typing.Any] = {
	"tempo": 135,
	"tracks": {
		"Kick": [
			1, 0, 0, 0, 1, 0, 0, 0,
			1, 0, 0, 0, 1, 0, 0, 0,
			1, 0, 0, 0, 1, 0, 0, 0,
			1, 0, 0, 0, 1, 0, 0, 0,
		],
		"Hats": [
			0, 0, 1, 0, 0, 0, 1, 0,
			0, 0, 1, 0, 0, 0, 1, 1,
			0, 0, 1, 0, 0, 0, 1, 0,
			0, 0, 1, 0, 0, 0, 1, 0,
		],
		"Clap": [
			0, 0, 0, 0, 1, 0, 0, 0,
			0, 0, 0, 0, 1, 0, 0, 0,
			0, 0, 0, 0, 1, 0, 0, 0,
			0, 0, 0, 0, 1, 0, 0, 0,
		],
		"Bass": [
			36, 0, 38, 36, 36, 38, 41, 0,
			36, 60, 36, 0, 39, 0, 48, 0,
			36, 0, 24, 60, 40, 40, 24, 24,
			36, 60, 36, 0, 39, 0, 48, 0,
		],
	},
}

DEFAULTS: typing.Dict[str, typing.Any] = {
	"track": DEFAULT_PATTERN,
	"audio": {
		"device": None,
		"sample_rate": beatgraph.constants.DEFAULT_SAMPLE_RATE,
		"channels": beatgraph.constants.DEFAULT_CHANNELS,
		"blocksize": beatgraph.constants.DEFAULT_BLOCKSIZE,
	},
	"samples": {
		"clap": "clap.ogg",
	},
	"sequencer": {
		"lookahead_beats": beatgraph.constants.DEFAULT_LOOKAHEAD_BEATS,
		"tick_interval": beatgraph.constants.DEFAULT_TICK_INTERVAL,
		"record": False,
		"record_filename": None,
	},
	"duration": None,
}


def _merge (base: typing.Dict[str, typing.Any], override: typing.Mapping[str, typing.Any]) -> typing.Dict[str, typing.Any]:

	"""Recursively overlay ``override`` on ``base``. Tracks are replaced, not merged."""

	merged = copy.deepcopy(base)

	for key, value in override.items():

		# A section left empty in YAML (``audio:`` with nothing under it) keeps its defaults.
		if value is None and isinstance(merged.get(key), dict):
			continue

		if key != "track" and isinstance(value, dict) and isinstance(merged.get(key), dict):
			merged[key] = _merge(merged[key], value)
		elif isinstance(merged.get(key), dict) and not isinstance(value, dict):
			raise ValueError(f"Config section {key!r} must be a mapping")
		else:
			merged[key] = value

	return merged


def load_config (config_path: str = 'config.yaml') -> typing.Dict[str, typing.Any]:

	"""
	Load configuration from a YAML file, filling gaps from :data:`DEFAULTS`.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return copy.deepcopy(DEFAULTS)

	with open(config_path, 'r') as f:
		loaded = yaml.safe_load(f) or {}

	if not isinstance(loaded, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return _merge(DEFAULTS, loaded)
