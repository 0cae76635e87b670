import logging
import pathlib

import pytest

import beatgraph.config
import beatgraph.track


REPO_CONFIG = pathlib.Path(__file__).parent.parent / "config.yaml"


def test_missing_file_uses_defaults (tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture) -> None:

	"""A missing config file falls back to a private copy of the defaults."""

	with caplog.at_level(logging.WARNING, logger="beatgraph.config"):
		config = beatgraph.config.load_config(str(tmp_path / "nope.yaml"))

	assert "not found" in caplog.text
	assert config == beatgraph.config.DEFAULTS

	config["audio"]["sample_rate"] = 1

	assert beatgraph.config.DEFAULTS["audio"]["sample_rate"] == 44100


def test_partial_file_merges_with_defaults (tmp_path: pathlib.Path) -> None:

	"""Keys left out of a section keep their default values."""

	path = tmp_path / "config.yaml"
	path.write_text("audio:\n  sample_rate: 48000\nduration: 30\n")

	config = beatgraph.config.load_config(str(path))

	assert config["audio"]["sample_rate"] == 48000
	assert config["audio"]["channels"] == 2
	assert config["sequencer"]["lookahead_beats"] == 0.5
	assert config["duration"] == 30
	assert config["track"] == beatgraph.config.DEFAULT_PATTERN


def test_track_is_replaced_not_merged (tmp_path: pathlib.Path) -> None:

	"""A configured track replaces the default pattern entirely."""

	path = tmp_path / "config.yaml"
	path.write_text("track:\n  tempo: 90\n  tracks:\n    Kick: [1, 0]\n")

	config = beatgraph.config.load_config(str(path))

	assert config["track"] == {"tempo": 90, "tracks": {"Kick": [1, 0]}}


def test_empty_file_uses_defaults (tmp_path: pathlib.Path) -> None:

	"""An empty file is the same as no overrides."""

	path = tmp_path / "config.yaml"
	path.write_text("")

	assert beatgraph.config.load_config(str(path)) == beatgraph.config.DEFAULTS


def test_non_mapping_raises (tmp_path: pathlib.Path) -> None:

	"""The top level of the file must be a mapping."""

	path = tmp_path / "config.yaml"
	path.write_text("- 1\n- 2\n")

	with pytest.raises(ValueError):
		beatgraph.config.load_config(str(path))


def test_empty_sections_keep_defaults (tmp_path: pathlib.Path) -> None:

	"""Sections present but empty in YAML fall back to their defaults."""

	path = tmp_path / "config.yaml"
	path.write_text("audio:\nsamples:\nsequencer: null\n")

	config = beatgraph.config.load_config(str(path))

	assert config["audio"] == beatgraph.config.DEFAULTS["audio"]
	assert config["samples"] == {"clap": "clap.ogg"}
	assert config["sequencer"]["tick_interval"] == 0.1


def test_non_mapping_section_raises (tmp_path: pathlib.Path) -> None:

	"""A section that should be a mapping cannot be a scalar or list."""

	path = tmp_path / "config.yaml"
	path.write_text("samples: clap.ogg\n")

	with pytest.raises(ValueError, match="samples"):
		beatgraph.config.load_config(str(path))


def test_shipped_config_builds_a_track () -> None:

	"""The example config.yaml describes a playable track."""

	config = beatgraph.config.load_config(str(REPO_CONFIG))
	track = beatgraph.track.Track.from_dict(config["track"])

	assert track.tempo == 135.0
	assert set(track.instruments) == {"Kick", "Hats", "Clap", "Bass"}
	assert all(len(steps) == 32 for steps in track.instruments.values())


def test_default_pattern_builds_a_track () -> None:

	"""The built-in pattern is valid on its own."""

	track = beatgraph.track.Track.from_dict(beatgraph.config.DEFAULT_PATTERN)

	assert track.hit("Bass", 0) == 36
	assert track.hit("Clap", 4) == 1
