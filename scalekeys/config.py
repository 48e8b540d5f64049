"""Instrument settings from a YAML file, with defaults for everything.

Example ``scalekeys.yaml``::

	scale: "D E F# G A B C#"
	start_octave: 2
	num_octaves: 4
	backend: audio
	sample_dir: ./samples
	volume: mf
	sustain: false
"""

import dataclasses
import logging
import os
import typing

import yaml

import scalekeys.samples
import scalekeys.scale


logger = logging.getLogger(__name__)


BACKENDS = ("audio", "midi")


@dataclasses.dataclass(frozen=True)
class InstrumentConfig:

	"""
	Everything needed to build and run an instrument session.
	"""

	scale: str = " ".join(scalekeys.scale.DEFAULT_LETTERS)
	start_octave: int = scalekeys.scale.DEFAULT_START_OCTAVE
	num_octaves: int = scalekeys.scale.DEFAULT_NUM_OCTAVES
	volume: str = scalekeys.samples.DEFAULT_VOLUME
	backend: str = "audio"
	sample_dir: str = "samples"
	extension: str = scalekeys.samples.DEFAULT_EXTENSION
	midi_device: typing.Optional[str] = None
	midi_channel: int = 0
	sustain: bool = True
	log_level: str = "INFO"

	def __post_init__ (self) -> None:

		if self.backend not in BACKENDS:
			raise ValueError(f"Unknown backend {self.backend!r}. Expected one of {BACKENDS}.")

		if self.num_octaves < 1:
			raise ValueError(f"num_octaves must be at least 1, got {self.num_octaves}")

	def merged (self, **overrides: typing.Any) -> "InstrumentConfig":

		"""A copy with every non-``None`` override applied."""

		return dataclasses.replace(self, **{k: v for k, v in overrides.items() if v is not None})


def config_from_dict (data: typing.Dict[str, typing.Any]) -> InstrumentConfig:

	"""Build a config from a mapping, rejecting unknown keys."""

	known = {field.name for field in dataclasses.fields(InstrumentConfig)}
	unknown = sorted(set(data) - known)

	if unknown:
		raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

	return InstrumentConfig(**data)


def load_config (config_path: typing.Optional[str] = None) -> InstrumentConfig:

	"""Load settings from a YAML file.

	A missing file logs a warning and yields the defaults.
	"""

	if config_path is None:
		return InstrumentConfig()

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return InstrumentConfig()

	with open(config_path, "r") as f:
		data = yaml.safe_load(f) or {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping")

	return config_from_dict(data)
