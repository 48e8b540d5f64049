"""Play the instrument on a MIDI device instead of from sample files.

Each scale note becomes a ``MidiVoice``: starting it sends ``note_on``,
stopping it sends ``note_off``.  The dynamics label that names the sample
folder (``"mf"``, ``"ff"``...) picks the note-on velocity.
"""

import logging
import typing

import mido

import scalekeys.notes
import scalekeys.samples


logger = logging.getLogger(__name__)


DEFAULT_VELOCITY = 100
MIN_VELOCITY = 1
MAX_VELOCITY = 127

VELOCITY_BY_DYNAMIC: typing.Dict[str, int] = {
	"ppp": 16,
	"pp": 33,
	"p": 49,
	"mp": 64,
	"mf": 80,
	"f": 96,
	"ff": 112,
	"fff": 127,
}


def velocity_for (volume: str) -> int:

	"""Map a dynamics label to a MIDI velocity. Unknown labels get ``DEFAULT_VELOCITY``."""

	return VELOCITY_BY_DYNAMIC.get(volume.lower(), DEFAULT_VELOCITY)


def open_output (device_name: typing.Optional[str] = None) -> typing.Any:

	"""Open a MIDI output port.

	With a name, opens that device.  Without one, uses the only available
	device, or the first one (with a warning) when there are several.

	Raises:
		OSError: If no usable output device exists.
	"""

	outputs = mido.get_output_names()
	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		raise OSError("No MIDI output devices found")

	if device_name is not None:
		if device_name not in outputs:
			raise OSError(f"MIDI output device '{device_name}' not found. Available devices: {outputs}")
		selected = device_name

	else:
		selected = outputs[0]
		if len(outputs) > 1:
			logger.warning(f"Several MIDI outputs found - using '{selected}'. Pass a device name to choose.")

	port = mido.open_output(selected)
	logger.info(f"Opened MIDI output: {selected}")

	return port


class MidiVoice:

	"""
	One strike of a note on a MIDI port. Can be started once.
	"""

	def __init__ (self, port: typing.Any, channel: int, note: int, velocity: int) -> None:

		self.port = port
		self.channel = channel
		self.note = note
		self.velocity = velocity

		self._started = False
		self._sounding = False

	@property
	def started (self) -> bool:

		return self._started

	def start (self) -> None:

		if self._started:
			raise RuntimeError("Voice has already been started")

		self._started = True
		self._sounding = True
		self.port.send(mido.Message("note_on", channel=self.channel, note=self.note, velocity=self.velocity))

	def stop (self) -> None:

		"""Send ``note_off`` if this voice is sounding."""

		if not self._sounding:
			return

		self._sounding = False
		self.port.send(mido.Message("note_off", channel=self.channel, note=self.note, velocity=0))

	def clone (self) -> "MidiVoice":

		return MidiVoice(self.port, self.channel, self.note, self.velocity)


class MidiBackend:

	"""
	A sample backend whose "samples" are notes on one MIDI port and channel.
	"""

	def __init__ (self, port: typing.Any, channel: int = 0) -> None:

		if not 0 <= channel <= 15:
			raise ValueError(f"MIDI channel must be 0-15, got {channel}")

		self.port = port
		self.channel = channel

	async def load (self, address: scalekeys.samples.SampleAddress) -> MidiVoice:

		"""Build a voice for the note.

		Notes fail to load when they are outside MIDI range, or when they
		cannot be respelled the way sample files are named (double
		accidentals), so every backend skips the same notes.
		"""

		number = scalekeys.notes.normalize_to_flat_or_natural(address.note).midi

		if not 0 <= number <= 127:
			raise ValueError(f"{address.note} is outside the MIDI note range")

		velocity = max(MIN_VELOCITY, min(MAX_VELOCITY, velocity_for(address.volume)))

		return MidiVoice(self.port, self.channel, number, velocity)

	def close (self) -> None:

		"""Release every note on the channel, then close the port."""

		self.port.send(mido.Message("control_change", channel=self.channel, control=123, value=0))
		self.port.close()
