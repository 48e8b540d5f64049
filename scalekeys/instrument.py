"""The playing session: scale, player, held keys and scale redefinition.

``Instrument`` turns key events into jumps on the current ``Player``.  It
ignores auto-repeat and keys that are already held, tracks the shift
preview, and (with sustain off) stops a voice when its key is released.

Redefining the scale builds and loads a whole new ``Player``.  It only
replaces the old one once the new scale has parsed, so a typo leaves the
instrument playing the old scale.
"""

import asyncio
import logging
import typing

import scalekeys.keymap
import scalekeys.keystroke
import scalekeys.notes
import scalekeys.player
import scalekeys.samples
import scalekeys.scale


logger = logging.getLogger(__name__)


ENTRY_KEY = "!"
"""Starts typing a new scale."""

QUIT_KEY = "\x1b"
"""Escape: ends the session (or cancels scale entry)."""

_SUBMIT_KEYS = frozenset({"\n", "\r"})
_ERASE_KEYS = frozenset({"\x7f", "\b"})


class Instrument:

	"""
	Routes key events to the active player.

	Example:
		```python
		instrument = Instrument(SampleLibrary(backend))
		await instrument.redefine("C D E F G A B")

		instrument.key_down("j")   # one degree up
		instrument.key_up("j")
		```
	"""

	def __init__ (
		self,
		library: scalekeys.samples.SampleLibrary,
		keymap: typing.Optional[scalekeys.keymap.KeyIntervalMap] = None,
		volume: str = scalekeys.samples.DEFAULT_VOLUME,
		sustain: bool = True,
		start_octave: int = scalekeys.scale.DEFAULT_START_OCTAVE,
		num_octaves: int = scalekeys.scale.DEFAULT_NUM_OCTAVES,
	) -> None:

		"""
		Parameters:
			library: Loads the samples for each scale.
			keymap: Key bindings (defaults to the home-row layout).
			volume: Dynamics label of the samples to load.
			sustain: When False, releasing a key stops the voice it started.
			start_octave: Lowest octave of every scale.
			num_octaves: Octave count of every scale.
		"""

		self.library = library
		self.keymap = keymap if keymap is not None else scalekeys.keymap.KeyIntervalMap()
		self.volume = volume
		self.sustain = sustain
		self.start_octave = start_octave
		self.num_octaves = num_octaves

		self.player: typing.Optional[scalekeys.player.Player] = None
		self.shifted: bool = False
		self.last_error: typing.Optional[str] = None

		#: Scale text being typed, or ``None`` when not entering a scale.
		self.entry: typing.Optional[str] = None

		self._pressed: typing.Dict[str, typing.Optional[scalekeys.samples.Playable]] = {}
		self._listeners: typing.List[typing.Callable[["Instrument"], None]] = []

	def on_change (self, callback: typing.Callable[["Instrument"], None]) -> None:

		"""Register a callback run after every visible state change."""

		self._listeners.append(callback)

	def _notify (self) -> None:

		for callback in self._listeners:
			callback(self)

	async def redefine (self, text: str) -> bool:

		"""Replace the scale and player, keeping the old ones if the text is bad.

		Returns:
			True if the new scale is now active.
		"""

		try:
			scale = scalekeys.scale.parse_scale(text, self.start_octave, self.num_octaves)

		except scalekeys.notes.ParseError as exc:
			self.last_error = str(exc)
			logger.error(f"Scale not changed: {exc}")
			self._notify()
			return False

		player = scalekeys.player.Player(scale)
		loaded = await player.load(self.library, self.volume)

		if loaded == 0:
			logger.warning(f"No samples loaded for {text.strip()!r}; every note is silent")

		self.player = player
		self._pressed.clear()
		self.last_error = None

		logger.info(f"Scale: {' '.join(str(pc) for pc in scale.pitch_classes)} ({scale.num_notes} notes, {loaded} playable)")

		self._notify()

		return True

	def key_down (self, key: str, repeat: bool = False) -> typing.Optional[scalekeys.samples.Playable]:

		"""Play the note a key reaches from the current position.

		Returns:
			The started voice, or ``None`` when nothing was played.
		"""

		if self.keymap.is_shift(key):
			self.shifted = True
			self._notify()
			return None

		if repeat or key in self._pressed:
			return None

		interval = self.keymap.interval(key)

		if interval is None or self.player is None:
			return None

		handle: typing.Optional[scalekeys.samples.Playable]

		try:
			handle = self.player.jump(interval)

		except scalekeys.player.NotTriggerable as exc:
			logger.debug(f"Silent: {exc}")
			handle = None

		self._pressed[key] = handle
		self._notify()

		return handle

	def key_up (self, key: str) -> None:

		"""Release a key; stops its voice unless sustain is on."""

		if self.keymap.is_shift(key):
			self.shifted = False
			self._notify()
			return

		handle = self._pressed.pop(key, None)

		if handle is not None and not self.sustain:
			handle.stop()

	async def handle (self, event: scalekeys.keystroke.KeyEvent) -> None:

		"""Dispatch one key event, including scale-entry keys."""

		if self.entry is not None:
			if event.kind == scalekeys.keystroke.KEY_DOWN:
				await self._edit_entry(event.key)
			return

		if event.kind == scalekeys.keystroke.KEY_UP:
			self.key_up(event.key)
			return

		if event.key == ENTRY_KEY and not event.repeat:
			self.entry = ""
			self._notify()
			return

		self.key_down(event.key, event.repeat)

	async def _edit_entry (self, key: str) -> None:

		"""Type into the scale entry line. Enter submits, Escape cancels."""

		assert self.entry is not None

		if key in _SUBMIT_KEYS:
			text, self.entry = self.entry, None
			await self.redefine(text)
			return

		if key == QUIT_KEY:
			self.entry = None
		elif key in _ERASE_KEYS:
			self.entry = self.entry[:-1]
		elif key.isprintable():
			self.entry += key

		self._notify()

	async def run (self, queue: "asyncio.Queue[scalekeys.keystroke.KeyEvent]") -> None:

		"""Process events in arrival order until the quit key is pressed."""

		while True:
			event = await queue.get()

			if self.entry is None and event.key == QUIT_KEY and event.kind == scalekeys.keystroke.KEY_DOWN:
				logger.info("Quit")
				return

			await self.handle(event)
