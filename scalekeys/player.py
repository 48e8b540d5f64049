"""The playing position on a scale and the per-note playback slots.

A ``Player`` owns one integer of state, the current scale degree, and a
table of playback slots: for every loaded note, a handle that has not been
started yet.  ``jump(interval)`` moves the position and plays the note it
lands on.

Playback handles are start-once, so a slot can't simply be started again
when the same note is struck twice.  ``jump`` therefore swaps a clone into
the slot *before* starting the handle it took out.  The note stays
triggerable while its previous strike is still ringing, and no started
handle is ever left in a slot.
"""

import dataclasses
import logging
import typing

import scalekeys.keymap
import scalekeys.notes
import scalekeys.samples
import scalekeys.scale


logger = logging.getLogger(__name__)


class NotTriggerable (LookupError):

	"""The note at the new position has no loaded sample."""

	def __init__ (self, note: scalekeys.notes.NoteName) -> None:

		super().__init__(f"No sample loaded for {note}")

		self.note = note


@dataclasses.dataclass(frozen=True)
class Highlight:

	"""
	One key's target from the current position, for labelling the scale.
	"""

	key: str
	interval: int
	note: scalekeys.notes.NoteName


class Player:

	"""
	Current position on a scale plus the playback slot table.

	One player per scale: when the scale is redefined, a new ``Player`` is
	built and loaded, then replaces this one.
	"""

	def __init__ (self, scale: scalekeys.scale.Scale) -> None:

		"""Start on the root of the middle octave.

		Parameters:
			scale: The scale to play. It never changes for this player.
		"""

		self.scale = scale
		self.scale_degree: int = (scale.num_octaves // 2) * len(scale.pitch_classes)

		self._library: typing.Optional[scalekeys.samples.SampleLibrary] = None
		self._slots: typing.Dict[scalekeys.notes.NoteName, scalekeys.samples.Playable] = {}

	async def load (
		self,
		library: scalekeys.samples.SampleLibrary,
		volume: str = scalekeys.samples.DEFAULT_VOLUME,
	) -> int:

		"""Load a handle for every note of the scale.

		Notes that fail to load are absent from the slot table and cannot
		be triggered.

		Returns:
			The number of notes that loaded.
		"""

		self._library = library
		self._slots = dict(await library.load_all(self.scale.all_notes(), volume))

		return len(self._slots)

	@property
	def current_note (self) -> scalekeys.notes.NoteName:

		return self.scale.note(self.scale_degree)

	@property
	def triggerable (self) -> typing.FrozenSet[scalekeys.notes.NoteName]:

		"""Notes that have a loaded sample."""

		return frozenset(self._slots)

	def jump (self, interval: int) -> scalekeys.samples.Playable:

		"""Move by ``interval`` degrees and play the note landed on.

		The position moves even when the note cannot be played.

		Returns:
			The started handle, so the caller can stop that exact voice later.

		Raises:
			NotTriggerable: If the landed-on note has no loaded sample.
		"""

		self.scale_degree += interval
		note = self.scale.note(self.scale_degree)

		handle = self._slots.get(note)

		if handle is None:
			raise NotTriggerable(note)

		assert self._library is not None, "A player with slots has a library"

		# Refill the slot first: it must never hold a started handle.
		self._slots[note] = self._library.clone(handle)
		handle.start()

		logger.debug(f"jump {interval:+d} -> {note} (degree {self.scale_degree})")

		return handle

	def highlights (
		self,
		keymap: scalekeys.keymap.KeyIntervalMap,
		shifted: bool = False,
	) -> typing.List[Highlight]:

		"""The note each key of the active table would reach from here. No side effects."""

		return [
			Highlight(key, interval, self.scale.note(self.scale_degree + interval))
			for key, interval in keymap.table(shifted).items()
		]
