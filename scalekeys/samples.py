"""Concurrent acquisition of one playable handle per scale note.

``SampleLibrary`` turns a list of notes into a ``{note: handle}`` table.  It
does not know how sound is produced: a ``SampleBackend`` loads a single
address into a ``Playable`` (decoded audio in :mod:`scalekeys.audio`, a MIDI
voice in :mod:`scalekeys.midi`, a fake in the tests).

Loads run concurrently and are awaited together.  A note whose load fails
is logged and left out of the table - the instrument plays whatever loaded.
"""

import asyncio
import dataclasses
import logging
import typing

import scalekeys.notes


logger = logging.getLogger(__name__)


DEFAULT_VOLUME = "mf"
DEFAULT_EXTENSION = "mp3"


class SampleLoadError (RuntimeError):

	"""A single note's sample could not be loaded."""

	def __init__ (self, address: "SampleAddress", cause: BaseException) -> None:

		# Not address.path: respelling the note may be what failed.
		super().__init__(f"Failed to load {address.volume} sample for {address.note}: {cause}")

		self.address = address
		self.cause = cause


@typing.runtime_checkable
class Playable (typing.Protocol):

	"""
	A start-once playback handle.

	``start()`` may be called at most once; a second call raises
	``RuntimeError``.  ``clone()`` returns a fresh, unstarted handle on the
	same sample data and output.
	"""

	@property
	def started (self) -> bool:

		...

	def start (self) -> None:

		...

	def stop (self) -> None:

		...

	def clone (self) -> "Playable":

		...


class SampleBackend (typing.Protocol):

	"""
	Loads the sample behind one address into a playable handle.
	"""

	async def load (self, address: "SampleAddress") -> Playable:

		...


@dataclasses.dataclass(frozen=True)
class SampleAddress:

	"""
	Where the sample for a note lives: ``{volume}/{flat-or-natural note}.{extension}``.
	"""

	volume: str
	note: scalekeys.notes.NoteName
	extension: str = DEFAULT_EXTENSION

	@property
	def path (self) -> str:

		"""Relative sample path, e.g. ``mf/Db3.mp3`` for ``C#3``.

		Raises:
			UnsupportedAccidentalError: If the note cannot be respelled.
		"""

		spelled = scalekeys.notes.normalize_to_flat_or_natural(self.note)

		return f"{self.volume}/{spelled}.{self.extension}"


class SampleLibrary:

	"""
	Loads and clones playable handles through a backend.
	"""

	def __init__ (self, backend: SampleBackend, extension: str = DEFAULT_EXTENSION) -> None:

		"""
		Parameters:
			backend: Loads a single ``SampleAddress`` into a ``Playable``.
			extension: Audio file extension used in sample addresses.
		"""

		self.backend = backend
		self.extension = extension

	async def load_all (
		self,
		notes: typing.Sequence[scalekeys.notes.NoteName],
		volume: str = DEFAULT_VOLUME,
	) -> typing.Dict[scalekeys.notes.NoteName, Playable]:

		"""Load every note concurrently and return the ones that succeeded.

		Each note is loaded in its own task; the call returns once every
		task has either produced a handle or failed.  Failures are logged
		and the note is left out of the result.

		Parameters:
			notes: Notes to load, e.g. ``scale.all_notes()``.
			volume: Dynamics label, the first path component of each address.

		Returns:
			A dict from note to its loaded handle, in the order of ``notes``.
		"""

		unique = list(dict.fromkeys(notes))

		results = await asyncio.gather(*(self._load_one(note, volume) for note in unique))

		loaded = {note: handle for note, handle in zip(unique, results) if handle is not None}

		failed = len(unique) - len(loaded)

		if failed:
			logger.warning(f"Loaded {len(loaded)} of {len(unique)} samples ({failed} unavailable)")
		else:
			logger.info(f"Loaded {len(loaded)} samples")

		return loaded

	async def _load_one (self, note: scalekeys.notes.NoteName, volume: str) -> typing.Optional[Playable]:

		"""Load one note, turning any failure into a logged ``None``."""

		address = SampleAddress(volume, note, self.extension)

		try:
			return await self.backend.load(address)

		except Exception as exc:
			error = exc if isinstance(exc, SampleLoadError) else SampleLoadError(address, exc)
			logger.warning(f"{note} unavailable: {error}")
			return None

	def clone (self, handle: Playable) -> Playable:

		"""Return a fresh, unstarted handle sharing ``handle``'s sample and output."""

		return handle.clone()
