"""Note names: parsing, formatting and enharmonic respelling.

A note is held as a typed value - ``NoteName`` wraps a ``PitchClass`` (letter,
accidental kind and marker count) and an octave number - and is only turned
back into text at the edges (sample paths, the display, log messages).

Module-level helpers:
- `parse_note(text)`: Parse ``"C#3"``, ``"bb2"``, ``"G"`` etc. into a `NoteName`.
- `parse_pitch_class(text)`: Parse a token into a `PitchClass`, ignoring any octave.
- `normalize_to_flat_or_natural(note)`: Respell a single sharp as the flat (or
  natural) one letter higher - the spelling the sample files are named by.
"""

import dataclasses
import enum
import re
import typing


class ParseError (ValueError):

	"""Raised when note or scale text does not match the note grammar."""


class UnsupportedAccidentalError (ValueError):

	"""Raised when a note carries an accidental the sample naming cannot express."""


class Letter (enum.Enum):

	"""The seven natural note letters, valued by their semitone above C."""

	C = 0
	D = 2
	E = 4
	F = 5
	G = 7
	A = 9
	B = 11

	def next (self) -> "Letter":

		"""Return the letter one step higher, wrapping B to C."""

		return _LETTER_ORDER[(_LETTER_ORDER.index(self) + 1) % len(_LETTER_ORDER)]


_LETTER_ORDER: typing.List[Letter] = list(Letter)


class Accidental (enum.Enum):

	"""Accidental kind. A pitch class carries markers of one kind only."""

	NATURAL = ""
	SHARP = "#"
	FLAT = "b"


@dataclasses.dataclass(frozen=True)
class PitchClass:

	"""
	A note letter with an optional run of sharps or flats, independent of octave.
	"""

	letter: Letter
	accidental: Accidental = Accidental.NATURAL
	count: int = 0

	def __post_init__ (self) -> None:

		"""Keep natural and marker count consistent."""

		if (self.accidental == Accidental.NATURAL) != (self.count == 0):
			raise ValueError(f"Inconsistent accidental {self.accidental.name} with count {self.count}")

		if self.count < 0:
			raise ValueError(f"Accidental count must be non-negative, got {self.count}")

	@property
	def semitone_offset (self) -> int:

		"""Signed semitone shift the accidental applies to the letter."""

		if self.accidental == Accidental.SHARP:
			return self.count

		if self.accidental == Accidental.FLAT:
			return -self.count

		return 0

	def __str__ (self) -> str:

		return f"{self.letter.name}{self.accidental.value * self.count}"


@dataclasses.dataclass(frozen=True)
class NoteName:

	"""
	A pitch class at a specific octave, e.g. ``C#3``.

	Equality follows the canonical spelling, so ``C#3`` and ``Db3`` are
	different values until one of them is respelled.
	"""

	pitch_class: PitchClass
	octave: int

	@property
	def letter (self) -> Letter:

		return self.pitch_class.letter

	@property
	def midi (self) -> int:

		"""MIDI note number with middle C (C4) = 60."""

		return 12 * (self.octave + 1) + self.pitch_class.letter.value + self.pitch_class.semitone_offset

	def __str__ (self) -> str:

		return f"{self.pitch_class}{self.octave}"


# Letter, one kind of accidental run, optional (possibly negative) octave.
_NOTE_PATTERN = re.compile(r"^([A-Ga-g])([#b]*)(-?\d+)?$")


def _split (text: str) -> typing.Tuple[PitchClass, typing.Optional[int]]:

	"""Match the note grammar and return the pitch class and the octave, if any."""

	stripped = text.strip()

	if not stripped:
		raise ParseError("Couldn't parse note: empty text")

	if stripped[0].upper() not in Letter.__members__:
		raise ParseError(f"Couldn't parse note {text!r}: expected a letter A-G")

	match = _NOTE_PATTERN.match(stripped)

	if match is None:
		raise ParseError(f"Couldn't parse note {text!r}")

	letter_text, markers, octave_text = match.groups()

	if "#" in markers and "b" in markers:
		raise ParseError(f"Couldn't parse note {text!r}: mixed sharps and flats")

	if not markers:
		accidental = Accidental.NATURAL
	elif markers[0] == "#":
		accidental = Accidental.SHARP
	else:
		accidental = Accidental.FLAT

	pitch_class = PitchClass(Letter[letter_text.upper()], accidental, len(markers))
	octave = int(octave_text) if octave_text is not None else None

	return pitch_class, octave


def parse_note (text: str, default_octave: typing.Optional[int] = None) -> NoteName:

	"""Parse a note name such as ``"C#3"``, ``"eb4"`` or ``"G"``.

	Parameters:
		text: Letter A-G (any case), then any number of ``#`` or of ``b``
			(not both), then an optional octave number.
		default_octave: Octave used when the text has none.

	Returns:
		The parsed ``NoteName`` with an uppercase letter.

	Raises:
		ParseError: If the text does not follow the grammar, or it has no
			octave and no ``default_octave`` was given.

	Example:
		```python
		parse_note("C#3")                  # -> NoteName(C#, 3)
		parse_note("a", default_octave=4)  # -> NoteName(A, 4)
		```
	"""

	pitch_class, octave = _split(text)

	if octave is None:
		if default_octave is None:
			raise ParseError(f"Couldn't parse note {text!r}: missing octave")
		octave = default_octave

	return NoteName(pitch_class, octave)


def parse_pitch_class (text: str) -> PitchClass:

	"""Parse a note token into its pitch class. An octave suffix is accepted and ignored."""

	pitch_class, _ = _split(text)

	return pitch_class


def format_note (note: NoteName) -> str:

	"""Return the canonical text form, ``<Letter><Accidental?><Octave>``."""

	return str(note)


def normalize_to_flat_or_natural (note: NoteName) -> NoteName:

	"""Respell a note with the flat-or-natural spelling the samples use.

	Naturals and single flats come back unchanged. A single sharp becomes
	the note one letter higher, lowered by a flat unless that letter is a
	semitone away (E# -> F, B# -> C). B# -> C also moves up an octave.

	Raises:
		UnsupportedAccidentalError: For double (or more) sharps or flats.

	Example:
		```python
		normalize_to_flat_or_natural(parse_note("C#3"))  # -> Db3
		normalize_to_flat_or_natural(parse_note("B#3"))  # -> C4
		```
	"""

	pitch_class = note.pitch_class

	if pitch_class.count > 1:
		raise UnsupportedAccidentalError(f"Unsupported accidental in {note}")

	if pitch_class.accidental != Accidental.SHARP:
		return note

	letter = pitch_class.letter.next()
	octave = note.octave + 1 if letter == Letter.C else note.octave

	# One letter up is a whole tone, except E -> F and B -> C.
	if (letter.value - pitch_class.letter.value) % 12 == 1:
		respelled = PitchClass(letter)
	else:
		respelled = PitchClass(letter, Accidental.FLAT, 1)

	return NoteName(respelled, octave)
