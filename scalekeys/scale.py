"""Multi-octave scales addressed by integer degree.

A ``Scale`` is an ordered list of pitch classes (the first one is the root)
laid out over ``num_octaves`` consecutive octaves starting at
``start_octave``.  Every integer is a valid degree: degrees wrap around the
pitch classes and around the octave range, so the scale behaves as a ring.

```python
scale = parse_scale("C D E F G A B", start_octave=3, num_octaves=5)

scale.note(0)    # C3
scale.note(7)    # C4
scale.note(-1)   # B7 (wraps to the top octave)
scale.note(35)   # C3 (full cycle)
```
"""

import dataclasses
import typing

import scalekeys.notes


DEFAULT_LETTERS: typing.Tuple[str, ...] = ("C", "D", "E", "F", "G", "A", "B")
DEFAULT_START_OCTAVE = 3
DEFAULT_NUM_OCTAVES = 5


@dataclasses.dataclass(frozen=True)
class Scale:

	"""
	An immutable cyclic scale over a fixed range of octaves.
	"""

	pitch_classes: typing.Tuple[scalekeys.notes.PitchClass, ...]
	start_octave: int = DEFAULT_START_OCTAVE
	num_octaves: int = DEFAULT_NUM_OCTAVES

	def __post_init__ (self) -> None:

		"""Validate the scale shape."""

		if not self.pitch_classes:
			raise ValueError("A scale needs at least one pitch class")

		if self.num_octaves < 1:
			raise ValueError(f"num_octaves must be at least 1, got {self.num_octaves}")

		# Accept any sequence but store a tuple so the scale stays hashable.
		object.__setattr__(self, "pitch_classes", tuple(self.pitch_classes))

	@property
	def num_notes (self) -> int:

		"""Number of addressable degrees before the scale repeats."""

		return len(self.pitch_classes) * self.num_octaves

	def note (self, degree: int) -> scalekeys.notes.NoteName:

		"""Return the note at a scale degree.

		Degree 0 is the root in ``start_octave``.  Degrees outside
		``0 .. num_notes - 1`` (including negative ones) wrap around, so
		``note(d) == note(d + num_notes)`` for every ``d``.
		"""

		length = len(self.pitch_classes)
		degree = degree % self.num_notes

		pitch_class = self.pitch_classes[degree % length]
		octave = self.start_octave + (degree // length) % self.num_octaves

		return scalekeys.notes.NoteName(pitch_class, octave)

	def all_notes (self) -> typing.List[scalekeys.notes.NoteName]:

		"""Every note of the scale in ascending degree order."""

		return [self.note(degree) for degree in range(self.num_notes)]

	def root (self) -> scalekeys.notes.PitchClass:

		"""The first pitch class of the scale."""

		return self.pitch_classes[0]

	def is_root (self, note: scalekeys.notes.NoteName) -> bool:

		"""True when the note is the root pitch class in any octave."""

		return note.pitch_class == self.root()


def parse_scale (
	text: str,
	start_octave: int = DEFAULT_START_OCTAVE,
	num_octaves: int = DEFAULT_NUM_OCTAVES,
) -> Scale:

	"""Build a scale from whitespace-separated note tokens.

	Octave suffixes on the tokens are accepted and ignored; only the pitch
	classes matter for the scale template.

	Raises:
		ParseError: If the text is empty or any token is not a note.
	"""

	tokens = text.split()

	if not tokens:
		raise scalekeys.notes.ParseError("A scale needs at least one note")

	pitch_classes = tuple(scalekeys.notes.parse_pitch_class(token) for token in tokens)

	return Scale(pitch_classes, start_octave=start_octave, num_octaves=num_octaves)


def default_scale () -> Scale:

	"""C major from octave 3 over five octaves."""

	return parse_scale(" ".join(DEFAULT_LETTERS))
