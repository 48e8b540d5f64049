"""Keyboard keys bound to signed scale-degree intervals.

The home row plays intervals around the current position::

	a  s  d  f  [space]  j  k  l  ;
	-4 -3 -2 -1    0     +1 +2 +3 +4

Holding shift reaches four degrees further in the same direction, so
``J`` is +5 and ``A`` is -8.  Space is the rest key: it replays the current
note with or without shift.
"""

import typing


BASE_INTERVALS: typing.Dict[str, int] = {
	"a": -4,
	"s": -3,
	"d": -2,
	"f": -1,
	" ": 0,
	"j": 1,
	"k": 2,
	"l": 3,
	";": 4,
}

# The character a terminal reports for each base key with shift held.
SHIFTED_KEYS: typing.Dict[str, str] = {
	"a": "A",
	"s": "S",
	"d": "D",
	"f": "F",
	" ": " ",
	"j": "J",
	"k": "K",
	"l": "L",
	";": ":",
}

SHIFT_EXTENSION = 4

SHIFT_MODIFIERS: typing.FrozenSet[str] = frozenset({"Shift", "ShiftLeft", "ShiftRight"})


def _extend (interval: int) -> int:

	"""Push an interval ``SHIFT_EXTENSION`` further from zero. Zero stays zero."""

	if interval > 0:
		return interval + SHIFT_EXTENSION

	if interval < 0:
		return interval - SHIFT_EXTENSION

	return 0


class KeyIntervalMap:

	"""
	Lookup from key identifier to interval, with a derived shifted table.
	"""

	def __init__ (
		self,
		base: typing.Optional[typing.Dict[str, int]] = None,
		shifted_keys: typing.Optional[typing.Dict[str, str]] = None,
	) -> None:

		"""
		Parameters:
			base: Unshifted key -> interval table (defaults to ``BASE_INTERVALS``).
			shifted_keys: Unshifted key -> shifted key identifier
				(defaults to ``SHIFTED_KEYS``).
		"""

		self._base: typing.Dict[str, int] = dict(base if base is not None else BASE_INTERVALS)
		shifted_keys = shifted_keys if shifted_keys is not None else SHIFTED_KEYS

		self._shifted: typing.Dict[str, int] = {}

		for key, interval in self._base.items():
			shifted_key = shifted_keys.get(key)
			if shifted_key is not None:
				self._shifted[shifted_key] = _extend(interval)

	def interval (self, key: str) -> typing.Optional[int]:

		"""Return the interval bound to a key, or ``None`` if it is not mapped.

		Shift modifier keys are never mapped.
		"""

		if self.is_shift(key):
			return None

		if key in self._base:
			return self._base[key]

		return self._shifted.get(key)

	@staticmethod
	def is_shift (key: str) -> bool:

		return key in SHIFT_MODIFIERS

	def table (self, shifted: bool = False) -> typing.Dict[str, int]:

		"""The active key -> interval table, in keyboard layout order."""

		return dict(self._shifted if shifted else self._base)

	def __contains__ (self, key: str) -> bool:

		return self.interval(key) is not None
