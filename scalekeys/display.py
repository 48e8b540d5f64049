"""Text ribbon of the scale for the terminal.

The ribbon shows a window of the scale around the current position, one
column per degree, with the key that reaches each note and its interval
underneath::

	   C4   D4   E4   F4   G4   A4   B4  *C5   D5   E5   F5   G5   A5
	                    a    s    d    f    _    j    k    l    ;
	                   -4   -3   -2   -1    0   +1   +2   +3   +4

Root notes are starred and the rest key (space) is drawn as ``_``.  Log
messages scroll above the ribbon without breaking it.
"""

import logging
import shutil
import sys
import typing

import scalekeys.keymap
import scalekeys.player

if typing.TYPE_CHECKING:
	from scalekeys.instrument import Instrument


_MIN_CELL_WIDTH = 4
_KEY_LABELS = {" ": "_"}


def _visible_range (total: int, centre: int, columns: int) -> range:

	"""The slice of ``total`` columns, at most ``columns`` wide, centred on ``centre`` where possible."""

	if columns >= total:
		return range(total)

	start = max(0, min(centre - columns // 2, total - columns))

	return range(start, start + columns)


def render_ribbon (
	player: scalekeys.player.Player,
	keymap: scalekeys.keymap.KeyIntervalMap,
	shifted: bool = False,
	width: typing.Optional[int] = None,
) -> typing.List[str]:

	"""Build the three ribbon lines: notes, keys and intervals.

	Parameters:
		player: Source of the scale and the current position.
		keymap: Key table to label.
		shifted: Label the shifted table instead of the base one.
		width: Terminal width in characters; the whole scale is shown when ``None``.
	"""

	scale = player.scale
	notes = scale.all_notes()
	cell = max(_MIN_CELL_WIDTH, max(len(str(n)) for n in notes) + 2)

	keys = [""] * len(notes)
	intervals = [""] * len(notes)

	for highlight in player.highlights(keymap, shifted):
		index = (player.scale_degree + highlight.interval) % scale.num_notes
		keys[index] = _KEY_LABELS.get(highlight.key, highlight.key)
		intervals[index] = f"{highlight.interval:+d}" if highlight.interval else "0"

	columns = len(notes) if width is None else max(1, width // cell)
	window = _visible_range(len(notes), player.scale_degree % scale.num_notes, columns)

	note_line = "".join(
		(("*" if scale.is_root(notes[i]) else "") + str(notes[i])).rjust(cell) for i in window
	)
	key_line = "".join(keys[i].rjust(cell) for i in window)
	interval_line = "".join(intervals[i].rjust(cell) for i in window)

	return [note_line.rstrip(), key_line.rstrip(), interval_line.rstrip()]


class DisplayLogHandler (logging.Handler):

	"""Clears the ribbon, writes the log record, then redraws the ribbon."""

	def __init__ (self, display: "RibbonDisplay") -> None:

		super().__init__()
		self._display = display

	def emit (self, record: logging.LogRecord) -> None:

		try:
			self._display.clear()
			self._display.stream.write(self.format(record) + "\n")
			self._display.stream.flush()
			self._display.draw()

		except Exception:
			self.handleError(record)


class RibbonDisplay:

	"""
	Keeps the ribbon drawn at the bottom of the terminal.

	While active, the root logger's handlers are swapped for a
	``DisplayLogHandler`` and restored by ``stop()``.
	"""

	def __init__ (self, keymap: scalekeys.keymap.KeyIntervalMap, stream: typing.Optional[typing.TextIO] = None) -> None:

		self.keymap = keymap
		self.stream: typing.TextIO = stream if stream is not None else sys.stderr

		self._lines: typing.List[str] = []
		self._drawn = 0
		self._active = False
		self._saved_handlers: typing.List[logging.Handler] = []

	def start (self) -> None:

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()
		self._saved_handlers = list(root_logger.handlers)

		handler = DisplayLogHandler(self)

		if self._saved_handlers and self._saved_handlers[0].formatter:
			handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(handler)

	def stop (self) -> None:

		if not self._active:
			return

		self.clear()
		self._active = False

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []

	def update (self, instrument: "Instrument") -> None:

		"""Re-render from the instrument's state and redraw. Used as its change callback."""

		width = shutil.get_terminal_size(fallback=(80, 24)).columns
		lines: typing.List[str] = []

		if instrument.player is not None:
			lines.extend(render_ribbon(instrument.player, self.keymap, instrument.shifted, width))

		if instrument.entry is not None:
			lines.append(f"scale> {instrument.entry}")
		elif instrument.last_error:
			lines.append(f"error: {instrument.last_error}")

		self._lines = lines
		self.draw()

	def draw (self) -> None:

		if not self._active:
			return

		self.clear()

		if not self._lines:
			return

		# Cursor is left at the end of the last line.
		self.stream.write("\n".join(f"\r\033[K{line}" for line in self._lines))
		self.stream.flush()

		self._drawn = len(self._lines)

	def clear (self) -> None:

		"""Erase the drawn ribbon and leave the cursor where it started."""

		if not self._active or self._drawn == 0:
			return

		if self._drawn > 1:
			self.stream.write(f"\033[{self._drawn - 1}A")

		self.stream.write("\r\033[J")
		self.stream.flush()

		self._drawn = 0
