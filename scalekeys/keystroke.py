"""Terminal keyboard input for the instrument.

Reads single keystrokes from stdin on a daemon thread (cbreak mode, no
Enter needed) and hands them to the event loop as ``KeyEvent``s on an
:class:`asyncio.Queue`.

A terminal only reports characters, not key presses and releases, so each
character becomes a key-down followed straight away by a key-up.  Shifted
keys arrive as their shifted character (``J``, ``:``), which is how
:mod:`scalekeys.keymap` names them.

Arrow, function and Alt keys arrive as escape sequences; each sequence is
one key, so only a lone ESC is the Escape key.  Held keys auto-repeat as a
stream of the same character, and a character that follows itself faster
than ``REPEAT_INTERVAL`` is marked as a repeat.

**Platform support:** POSIX with a real TTY on stdin.  Elsewhere the
listener logs a warning and stays inactive; check :data:`KEYSTROKES_SUPPORTED`.
"""

import asyncio
import codecs
import dataclasses
import logging
import os
import select
import sys
import threading
import time
import typing


logger = logging.getLogger(__name__)


KEYSTROKES_SUPPORTED: bool = False
KEYSTROKES_UNAVAILABLE_REASON: typing.Optional[str] = None

try:
	import termios
	import tty

	if not sys.stdin.isatty():
		raise OSError("stdin is not a TTY")

	KEYSTROKES_SUPPORTED = True

except ImportError:
	KEYSTROKES_UNAVAILABLE_REASON = "The 'tty' and 'termios' modules need a POSIX operating system."
except OSError as _e:
	KEYSTROKES_UNAVAILABLE_REASON = f"Keyboard input needs an interactive terminal. Reason: {_e}"


KEY_DOWN = "down"
KEY_UP = "up"

ESCAPE = "\x1b"

ESCAPE_TIMEOUT = 0.02
"""Seconds to wait for the rest of an escape sequence after ESC."""

REPEAT_INTERVAL = 0.1
"""The same character again within this many seconds is treated as auto-repeat."""


@dataclasses.dataclass(frozen=True)
class KeyEvent:

	"""
	A key notification: ``kind`` is ``"down"`` or ``"up"``.

	``repeat`` marks operating-system auto-repeat of a held key.
	"""

	key: str
	kind: str = KEY_DOWN
	repeat: bool = False


def split_keys (text: str) -> typing.List[str]:

	"""Split terminal input into keys, keeping escape sequences whole.

	Arrow and function keys arrive as CSI (``ESC [ ... final``) or SS3
	(``ESC O x``) sequences and Alt combinations as ``ESC x``; each becomes
	one multi-character key.  Only an ESC with nothing after it is a bare
	Escape key.

	Example::

		split_keys("\\x1b[Aj")   # ["\\x1b[A", "j"]
	"""

	keys: typing.List[str] = []
	i = 0

	while i < len(text):

		if text[i] != ESCAPE or i + 1 == len(text) or text[i + 1] == ESCAPE:
			keys.append(text[i])
			i += 1
			continue

		end = i + 2

		if text[i + 1] == "[":
			# Parameter and intermediate bytes, then one final byte.
			while end < len(text) and not "\x40" <= text[end] <= "\x7e":
				end += 1
			end = min(end + 1, len(text))

		elif text[i + 1] == "O" and end < len(text):
			end += 1

		keys.append(text[i:end])
		i = end

	return keys


class KeystrokeListener:

	"""Background thread that feeds terminal keystrokes to an asyncio queue.

	Example::

		queue: asyncio.Queue[KeyEvent] = asyncio.Queue()
		listener = KeystrokeListener(queue, asyncio.get_running_loop())
		listener.start()
		...
		listener.stop()
	"""

	def __init__ (
		self,
		queue: "asyncio.Queue[KeyEvent]",
		loop: asyncio.AbstractEventLoop,
		repeat_interval: float = REPEAT_INTERVAL,
	) -> None:

		self._queue = queue
		self._loop = loop
		self._repeat_interval = repeat_interval
		self._thread: typing.Optional[threading.Thread] = None
		self._running = False

		self._last_key: typing.Optional[str] = None
		self._last_time = 0.0

		#: ``True`` while the reader thread is running.
		self.active: bool = False

	def start (self) -> None:

		"""Start reading. Logs a warning and does nothing on unsupported terminals."""

		if self._running:
			return

		if not KEYSTROKES_SUPPORTED:
			logger.warning(f"Keyboard input is not available. {KEYSTROKES_UNAVAILABLE_REASON}")
			return

		self._running = True
		self.active = True
		self._thread = threading.Thread(
			target = self._listen,
			name = "scalekeys-keystroke-listener",
			daemon = True,
		)
		self._thread.start()

	def stop (self) -> None:

		"""Ask the thread to exit; it restores the terminal within ~0.1 s."""

		self._running = False

	def feed (self, text: str, now: typing.Optional[float] = None) -> None:

		"""Queue a down/up pair for every key in ``text``. Thread-safe.

		A key that repeats the previous one within the repeat interval is
		marked as auto-repeat.
		"""

		if now is None:
			now = time.monotonic()

		for key in split_keys(text):
			repeat = key == self._last_key and now - self._last_time < self._repeat_interval

			self._last_key = key
			self._last_time = now

			for event in (KeyEvent(key, KEY_DOWN, repeat), KeyEvent(key, KEY_UP)):
				self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

	def _read_pending (self, fd: int, decoder: codecs.IncrementalDecoder) -> str:

		"""Read whatever arrives within the escape timeout."""

		text = ""

		while select.select([fd], [], [], ESCAPE_TIMEOUT)[0]:
			data = os.read(fd, 64)
			if not data:
				break
			text += decoder.decode(data)

		return text

	def _listen (self) -> None:

		"""Thread target: poll stdin until stopped, then restore the terminal."""

		fd = sys.stdin.fileno()
		old_settings = termios.tcgetattr(fd)
		decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

		try:
			tty.setcbreak(fd)

			while self._running:
				ready, _, _ = select.select([fd], [], [], 0.1)
				if not ready:
					continue

				data = os.read(fd, 64)
				if not data:
					logger.warning("Keyboard input closed")
					break

				text = decoder.decode(data)

				# An escape sequence can be split across reads.
				if text.endswith(ESCAPE):
					text += self._read_pending(fd, decoder)

				if text:
					self.feed(text)

		except Exception:
			logger.exception("Keystroke listener stopped unexpectedly")

		finally:
			termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
			self.active = False
