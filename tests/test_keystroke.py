"""Tests for terminal keystroke input.

Covers:
- Platform detection flags
- Unsupported terminals: start() warns and stays inactive
- feed() turning one character into a down/up pair on the event loop
"""

import asyncio
import logging
import unittest.mock

import pytest

import scalekeys.keystroke as keystroke_mod
from scalekeys.keystroke import KEY_DOWN, KEY_UP, KeyEvent, KeystrokeListener


class TestKeystrokeListenerPlatform:

	def test_supported_flag_is_bool (self):
		assert isinstance(keystroke_mod.KEYSTROKES_SUPPORTED, bool)

	def test_reason_matches_flag (self):
		if keystroke_mod.KEYSTROKES_SUPPORTED:
			assert keystroke_mod.KEYSTROKES_UNAVAILABLE_REASON is None
		else:
			assert keystroke_mod.KEYSTROKES_UNAVAILABLE_REASON

	@pytest.mark.asyncio
	async def test_start_on_unsupported_terminal_warns (self, caplog: pytest.LogCaptureFixture):
		listener = KeystrokeListener(asyncio.Queue(), asyncio.get_running_loop())

		with unittest.mock.patch.object(keystroke_mod, "KEYSTROKES_SUPPORTED", False):
			with unittest.mock.patch.object(keystroke_mod, "KEYSTROKES_UNAVAILABLE_REASON", "Test: no terminal"):
				with caplog.at_level(logging.WARNING, logger="scalekeys.keystroke"):
					listener.start()

		assert not listener.active
		assert "Test: no terminal" in caplog.text

		# stop() on a listener that never started is harmless.
		listener.stop()


class TestFeed:

	@pytest.mark.asyncio
	async def test_character_becomes_down_then_up (self):
		queue: asyncio.Queue = asyncio.Queue()
		listener = KeystrokeListener(queue, asyncio.get_running_loop())

		listener.feed("j")
		listener.feed("J")

		# call_soon_threadsafe callbacks run on the next loop iteration.
		await asyncio.sleep(0)

		events = [queue.get_nowait() for _ in range(queue.qsize())]

		assert events == [
			KeyEvent("j", KEY_DOWN),
			KeyEvent("j", KEY_UP),
			KeyEvent("J", KEY_DOWN),
			KeyEvent("J", KEY_UP),
		]

	def test_key_event_defaults (self):
		event = KeyEvent("a")

		assert event.kind == KEY_DOWN
		assert event.repeat is False


class TestEscapeSequences:

	def test_arrow_key_is_one_key (self):
		assert keystroke_mod.split_keys("\x1b[Aj") == ["\x1b[A", "j"]

	def test_function_and_modified_keys (self):
		assert keystroke_mod.split_keys("\x1b[15~\x1b[1;2Ck") == ["\x1b[15~", "\x1b[1;2C", "k"]
		assert keystroke_mod.split_keys("\x1bOP") == ["\x1bOP"]

	def test_alt_combination (self):
		assert keystroke_mod.split_keys("\x1bj;") == ["\x1bj", ";"]

	def test_lone_escape (self):
		assert keystroke_mod.split_keys("\x1b") == ["\x1b"]
		assert keystroke_mod.split_keys("j\x1b") == ["j", "\x1b"]
		assert keystroke_mod.split_keys("\x1b\x1b[B") == ["\x1b", "\x1b[B"]

	def test_plain_characters (self):
		assert keystroke_mod.split_keys("as d") == ["a", "s", " ", "d"]

	@pytest.mark.asyncio
	async def test_feed_queues_sequence_as_one_key (self):
		queue: asyncio.Queue = asyncio.Queue()
		listener = KeystrokeListener(queue, asyncio.get_running_loop())

		listener.feed("\x1b[D")
		await asyncio.sleep(0)

		assert [queue.get_nowait() for _ in range(queue.qsize())] == [
			KeyEvent("\x1b[D", KEY_DOWN),
			KeyEvent("\x1b[D", KEY_UP),
		]


class TestAutoRepeat:

	@pytest.mark.asyncio
	async def test_fast_same_key_is_a_repeat (self):
		queue: asyncio.Queue = asyncio.Queue()
		listener = KeystrokeListener(queue, asyncio.get_running_loop(), repeat_interval=0.1)

		listener.feed("j", now=10.0)
		listener.feed("j", now=10.03)
		listener.feed("j", now=10.06)
		listener.feed("j", now=11.0)
		listener.feed("k", now=11.01)
		await asyncio.sleep(0)

		downs = [e for e in (queue.get_nowait() for _ in range(queue.qsize())) if e.kind == KEY_DOWN]

		assert [(e.key, e.repeat) for e in downs] == [
			("j", False),
			("j", True),
			("j", True),
			("j", False),
			("k", False),
		]
