import unittest

import pytest

import scalekeys.notes
from scalekeys.notes import Accidental, Letter, NoteName, PitchClass, ParseError, UnsupportedAccidentalError


def _note (text: str) -> NoteName:

	return scalekeys.notes.parse_note(text)


class ParseNoteTests (unittest.TestCase):

	"""
	Parsing note text into typed note names.
	"""

	def test_natural (self) -> None:

		self.assertEqual(_note("C3"), NoteName(PitchClass(Letter.C), 3))

	def test_sharp_and_flat (self) -> None:

		self.assertEqual(_note("F#4"), NoteName(PitchClass(Letter.F, Accidental.SHARP, 1), 4))
		self.assertEqual(_note("Eb2"), NoteName(PitchClass(Letter.E, Accidental.FLAT, 1), 2))

	def test_lowercase_letter_is_normalized (self) -> None:

		self.assertEqual(str(_note("a#3")), "A#3")
		self.assertEqual(str(_note("bb2")), "Bb2")

	def test_multiple_markers_of_one_kind (self) -> None:

		note = _note("C##5")

		self.assertEqual(note.pitch_class.accidental, Accidental.SHARP)
		self.assertEqual(note.pitch_class.count, 2)

	def test_negative_octave (self) -> None:

		self.assertEqual(_note("C-1").octave, -1)

	def test_default_octave (self) -> None:

		self.assertEqual(scalekeys.notes.parse_note("G", default_octave=4), _note("G4"))

	def test_missing_octave_without_default (self) -> None:

		with self.assertRaises(ParseError):
			scalekeys.notes.parse_note("G")

	def test_invalid_letter (self) -> None:

		with self.assertRaises(ParseError):
			_note("H3")

	def test_mixed_accidentals (self) -> None:

		with self.assertRaises(ParseError):
			_note("C#b3")

	def test_garbage (self) -> None:

		for text in ("", "   ", "#3", "C3x", "C 3", "3C"):
			with self.assertRaises(ParseError, msg=text):
				_note(text)

	def test_parse_error_is_value_error (self) -> None:

		self.assertTrue(issubclass(ParseError, ValueError))

	def test_pitch_class_ignores_octave (self) -> None:

		self.assertEqual(scalekeys.notes.parse_pitch_class("Db7"), PitchClass(Letter.D, Accidental.FLAT, 1))
		self.assertEqual(scalekeys.notes.parse_pitch_class("e"), PitchClass(Letter.E))


@pytest.mark.parametrize("text", ["C3", "C#3", "Db3", "B7", "Bb-1", "G##4", "Fbb0", "A10"])
def test_format_round_trip (text: str) -> None:

	"""Formatting a parsed canonical note gives back the same text and value."""

	note = _note(text)

	assert scalekeys.notes.format_note(note) == text
	assert _note(scalekeys.notes.format_note(note)) == note


@pytest.mark.parametrize("sharp, expected", [
	("C#3", "Db3"),
	("D#3", "Eb3"),
	("E#3", "F3"),
	("F#3", "Gb3"),
	("G#3", "Ab3"),
	("A#3", "Bb3"),
	("B#3", "C4"),
])
def test_normalize_sharps (sharp: str, expected: str) -> None:

	assert scalekeys.notes.normalize_to_flat_or_natural(_note(sharp)) == _note(expected)


@pytest.mark.parametrize("text", ["C3", "Db3", "Bb5", "E0"])
def test_normalize_keeps_naturals_and_flats (text: str) -> None:

	assert scalekeys.notes.normalize_to_flat_or_natural(_note(text)) == _note(text)


@pytest.mark.parametrize("text", ["C#3", "B#3", "E#2", "G4", "Ab1"])
def test_normalize_is_idempotent (text: str) -> None:

	once = scalekeys.notes.normalize_to_flat_or_natural(_note(text))

	assert scalekeys.notes.normalize_to_flat_or_natural(once) == once


@pytest.mark.parametrize("text", ["C##3", "Dbb3"])
def test_normalize_rejects_double_accidentals (text: str) -> None:

	with pytest.raises(UnsupportedAccidentalError):
		scalekeys.notes.normalize_to_flat_or_natural(_note(text))


def test_enharmonic_spellings_are_distinct_until_normalized () -> None:

	assert _note("C#3") != _note("Db3")
	assert scalekeys.notes.normalize_to_flat_or_natural(_note("C#3")) == _note("Db3")


def test_midi_numbers () -> None:

	assert _note("C4").midi == 60
	assert _note("A4").midi == 69
	assert _note("C#4").midi == _note("Db4").midi == 61
	assert _note("B#3").midi == 60
	assert _note("Cb4").midi == 59


def test_letter_next_wraps () -> None:

	assert Letter.E.next() == Letter.F
	assert Letter.B.next() == Letter.C


def test_pitch_class_rejects_inconsistent_accidental () -> None:

	with pytest.raises(ValueError):
		PitchClass(Letter.C, Accidental.SHARP, 0)

	with pytest.raises(ValueError):
		PitchClass(Letter.C, Accidental.NATURAL, 1)
