import mido
import pytest

import conftest
import scalekeys.midi
import scalekeys.notes
import scalekeys.samples


def _address (text: str, volume: str = "mf") -> scalekeys.samples.SampleAddress:

	return scalekeys.samples.SampleAddress(volume, scalekeys.notes.parse_note(text))


def test_velocity_for_dynamics () -> None:

	assert scalekeys.midi.velocity_for("mf") == 80
	assert scalekeys.midi.velocity_for("FFF") == 127
	assert scalekeys.midi.velocity_for("loud") == scalekeys.midi.DEFAULT_VELOCITY


def test_open_output_uses_only_device (patch_midi: None) -> None:

	port = scalekeys.midi.open_output()

	assert port is conftest._current_fake_output


def test_open_output_unknown_device (patch_midi: None) -> None:

	with pytest.raises(OSError, match="Nope"):
		scalekeys.midi.open_output("Nope")


def test_open_output_without_devices (monkeypatch: pytest.MonkeyPatch) -> None:

	monkeypatch.setattr(mido, "get_output_names", lambda: [])

	with pytest.raises(OSError):
		scalekeys.midi.open_output()


@pytest.mark.asyncio
async def test_voice_sends_note_on_and_off () -> None:

	port = conftest.FakeMidiOut()
	backend = scalekeys.midi.MidiBackend(port, channel=2)

	voice = await backend.load(_address("C#4", "ff"))
	voice.start()
	voice.stop()
	voice.stop()

	assert [m.type for m in port.sent] == ["note_on", "note_off"]
	assert port.sent[0].note == 61
	assert port.sent[0].velocity == 112
	assert port.sent[0].channel == 2


@pytest.mark.asyncio
async def test_voice_is_start_once_and_clones () -> None:

	port = conftest.FakeMidiOut()
	voice = await scalekeys.midi.MidiBackend(port).load(_address("A4"))

	voice.start()

	with pytest.raises(RuntimeError):
		voice.start()

	copy = voice.clone()
	assert not copy.started
	assert copy.note == voice.note == 69


@pytest.mark.asyncio
async def test_notes_outside_midi_range_fail_to_load () -> None:

	library = scalekeys.samples.SampleLibrary(scalekeys.midi.MidiBackend(conftest.FakeMidiOut()))

	loaded = await library.load_all([scalekeys.notes.parse_note("C-2"), scalekeys.notes.parse_note("G9"), scalekeys.notes.parse_note("A9")])

	assert [str(n) for n in loaded] == ["G9"]


def test_invalid_channel () -> None:

	with pytest.raises(ValueError):
		scalekeys.midi.MidiBackend(conftest.FakeMidiOut(), channel=16)


def test_close_silences_channel_then_closes () -> None:

	port = conftest.FakeMidiOut()

	scalekeys.midi.MidiBackend(port, channel=5).close()

	assert port.sent[0].type == "control_change"
	assert port.sent[0].control == 123
	assert port.closed


@pytest.mark.asyncio
async def test_double_accidentals_fail_like_sample_files () -> None:

	library = scalekeys.samples.SampleLibrary(scalekeys.midi.MidiBackend(conftest.FakeMidiOut()))

	loaded = await library.load_all([scalekeys.notes.parse_note("C##3"), scalekeys.notes.parse_note("B#3")])

	assert [str(n) for n in loaded] == ["B#3"]
	assert loaded[scalekeys.notes.parse_note("B#3")].note == 60
