import asyncio
import logging

import scalekeys
import scalekeys.keystroke
import scalekeys.midi
import scalekeys.samples

logging.basicConfig(level=logging.INFO)

# D dorian, three octaves starting at D2, played on the first MIDI output.
SCALE = "D E F G A B C"
MIDI_CHANNEL = 0

port = scalekeys.midi.open_output()
backend = scalekeys.midi.MidiBackend(port, MIDI_CHANNEL)

instrument = scalekeys.Instrument(
	scalekeys.SampleLibrary(backend),
	volume = "f",
	start_octave = 2,
	num_octaves = 3,
)


async def main () -> None:

	await instrument.redefine(SCALE)

	queue: asyncio.Queue = asyncio.Queue()
	listener = scalekeys.keystroke.KeystrokeListener(queue, asyncio.get_running_loop())
	listener.start()

	# Press Escape to stop.
	try:
		await instrument.run(queue)
	finally:
		listener.stop()
		backend.close()


if __name__ == "__main__":
	asyncio.run(main())
