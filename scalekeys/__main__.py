"""Command-line entry point: ``python -m scalekeys`` or ``scalekeys``.

Keys (home row, shift for wider jumps)::

	a s d f  [space]  j k l ;      move -4..+4 degrees and play
	!                               type a new scale, Enter to apply
	Esc                             quit
"""

import argparse
import asyncio
import logging
import signal
import typing

import yaml

import scalekeys.audio
import scalekeys.config
import scalekeys.display
import scalekeys.instrument
import scalekeys.keymap
import scalekeys.keystroke
import scalekeys.midi
import scalekeys.samples


logger = logging.getLogger(__name__)


def make_parser () -> argparse.ArgumentParser:

	"""Command-line options. Each one overrides the config file when given."""

	parser = argparse.ArgumentParser(prog="scalekeys", description="Play a scale from the keyboard.")
	parser.add_argument("--config", default=None, help="Path to a YAML config file")
	parser.add_argument("--scale", default=None, help='Scale notes, e.g. "C D E F G A B"')
	parser.add_argument("--start-octave", dest="start_octave", type=int, default=None)
	parser.add_argument("--octaves", dest="num_octaves", type=int, default=None)
	parser.add_argument("--backend", choices=scalekeys.config.BACKENDS, default=None)
	parser.add_argument("--samples", dest="sample_dir", default=None, help="Sample directory")
	parser.add_argument("--volume", default=None, help="Dynamics label of the samples (e.g. mf)")
	parser.add_argument("--midi-device", dest="midi_device", default=None)
	parser.add_argument("--no-sustain", dest="sustain", action="store_false", default=None,
		help="Stop notes when their key is released")
	parser.add_argument("--log-level", dest="log_level", default=None)
	return parser


def configure_logging (log_level: str) -> None:

	logging.basicConfig(
		format = "%(asctime)s %(levelname)s %(name)s -- %(message)s",
		level = log_level.upper(),
	)


def build_library (
	config: scalekeys.config.InstrumentConfig,
) -> typing.Tuple[scalekeys.samples.SampleLibrary, typing.Callable[[], None]]:

	"""Open the configured output and return a library for it plus its close function."""

	if config.backend == "midi":
		midi_backend = scalekeys.midi.MidiBackend(scalekeys.midi.open_output(config.midi_device), config.midi_channel)
		return scalekeys.samples.SampleLibrary(midi_backend, config.extension), midi_backend.close

	output = scalekeys.audio.AudioOutput()
	output.start()

	file_backend = scalekeys.audio.FileSampleBackend(config.sample_dir, output)

	return scalekeys.samples.SampleLibrary(file_backend, config.extension), output.close


async def run (config: scalekeys.config.InstrumentConfig) -> int:

	"""Load the scale, then play from the terminal until Escape or Ctrl+C."""

	library, close = build_library(config)

	try:
		keymap = scalekeys.keymap.KeyIntervalMap()
		instrument = scalekeys.instrument.Instrument(
			library,
			keymap = keymap,
			volume = config.volume,
			sustain = config.sustain,
			start_octave = config.start_octave,
			num_octaves = config.num_octaves,
		)

		if not await instrument.redefine(config.scale):
			return 1

		loop = asyncio.get_running_loop()
		queue: "asyncio.Queue[scalekeys.keystroke.KeyEvent]" = asyncio.Queue()

		listener = scalekeys.keystroke.KeystrokeListener(queue, loop)
		listener.start()

		if not listener.active:
			return 1

		if not config.sustain:
			logger.warning("Terminal input cannot report key releases; notes will be cut short")

		display = scalekeys.display.RibbonDisplay(keymap)
		display.start()
		instrument.on_change(display.update)
		display.update(instrument)

		stop_event = asyncio.Event()

		for sig in (signal.SIGINT, signal.SIGTERM):
			loop.add_signal_handler(sig, stop_event.set)

		session = asyncio.create_task(instrument.run(queue))
		stopper = asyncio.create_task(stop_event.wait())

		try:
			await asyncio.wait([session, stopper], return_when=asyncio.FIRST_COMPLETED)

		finally:
			for task in (session, stopper):
				task.cancel()
			listener.stop()
			display.stop()

		return 0

	finally:
		close()


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	args = make_parser().parse_args(argv)

	try:
		config = scalekeys.config.load_config(args.config).merged(
			scale = args.scale,
			start_octave = args.start_octave,
			num_octaves = args.num_octaves,
			backend = args.backend,
			sample_dir = args.sample_dir,
			volume = args.volume,
			midi_device = args.midi_device,
			sustain = args.sustain,
			log_level = args.log_level,
		)
		configure_logging(config.log_level)

	except (ValueError, yaml.YAMLError) as exc:
		configure_logging("INFO")
		logger.error(f"Invalid configuration: {exc}")
		return 1

	try:
		return asyncio.run(run(config))

	except OSError as exc:
		logger.error(f"Could not open the output: {exc}")
		return 1

	except KeyboardInterrupt:
		return 0


if __name__ == "__main__":
	raise SystemExit(main())
