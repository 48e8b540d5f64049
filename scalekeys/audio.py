"""Sample playback through the sound card.

Decoded samples are numpy arrays shared between voices.  A ``Voice`` is a
start-once cursor over one ``SampleData`` routed to one ``AudioOutput``;
the output's stream callback sums every active voice into each block.

```python
output = AudioOutput()
output.start()

library = SampleLibrary(FileSampleBackend("samples", output))
```

:mod:`sounddevice` is imported when the stream starts, so loading, mixing
and the tests work on machines without PortAudio.
"""

import asyncio
import dataclasses
import logging
import pathlib
import threading
import typing

import numpy as np
import soundfile

import scalekeys.samples


logger = logging.getLogger(__name__)


DEFAULT_SAMPLE_RATE = 44100
DEFAULT_CHANNELS = 2
DEFAULT_BLOCK_SIZE = 512


@dataclasses.dataclass(frozen=True)
class SampleData:

	"""
	Decoded audio: float32 frames shaped ``(frames, channels)`` at a sample rate.
	"""

	frames: np.ndarray
	sample_rate: int

	@property
	def channels (self) -> int:

		return int(self.frames.shape[1])

	def __len__ (self) -> int:

		return int(self.frames.shape[0])

	def resampled (self, sample_rate: int) -> "SampleData":

		"""Linearly interpolate to another sample rate."""

		if sample_rate == self.sample_rate or len(self) == 0:
			return self

		length = max(1, int(round(len(self) * sample_rate / self.sample_rate)))
		source_times = np.arange(len(self)) / self.sample_rate
		target_times = np.arange(length) / sample_rate

		columns = [np.interp(target_times, source_times, self.frames[:, c]) for c in range(self.channels)]

		return SampleData(np.stack(columns, axis=1).astype(np.float32), sample_rate)

	def fitted (self, channels: int) -> "SampleData":

		"""Match a channel count: mono is spread to every channel, extra channels are dropped."""

		if channels == self.channels:
			return self

		if self.channels == 1:
			return SampleData(np.repeat(self.frames, channels, axis=1), self.sample_rate)

		if self.channels > channels:
			return SampleData(self.frames[:, :channels].copy(), self.sample_rate)

		raise ValueError(f"Cannot fit {self.channels} channels into {channels}")


def read_sample (path: pathlib.Path, sample_rate: int, channels: int) -> SampleData:

	"""Decode an audio file and convert it to the output's format. Blocking."""

	frames, file_rate = soundfile.read(str(path), dtype="float32", always_2d=True)

	return SampleData(frames, int(file_rate)).resampled(sample_rate).fitted(channels)


class Voice:

	"""
	One playback of a sample. Can be started once; clone it to play again.
	"""

	def __init__ (self, data: SampleData, output: "AudioOutput") -> None:

		self.data = data
		self.output = output

		self._position = 0
		self._started = False
		self._stopped = False

	@property
	def started (self) -> bool:

		return self._started

	@property
	def finished (self) -> bool:

		return self._stopped or self._position >= len(self.data)

	def start (self) -> None:

		"""Begin playback on the output."""

		if self._started:
			raise RuntimeError("Voice has already been started")

		self._started = True
		self.output.add(self)

	def stop (self) -> None:

		"""Silence this voice. Safe to call at any time."""

		self._stopped = True
		self.output.remove(self)

	def clone (self) -> "Voice":

		"""A new unstarted voice on the same data and output."""

		return Voice(self.data, self.output)

	def render (self, frames: int) -> np.ndarray:

		"""Return the next ``frames`` frames, zero-padded past the end."""

		block = np.zeros((frames, self.data.channels), dtype=np.float32)

		if self.finished:
			return block

		chunk = self.data.frames[self._position:self._position + frames]
		block[:len(chunk)] = chunk
		self._position += len(chunk)

		return block


class AudioOutput:

	"""
	A sounddevice output stream that mixes the active voices.

	Voices are added from the event loop and rendered from the audio
	thread, so the voice list is guarded by a lock.
	"""

	def __init__ (
		self,
		sample_rate: int = DEFAULT_SAMPLE_RATE,
		channels: int = DEFAULT_CHANNELS,
		block_size: int = DEFAULT_BLOCK_SIZE,
	) -> None:

		self.sample_rate = sample_rate
		self.channels = channels
		self.block_size = block_size

		self._voices: typing.List[Voice] = []
		self._lock = threading.Lock()
		self._stream: typing.Any = None

	@property
	def active_voices (self) -> int:

		with self._lock:
			return len(self._voices)

	def add (self, voice: Voice) -> None:

		with self._lock:
			self._voices.append(voice)

	def remove (self, voice: Voice) -> None:

		with self._lock:
			if voice in self._voices:
				self._voices.remove(voice)

	def mix (self, frames: int) -> np.ndarray:

		"""Sum one block from every active voice and drop the finished ones."""

		out = np.zeros((frames, self.channels), dtype=np.float32)

		with self._lock:
			voices = list(self._voices)

		for voice in voices:
			out += voice.render(frames)

		with self._lock:
			self._voices = [v for v in self._voices if not v.finished]

		np.clip(out, -1.0, 1.0, out=out)

		return out

	def _callback (self, outdata: np.ndarray, frames: int, time_info: typing.Any, status: typing.Any) -> None:

		"""sounddevice stream callback."""

		if status:
			logger.debug(f"Audio stream status: {status}")

		try:
			outdata[:] = self.mix(frames)

		except Exception:
			# An exception escaping the callback stops the stream.
			outdata[:] = 0
			logger.exception("Audio mix failed")

	def start (self) -> None:

		"""Open and start the output stream. A second call is a no-op."""

		if self._stream is not None:
			return

		import sounddevice  # noqa: PLC0415

		self._stream = sounddevice.OutputStream(
			samplerate = self.sample_rate,
			channels = self.channels,
			dtype = "float32",
			blocksize = self.block_size,
			callback = self._callback,
		)
		self._stream.start()

		logger.info(f"Audio output started ({self.sample_rate} Hz, {self.channels} ch)")

	def close (self) -> None:

		"""Stop the stream and silence every voice."""

		if self._stream is not None:
			self._stream.stop()
			self._stream.close()
			self._stream = None

		with self._lock:
			self._voices.clear()


class FileSampleBackend:

	"""
	Loads sample files from a directory tree into voices on one output.
	"""

	def __init__ (self, root: typing.Union[str, pathlib.Path], output: AudioOutput) -> None:

		"""
		Parameters:
			root: Directory holding ``{volume}/{note}.{extension}`` files.
			output: The output every loaded voice plays on.
		"""

		self.root = pathlib.Path(root)
		self.output = output

	async def load (self, address: scalekeys.samples.SampleAddress) -> Voice:

		"""Decode one sample off the event loop thread."""

		path = self.root / address.path

		data = await asyncio.to_thread(read_sample, path, self.output.sample_rate, self.output.channels)

		return Voice(data, self.output)
