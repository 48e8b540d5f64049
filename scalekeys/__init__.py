"""
scalekeys - play a musical scale from the computer keyboard.

Define a scale as a list of note letters (``"C D E F G A B"``, ``"D E F# A B"``).
scalekeys lays it out over several octaves and puts the home row of the
keyboard around a movable position: ``j k l ;`` step up one to four degrees,
``f d s a`` step down, space replays the current note, and shift reaches four
degrees further.  Each keypress moves the position and plays a pre-recorded
sample of the note it lands on.

Core pieces:

- **Note names.** ``parse_note("C#3")``, enharmonic respelling to the
  flat-or-natural names the sample files use (``C#3`` -> ``Db3``,
  ``B#3`` -> ``C4``).
- **Cyclic scales.** ``Scale.note(degree)`` is defined for every integer,
  wrapping through the pitch classes and the octave range.
- **Concurrent sample loading.** Every note loads at once; notes whose
  sample is missing are skipped and the rest still play.
- **Retrigger-safe playback.** Striking a note again while it still rings
  starts a fresh voice on the same sample.
- **Outputs.** Sample files through the sound card (soundfile +
  sounddevice), or notes on a MIDI device (mido).

Minimal example:

    ```python
    import asyncio
    import scalekeys
    import scalekeys.audio

    async def main ():
        output = scalekeys.audio.AudioOutput()
        output.start()
        library = scalekeys.SampleLibrary(scalekeys.audio.FileSampleBackend("samples", output))

        player = scalekeys.Player(scalekeys.parse_scale("C D E F G A B"))
        await player.load(library)
        player.jump(+2)     # plays E5

    asyncio.run(main())
    ```

Package-level exports: ``Instrument``, ``KeyIntervalMap``, ``NoteName``,
``Player``, ``SampleLibrary``, ``Scale``, ``parse_note``, ``parse_scale``.
"""

import scalekeys.instrument
import scalekeys.keymap
import scalekeys.notes
import scalekeys.player
import scalekeys.samples
import scalekeys.scale


Instrument = scalekeys.instrument.Instrument
KeyIntervalMap = scalekeys.keymap.KeyIntervalMap
NoteName = scalekeys.notes.NoteName
Player = scalekeys.player.Player
SampleLibrary = scalekeys.samples.SampleLibrary
Scale = scalekeys.scale.Scale
parse_note = scalekeys.notes.parse_note
parse_scale = scalekeys.scale.parse_scale
