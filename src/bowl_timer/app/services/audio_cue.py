"""Singing-bowl cue playback for bowl-timer.

Plays a one-shot cue when a session begins and a second, independent
instance that fades out linearly when it ends. Audio output uses
miniaudio; the fade is stepped by the shared Clock.

A missing or undecodable sound never interrupts the timer: the failure
is logged, kept in `last_error` and reported through an optional hook.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Generator, Optional, Protocol

import miniaudio
import numpy as np

from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.clock import CancelToken, Clock

logger = get_logger(__name__)


class AssetUnavailable(Exception):
    """Audio or video asset could not be loaded or played."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class AudioHandle(Protocol):
    """One playable instance of an audio asset."""

    volume: float

    def play(self) -> None:
        ...

    def stop(self) -> None:
        ...


class AudioAsset(Protocol):
    """Loader producing independent handles for one sound."""

    def load(self) -> AudioHandle:
        ...


@dataclass
class FadeState:
    """Progress of a running fade-out.

    Attributes:
        volume: Current volume (1.0 down to 0.0)
        steps_remaining: Ticks left before playback stops
        step_duration: Seconds between ticks
        total_steps: Number of ticks in the whole fade
    """

    volume: float
    steps_remaining: int
    step_duration: float
    total_steps: int


class MiniaudioHandle:
    """A single playback of decoded samples on its own output device.

    Volume is read for every chunk pulled by the device, so changes
    take effect while the sound is playing.
    """

    def __init__(self, source: miniaudio.DecodedSoundFile, path: Optional[Path] = None):
        self._source = source
        self._path = path
        self._volume = 1.0
        self._device: Optional[miniaudio.PlaybackDevice] = None
        self._generator: Optional[Generator] = None
        self._playing = False

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = max(0.0, min(1.0, value))

    @property
    def is_playing(self) -> bool:
        return self._playing

    def _stream_generator(self) -> Generator:
        """Yield int16 frames as requested by miniaudio via send().

        Yields:
            Numpy arrays with shape (num_frames, nchannels)
        """
        samples = self._source.samples
        nchannels = self._source.nchannels
        sample_pos = 0

        num_frames = yield np.zeros((0, nchannels), dtype=np.int16)

        while self._playing and sample_pos < len(samples):
            if num_frames is None or num_frames <= 0:
                logger.warning(f"Invalid frame request: {num_frames}")
                break

            samples_needed = num_frames * nchannels
            end_pos = min(sample_pos + samples_needed, len(samples))
            chunk = np.array(samples[sample_pos:end_pos], dtype=np.int16)

            if len(chunk) < samples_needed:
                chunk = np.concatenate([chunk, np.zeros(samples_needed - len(chunk), dtype=np.int16)])

            if self._volume != 1.0:
                chunk = (chunk * self._volume).astype(np.int16)

            sample_pos = end_pos
            num_frames = yield chunk.reshape((num_frames, nchannels))

        self._playing = False
        logger.debug(f"Cue playback reached end: {self._path}")

    def play(self) -> None:
        """Start playback from the beginning.

        Raises:
            AssetUnavailable: If no output device can be opened
        """
        self.stop()
        try:
            self._playing = True
            self._generator = self._stream_generator()
            next(self._generator)

            self._device = miniaudio.PlaybackDevice(
                output_format=miniaudio.SampleFormat.SIGNED16,
                nchannels=self._source.nchannels,
                sample_rate=self._source.sample_rate,
            )
            self._device.start(self._generator)
        except miniaudio.MiniaudioError as e:
            self.stop()
            raise AssetUnavailable(f"Audio output unavailable: {e}", self._path) from e

    def stop(self) -> None:
        """Stop playback and release the device."""
        self._playing = False

        if self._generator is not None:
            self._generator.close()
            self._generator = None

        if self._device is not None:
            self._device.stop()
            self._device.close()
            self._device = None


class MiniaudioAsset:
    """Sound file decoded once with miniaudio and played through handles."""

    def __init__(self, file_path: Path, sample_rate: int = 44100, nchannels: int = 2):
        """Initialize the asset.

        Args:
            file_path: Path to the sound file (mp3, wav, flac, ogg)
            sample_rate: Output sample rate
            nchannels: Output channel count
        """
        self.file_path = Path(file_path)
        self.sample_rate = sample_rate
        self.nchannels = nchannels
        self._source: Optional[miniaudio.DecodedSoundFile] = None

    def _decode(self) -> miniaudio.DecodedSoundFile:
        if self._source is not None:
            return self._source

        if not self.file_path.exists():
            raise AssetUnavailable(f"Audio file not found: {self.file_path}", self.file_path)

        try:
            self._source = miniaudio.decode_file(
                str(self.file_path),
                output_format=miniaudio.SampleFormat.SIGNED16,
                nchannels=self.nchannels,
                sample_rate=self.sample_rate,
            )
        except miniaudio.MiniaudioError as e:
            raise AssetUnavailable(f"Failed to decode {self.file_path}: {e}", self.file_path) from e

        duration = len(self._source.samples) / self._source.nchannels / self._source.sample_rate
        logger.debug(f"Cue decoded: {self.file_path} ({duration:.2f}s)")
        return self._source

    def load(self) -> MiniaudioHandle:
        """Create an independent playback handle.

        Raises:
            AssetUnavailable: If the file is missing or cannot be decoded
        """
        return MiniaudioHandle(self._decode(), self.file_path)


class AudioCueController:
    """Plays the session cue and fades it out at the end.

    Attributes:
        last_error: Most recent asset failure, if any
    """

    def __init__(
        self,
        asset: AudioAsset,
        clock: Clock,
        on_asset_unavailable: Optional[Callable[[AssetUnavailable], None]] = None,
    ):
        """Initialize the controller.

        Args:
            asset: Sound to play
            clock: Tick source for the fade
            on_asset_unavailable: Status hook for asset failures
        """
        self._asset = asset
        self._clock = clock
        self.on_asset_unavailable = on_asset_unavailable
        self.last_error: Optional[AssetUnavailable] = None

        self._cue: Optional[AudioHandle] = None
        self._fading: Optional[AudioHandle] = None
        self._fade: Optional[FadeState] = None
        self._fade_token: Optional[CancelToken] = None

    @property
    def fade_state(self) -> Optional[FadeState]:
        """Get the running fade, if any."""
        return self._fade

    @property
    def is_fading(self) -> bool:
        return self._fade is not None

    def _report(self, error: AssetUnavailable) -> None:
        logger.warning(f"Cue skipped: {error}")
        self.last_error = error
        if self.on_asset_unavailable:
            self.on_asset_unavailable(error)

    def _start_handle(self) -> Optional[AudioHandle]:
        try:
            handle = self._asset.load()
            handle.volume = 1.0
            handle.play()
        except AssetUnavailable as e:
            self._report(e)
            return None
        return handle

    def play_cue(self) -> bool:
        """Play the cue once at full volume.

        Any fade still in progress is stopped first.

        Returns:
            True if playback started, False if the asset was unavailable
        """
        self._cancel_fade()
        if self._cue is not None:
            self._cue.stop()
        self._cue = self._start_handle()
        if self._cue is not None:
            logger.info("Cue playing")
        return self._cue is not None

    def fade_out_and_stop(self, total_duration: float = 10.0, steps: int = 40) -> bool:
        """Play a fresh instance of the cue and fade it to silence.

        Any fade already in progress is stopped first.

        Args:
            total_duration: Seconds from full volume to silence
            steps: Number of equal volume decrements

        Returns:
            True if the fade started, False if the asset was unavailable

        Raises:
            ValueError: If total_duration <= 0 or steps < 1
        """
        if not total_duration > 0:
            raise ValueError(f"Fade duration must be positive, got {total_duration}")
        if isinstance(steps, bool) or not isinstance(steps, int) or steps < 1:
            raise ValueError(f"Fade steps must be a positive integer, got {steps}")

        self._cancel_fade()

        handle = self._start_handle()
        if handle is None:
            return False

        self._fading = handle
        self._fade = FadeState(
            volume=1.0,
            steps_remaining=steps,
            step_duration=total_duration / steps,
            total_steps=steps,
        )
        self._fade_token = self._clock.schedule(self._fade.step_duration, True, self._fade_tick)
        logger.info(f"Fade-out started: {total_duration}s in {steps} steps")
        return True

    def _fade_tick(self) -> None:
        fade = self._fade
        if fade is None or self._fading is None:
            return

        fade.steps_remaining -= 1
        # Derived from the step count so the last tick lands on exactly 0.0
        fade.volume = fade.steps_remaining / fade.total_steps
        self._fading.volume = fade.volume

        if fade.steps_remaining <= 0:
            logger.info("Fade-out complete")
            self._cancel_fade()

    def _cancel_fade(self) -> None:
        if self._fade_token is not None:
            self._clock.cancel(self._fade_token)
            self._fade_token = None
        if self._fading is not None:
            self._fading.stop()
            self._fading = None
        self._fade = None

    def stop_immediately(self) -> None:
        """Halt the cue and any fade without fading."""
        self._cancel_fade()
        if self._cue is not None:
            self._cue.stop()
            self._cue = None
        logger.debug("Cue stopped")
