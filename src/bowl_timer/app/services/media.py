"""Background video surface for bowl-timer.

The clip is muted and shown at a playback rate that stretches it over
the whole session. FFmpeg's ffprobe reports the clip length and ffplay
renders it, slowed down with a setpts filter.
"""

import subprocess
from enum import Enum, auto
from pathlib import Path
from typing import Optional, Protocol

from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.audio_cue import AssetUnavailable

logger = get_logger(__name__)


class MediaSurface(Protocol):
    """Video collaborator driven by the session controller."""

    def get_asset_duration_seconds(self) -> float:
        ...

    def set_playback_rate(self, rate: float) -> None:
        ...

    def play_from_start(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def seek_to_start(self) -> None:
        ...


class MediaState(Enum):
    """Current video state."""

    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()


class FfplayMediaSurface:
    """Plays a video with ffplay at a stretched rate.

    ffplay cannot be paused from outside, so pause() closes the player
    and the clip restarts from the beginning on the next play.

    Attributes:
        video_path: Path to the video file
        rate: Playback rate applied on the next play_from_start()
    """

    def __init__(
        self,
        video_path: Path,
        ffplay_path: str = "ffplay",
        ffprobe_path: str = "ffprobe",
    ):
        """Initialize the surface.

        Args:
            video_path: Path to the video file
            ffplay_path: Path to the ffplay executable
            ffprobe_path: Path to the ffprobe executable
        """
        self.video_path = Path(video_path)
        self.ffplay_path = ffplay_path
        self.ffprobe_path = ffprobe_path
        self.rate = 1.0

        self._duration: Optional[float] = None
        self._process: Optional[subprocess.Popen] = None
        self._state = MediaState.STOPPED

    @property
    def state(self) -> MediaState:
        if self._state == MediaState.PLAYING and self._process is not None:
            if self._process.poll() is not None:
                # Clip ran to its end; ffplay holds nothing more to show
                self._process = None
                self._state = MediaState.STOPPED
        return self._state

    def get_asset_duration_seconds(self) -> float:
        """Probe the clip length with ffprobe.

        Returns:
            Duration in seconds

        Raises:
            AssetUnavailable: If the file is missing or cannot be probed
        """
        if self._duration is not None:
            return self._duration

        if not self.video_path.exists():
            raise AssetUnavailable(f"Video file not found: {self.video_path}", self.video_path)

        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(self.video_path),
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
            duration = float(result.stdout.strip())
        except (OSError, subprocess.CalledProcessError, ValueError) as e:
            raise AssetUnavailable(f"Could not probe {self.video_path}: {e}", self.video_path) from e

        logger.debug(f"Video duration: {duration:.2f}s ({self.video_path})")
        self._duration = duration
        return duration

    def set_playback_rate(self, rate: float) -> None:
        """Set the rate used for the next playback.

        Args:
            rate: Playback-rate multiplier (must be positive)
        """
        if not rate > 0:
            raise ValueError(f"Playback rate must be positive, got {rate}")
        self.rate = rate
        logger.debug(f"Video rate set to {rate:.6f}")

    def _build_command(self) -> list[str]:
        return [
            self.ffplay_path,
            "-loglevel", "error",
            "-an",
            "-window_title", "Bowl Timer",
            "-vf", f"setpts=PTS/{self.rate:.6f}",
            str(self.video_path),
        ]

    def play_from_start(self) -> None:
        """Start the clip from its first frame at the configured rate.

        Raises:
            AssetUnavailable: If the file or ffplay is missing
        """
        self._close()

        if not self.video_path.exists():
            raise AssetUnavailable(f"Video file not found: {self.video_path}", self.video_path)

        try:
            self._process = subprocess.Popen(
                self._build_command(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise AssetUnavailable(f"Could not launch {self.ffplay_path}: {e}", self.video_path) from e

        self._state = MediaState.PLAYING
        logger.info(f"Video playing at {self.rate:.6f}x")

    def pause(self) -> None:
        """Stop showing the clip."""
        if self._process is None:
            return
        self._close()
        self._state = MediaState.PAUSED
        logger.debug("Video paused")

    def seek_to_start(self) -> None:
        """Rewind so the next play starts at the first frame."""
        if self._state == MediaState.PAUSED:
            self._state = MediaState.STOPPED

    def _close(self) -> None:
        if self._process is None:
            return
        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
        self._process = None
        self._state = MediaState.STOPPED
