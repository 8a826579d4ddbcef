"""Session orchestration for bowl-timer.

Turns the user's Start and Cancel taps into timer, cue and video
commands:

- Start runs a countdown-to-start, then stretches the video over the
  session, begins the main countdown and sounds the bowl.
- Completion fades the bowl out and rewinds the video.
- Cancel stops everything at once.
"""

from dataclasses import dataclass
from typing import Optional, Union

from bowl_timer.app.logging_config import get_logger, session_context
from bowl_timer.app.services.audio_cue import AssetUnavailable, AudioCueController
from bowl_timer.app.services.media import MediaSurface
from bowl_timer.app.services.rate import InvalidDurationError, compute_rate
from bowl_timer.app.services.timer import PhaseListener, SessionTimer, TimerPhase, format_status

logger = get_logger(__name__)

MIN_DURATION_SECONDS = 1
MAX_DURATION_SECONDS = 3600


@dataclass(frozen=True)
class SessionConfig:
    """Settings for one session, fixed when Start is tapped.

    Attributes:
        duration_seconds: Session length (1 to 3600 seconds)
        use_external_media: Whether the background video is shown
    """

    duration_seconds: int
    use_external_media: bool = False

    def __post_init__(self):
        value = self.duration_seconds
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidDurationError(f"duration_seconds must be an integer, got {value!r}")
        if not MIN_DURATION_SECONDS <= value <= MAX_DURATION_SECONDS:
            raise InvalidDurationError(
                f"duration_seconds must be between {MIN_DURATION_SECONDS} and "
                f"{MAX_DURATION_SECONDS}, got {value}"
            )

    @classmethod
    def from_minutes(cls, minutes: int, use_external_media: bool = False) -> "SessionConfig":
        return cls(minutes * 60, use_external_media)


class SessionController:
    """Coordinates SessionTimer, AudioCueController and the video surface.

    Attributes:
        config: Settings used by the next Start
        last_media_error: Most recent video failure, if any
    """

    def __init__(
        self,
        timer: SessionTimer,
        audio: AudioCueController,
        media: Optional[MediaSurface] = None,
        config: Optional[SessionConfig] = None,
        preroll_seconds: int = 5,
        fade_duration_seconds: float = 10.0,
        fade_steps: int = 40,
    ):
        """Initialize the controller.

        Args:
            timer: Countdown state machine
            audio: Bowl cue controller
            media: Background video surface, if available
            config: Initial session settings (10 minutes, no video)
            preroll_seconds: Countdown-to-start length
            fade_duration_seconds: Length of the closing fade
            fade_steps: Number of volume steps in the closing fade
        """
        self.timer = timer
        self.audio = audio
        self.media = media
        self.config = config or SessionConfig(600)
        self.preroll_seconds = preroll_seconds
        self.fade_duration_seconds = fade_duration_seconds
        self.fade_steps = fade_steps

        self.last_media_error: Optional[Union[AssetUnavailable, InvalidDurationError]] = None
        self._active: Optional[SessionConfig] = None

    @property
    def current_phase(self) -> TimerPhase:
        """Get the read-only phase snapshot."""
        return self.timer.current_phase

    @property
    def status_text(self) -> str:
        return format_status(self.timer.current_phase)

    @property
    def active_config(self) -> Optional[SessionConfig]:
        """Settings of the session in progress, if any."""
        return self._active

    @property
    def is_active(self) -> bool:
        """Check if a session is counting down to start or running."""
        return self.timer.is_starting or self.timer.is_running

    def add_listener(self, callback: PhaseListener) -> None:
        self.timer.add_listener(callback)

    def remove_listener(self, callback: PhaseListener) -> None:
        self.timer.remove_listener(callback)

    def handle_start_tap(self) -> bool:
        """Start a session with the current config.

        Returns:
            True if a session started, False if one is already active
        """
        if self.is_active:
            logger.debug("Start ignored: session already active")
            return False

        self._active = self.config
        label = session_context.begin()
        self.last_media_error = None
        # A fade left over from the last session ends with the new one
        self.audio.stop_immediately()

        logger.info(
            f"Session {label} requested: {self._active.duration_seconds}s, "
            f"video={'on' if self._active.use_external_media else 'off'}"
        )
        self.timer.start(
            preroll_seconds=self.preroll_seconds,
            on_preroll_complete=self._on_preroll_complete,
        )
        return True

    def _on_preroll_complete(self) -> None:
        config = self._active
        if config is None:
            return

        if config.use_external_media:
            self._start_media(config)

        self.timer.begin_running(
            config.duration_seconds,
            on_complete=self.on_session_complete,
        )
        self.audio.play_cue()

    def _start_media(self, config: SessionConfig) -> None:
        if self.media is None:
            logger.warning("Video requested but no media surface is configured")
            return

        try:
            asset_duration = self.media.get_asset_duration_seconds()
            rate = compute_rate(asset_duration, config.duration_seconds)
            self.media.set_playback_rate(rate)
            self.media.play_from_start()
        except (AssetUnavailable, InvalidDurationError) as e:
            logger.warning(f"Video skipped: {e}")
            self.last_media_error = e
            return

        logger.info(f"Video stretched: {asset_duration:.2f}s over {config.duration_seconds}s (rate {rate:.6f})")

    def _rewind_media(self, config: Optional[SessionConfig]) -> None:
        if config is None or not config.use_external_media or self.media is None:
            return
        self.media.pause()
        self.media.seek_to_start()

    def handle_cancel(self) -> bool:
        """Cancel the session in progress.

        Returns:
            True if a session was cancelled, False if none was active
        """
        if self.timer.is_idle:
            return False

        config = self._active
        self._active = None
        self.timer.cancel()
        self.audio.stop_immediately()
        self._rewind_media(config)
        logger.info("Session cancelled")
        session_context.end()
        return True

    def on_session_complete(self) -> None:
        """Fade the bowl out and rewind the video once the countdown ends."""
        config = self._active
        self._active = None
        logger.info("Session complete")
        self.audio.fade_out_and_stop(self.fade_duration_seconds, self.fade_steps)
        self._rewind_media(config)
        session_context.end()
