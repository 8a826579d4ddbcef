"""Main TUI application for bowl-timer.

Textual-based application: pick a duration, tap Start, and sit until
the bowl fades out.
"""

from pathlib import Path
from typing import Callable, Optional

from textual.app import App

from bowl_timer.app.config import AppConfig
from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.audio_cue import AssetUnavailable, AudioCueController, MiniaudioAsset
from bowl_timer.app.services.clock import AsyncioClock, Clock
from bowl_timer.app.services.media import FfplayMediaSurface
from bowl_timer.app.services.session import SessionController
from bowl_timer.app.services.timer import SessionTimer
from bowl_timer.app.state import AppScreen, AppState

logger = get_logger(__name__)


def create_audio(
    config: AppConfig,
    clock: Clock,
    on_asset_unavailable: Optional[Callable[[AssetUnavailable], None]] = None,
) -> AudioCueController:
    """Build the bowl cue controller for the configured sound file."""
    return AudioCueController(
        MiniaudioAsset(config.cue_path),
        clock,
        on_asset_unavailable=on_asset_unavailable,
    )


def create_media(config: AppConfig) -> FfplayMediaSurface:
    """Build the video surface for the configured clip."""
    return FfplayMediaSurface(
        config.video_path,
        ffplay_path=config.ffplay_path,
        ffprobe_path=config.ffprobe_path,
    )


def create_controller(
    config: AppConfig,
    clock: Clock,
    on_asset_unavailable: Optional[Callable[[AssetUnavailable], None]] = None,
) -> SessionController:
    """Wire the timer, cue and video services from configuration.

    Args:
        config: Application configuration
        clock: Tick source shared by every service
        on_asset_unavailable: Status hook for cue failures

    Returns:
        Ready SessionController
    """
    return SessionController(
        SessionTimer(clock),
        create_audio(config, clock, on_asset_unavailable),
        media=create_media(config),
        config=config.session_config(),
        preroll_seconds=config.preroll_seconds,
        fade_duration_seconds=config.fade_duration_seconds,
        fade_steps=config.fade_steps,
    )


class BowlTimerApp(App):
    """Main Bowl Timer application."""

    CSS_PATH = "screens/app.tcss"
    TITLE = "Bowl Timer"
    SUB_TITLE = "Meditation Timer"

    def __init__(
        self,
        config: AppConfig,
        config_path: Optional[Path] = None,
        clock: Optional[Clock] = None,
        *args,
        **kwargs,
    ):
        """Initialize the application.

        Args:
            config: Application configuration
            config_path: File that preference changes are saved to
            clock: Tick source (event-loop clock by default)
        """
        super().__init__(*args, **kwargs)

        self.config = config
        self.config_path = config_path
        self.clock = clock or AsyncioClock()

        self.state = AppState(
            selected_minutes=config.selected_minutes,
            use_video=config.use_video,
        )
        self.controller = create_controller(config, self.clock, self._on_asset_unavailable)
        self.controller.add_listener(self.state.update_phase)

    def on_mount(self) -> None:
        """Handle app mount event."""
        logger.info("App mounted, pushing initial screen: TIMER")
        self.push_screen(self._create_screen(AppScreen.TIMER))

    def _create_screen(self, screen: AppScreen):
        """Create a fresh screen instance.

        Args:
            screen: Screen enum value

        Returns:
            New screen instance
        """
        if screen == AppScreen.TIMER:
            from bowl_timer.app.screens.timer import TimerScreen
            return TimerScreen(self.state, self.controller)
        elif screen == AppScreen.SETTINGS:
            from bowl_timer.app.screens.settings import SettingsScreen
            return SettingsScreen(self.state, self.config)

    def _on_asset_unavailable(self, error: AssetUnavailable) -> None:
        self.state.set_error(str(error))

    def navigate_to(self, screen: AppScreen) -> None:
        """Navigate to a screen.

        Args:
            screen: Screen to navigate to
        """
        logger.info(f"Navigate to: {screen.name} (from {self.state.current_screen.name})")
        self.state.navigate_to(screen)
        self.push_screen(self._create_screen(screen))

    def navigate_back(self) -> None:
        """Navigate back to the previous screen."""
        if self.state.navigate_back():
            self.pop_screen()
        else:
            logger.warning("Cannot navigate back - no previous screen")

    def toggle_session(self) -> None:
        """Start a session, or cancel the one in progress."""
        if self.controller.is_active:
            self.controller.handle_cancel()
            return

        self.state.clear_error()
        self.controller.config = self.config.session_config()
        self.controller.handle_start_tap()

    def save_preferences(self) -> None:
        """Write the chosen duration and video toggle back to the config file."""
        self.config.selected_minutes = self.state.selected_minutes
        self.config.use_video = self.state.use_video
        if self.config_path is not None:
            self.config.save(self.config_path)
            logger.debug(f"Preferences saved to {self.config_path}")

    def apply_settings(self) -> None:
        """Point the controller at the current settings and assets."""
        controller = self.controller
        controller.handle_cancel()
        controller.audio.stop_immediately()

        controller.audio = create_audio(self.config, self.clock, self._on_asset_unavailable)
        controller.media = create_media(self.config)
        controller.preroll_seconds = self.config.preroll_seconds
        controller.fade_duration_seconds = self.config.fade_duration_seconds
        controller.fade_steps = self.config.fade_steps
        logger.info("Settings applied")

    def action_quit(self) -> None:
        """Quit the application with cleanup."""
        self.controller.handle_cancel()
        self.controller.audio.stop_immediately()
        self.exit()

    def action_back(self) -> None:
        """Go back to previous screen."""
        self.navigate_back()
