"""Application state for bowl-timer.

Holds what the screens render: the current phase snapshot, its status
text, the selected duration and the video toggle. Screens watch
properties through listeners; only the session timer changes phases.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Optional

from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.timer import Idle, Running, Starting, TimerPhase, format_status

logger = get_logger(__name__)

DURATION_PRESETS = (5, 10, 15)
MIN_MINUTES = 1
MAX_MINUTES = 60


class AppScreen(Enum):
    """Available screens in the app."""

    TIMER = auto()
    SETTINGS = auto()


@dataclass
class AppState:
    """Reactive application state.

    Attributes:
        current_screen: Currently active screen
        previous_screen: Screen to return to (for back navigation)
        selected_minutes: Duration chosen for the next session
        use_video: Whether the background video is shown
        phase: Latest phase snapshot from the session timer
        progress: Fraction of the session left (full ring when idle)
        error_message: Current error message to display
    """

    current_screen: AppScreen = AppScreen.TIMER
    previous_screen: Optional[AppScreen] = None

    selected_minutes: int = 10
    use_video: bool = False

    phase: TimerPhase = field(default_factory=Idle)
    progress: float = 1.0

    error_message: Optional[str] = None

    _listeners: dict[str, list[Callable]] = field(default_factory=dict)

    @property
    def status_text(self) -> str:
        return format_status(self.phase)

    @property
    def is_active(self) -> bool:
        """Check if a session is counting down to start or running."""
        return isinstance(self.phase, (Starting, Running))

    def add_listener(self, property_name: str, callback: Callable) -> None:
        """Add a listener for a property change.

        Args:
            property_name: Name of the property to watch
            callback: Function to call when property changes
        """
        self._listeners.setdefault(property_name, []).append(callback)

    def remove_listener(self, property_name: str, callback: Callable) -> None:
        """Remove a property change listener.

        Args:
            property_name: Name of the property
            callback: Callback to remove
        """
        if property_name in self._listeners:
            self._listeners[property_name] = [
                cb for cb in self._listeners[property_name] if cb != callback
            ]

    def _notify(self, property_name: str, value) -> None:
        """Notify listeners of a property change."""
        for callback in self._listeners.get(property_name, []):
            try:
                callback(value)
            except Exception:
                logger.exception(f"Listener for {property_name} failed")

    def navigate_to(self, screen: AppScreen) -> None:
        """Navigate to a screen, saving current for back navigation.

        Args:
            screen: Screen to navigate to
        """
        self.previous_screen = self.current_screen
        self.current_screen = screen
        self._notify("current_screen", screen)

    def navigate_back(self) -> bool:
        """Navigate back to the previous screen.

        Returns:
            True if navigation occurred
        """
        if self.previous_screen:
            self.current_screen = self.previous_screen
            self.previous_screen = None
            self._notify("current_screen", self.current_screen)
            return True
        return False

    def update_phase(self, phase: TimerPhase) -> None:
        """Record a phase snapshot from the session timer.

        Args:
            phase: New phase
        """
        self.phase = phase
        self.progress = phase.progress if isinstance(phase, Running) else 1.0
        self._notify("phase", phase)

    def select_minutes(self, minutes: int) -> bool:
        """Choose the duration for the next session.

        Args:
            minutes: Duration in minutes, clamped to 1..60

        Returns:
            True if the selection changed
        """
        if self.is_active:
            return False
        minutes = max(MIN_MINUTES, min(MAX_MINUTES, minutes))
        if minutes == self.selected_minutes:
            return False
        self.selected_minutes = minutes
        self._notify("selected_minutes", minutes)
        return True

    def toggle_video(self) -> bool:
        """Flip the background video setting.

        Returns:
            The new setting
        """
        self.use_video = not self.use_video
        self._notify("use_video", self.use_video)
        return self.use_video

    def set_error(self, message: Optional[str]) -> None:
        """Set error message.

        Args:
            message: Error message (None to clear)
        """
        self.error_message = message
        self._notify("error_message", message)

    def clear_error(self) -> None:
        """Clear the current error message."""
        self.set_error(None)
