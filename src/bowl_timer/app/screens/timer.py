"""Timer screen.

Shows the countdown status, a progress bar standing in for the ring,
duration presets and the Start/Cancel and Video toggles.
"""

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ProgressBar

from bowl_timer.app.services.session import SessionController
from bowl_timer.app.services.timer import TimerPhase
from bowl_timer.app.state import DURATION_PRESETS, AppScreen, AppState


class TimerScreen(Screen):
    """Screen for running a meditation session."""

    BINDINGS = [
        ("space", "toggle_session", "Start/Cancel"),
        ("minus", "shorter", "-1 min"),
        ("plus", "longer", "+1 min"),
        ("v", "toggle_video", "Video"),
        ("s", "settings", "Settings"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        state: AppState,
        controller: SessionController,
    ):
        """Initialize the screen.

        Args:
            state: Application state
            controller: Session controller
        """
        super().__init__()
        self.state = state
        self.controller = controller

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()

        with Vertical(id="timer_panel"):
            yield Label(self.state.status_text, id="status_label")
            yield ProgressBar(id="progress_ring", total=100, show_eta=False)
            yield Label("", id="error_label")

            yield Label(self._duration_text(), id="duration_label")
            with Horizontal(id="presets"):
                for minutes in DURATION_PRESETS:
                    yield Button(f"{minutes} Min", id=f"btn_preset_{minutes}")

            with Horizontal(id="buttons"):
                yield Button(self._media_text(), id="btn_media")
                yield Button("Start", id="btn_start", variant="primary")

        yield Footer()

    def on_mount(self) -> None:
        """Handle mount event."""
        self.state.add_listener("phase", self._on_phase)
        self.state.add_listener("selected_minutes", self._on_minutes)
        self.state.add_listener("use_video", self._on_video)
        self.state.add_listener("error_message", self._on_error)
        self._render_phase(self.state.phase)

    def on_unmount(self) -> None:
        """Handle unmount event."""
        self.state.remove_listener("phase", self._on_phase)
        self.state.remove_listener("selected_minutes", self._on_minutes)
        self.state.remove_listener("use_video", self._on_video)
        self.state.remove_listener("error_message", self._on_error)

    def _duration_text(self) -> str:
        return f"Duration: {self.state.selected_minutes} minutes"

    def _media_text(self) -> str:
        # Names the background the button switches to
        return "Image" if self.state.use_video else "Video"

    def _render_phase(self, phase: TimerPhase) -> None:
        self.query_one("#status_label", Label).update(self.state.status_text)
        self.query_one("#progress_ring", ProgressBar).update(progress=self.state.progress * 100)

        start_button = self.query_one("#btn_start", Button)
        if self.state.is_active:
            start_button.label = "Cancel"
            start_button.variant = "error"
        else:
            start_button.label = "Start"
            start_button.variant = "primary"

    def _on_phase(self, phase: TimerPhase) -> None:
        self._render_phase(phase)

    def _on_minutes(self, minutes: int) -> None:
        self.query_one("#duration_label", Label).update(self._duration_text())
        self.app.save_preferences()

    def _on_video(self, use_video: bool) -> None:
        self.query_one("#btn_media", Button).label = self._media_text()
        self.app.save_preferences()

    def _on_error(self, message) -> None:
        self.query_one("#error_label", Label).update(f"[yellow]{message}[/yellow]" if message else "")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        button_id = event.button.id

        if button_id == "btn_start":
            self.action_toggle_session()
        elif button_id == "btn_media":
            self.action_toggle_video()
        elif button_id and button_id.startswith("btn_preset_"):
            self.state.select_minutes(int(button_id.removeprefix("btn_preset_")))

    def action_toggle_session(self) -> None:
        """Start or cancel the session."""
        self.app.toggle_session()

    def action_shorter(self) -> None:
        self.state.select_minutes(self.state.selected_minutes - 1)

    def action_longer(self) -> None:
        self.state.select_minutes(self.state.selected_minutes + 1)

    def action_toggle_video(self) -> None:
        """Switch between the still image and the background video."""
        self.state.toggle_video()

    def action_settings(self) -> None:
        """Open settings."""
        if self.state.is_active:
            self.notify("Cancel the session before changing settings", severity="warning")
            return
        self.app.navigate_to(AppScreen.SETTINGS)

    def action_quit(self) -> None:
        self.app.action_quit()
