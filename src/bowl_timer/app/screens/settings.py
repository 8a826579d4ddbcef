"""Settings screen.

Allows viewing and editing the countdown, fade and asset settings.
"""

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label

from bowl_timer.app.config import AppConfig
from bowl_timer.app.state import AppState


class SettingsScreen(Screen):
    """Screen for application settings."""

    BINDINGS = [
        ("ctrl+s", "save", "Save"),
        ("escape", "back", "Back"),
    ]

    def __init__(
        self,
        state: AppState,
        config: AppConfig,
    ):
        """Initialize the screen.

        Args:
            state: Application state
            config: Application configuration
        """
        super().__init__()
        self.state = state
        self.config = config

    def compose(self) -> ComposeResult:
        """Compose the screen layout."""
        yield Header()

        with Vertical():
            yield Label("[bold]Settings[/bold]", id="title")

            with Horizontal(id="preroll_row"):
                yield Label("Countdown to start (s):")
                yield Input(id="preroll_input", value=str(self.config.preroll_seconds))

            with Horizontal(id="fade_row"):
                yield Label("Fade-out (s):")
                yield Input(id="fade_input", value=str(self.config.fade_duration_seconds))

            with Horizontal(id="steps_row"):
                yield Label("Fade steps:")
                yield Input(id="steps_input", value=str(self.config.fade_steps))

            with Horizontal(id="cue_row"):
                yield Label("Bowl sound:")
                yield Input(id="cue_input", value=str(self.config.cue_path))

            with Horizontal(id="video_row"):
                yield Label("Background video:")
                yield Input(id="video_input", value=str(self.config.video_path))

            with Horizontal(id="buttons"):
                yield Button("Save", id="btn_save", variant="primary")
                yield Button("Back", id="btn_back")

        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        button_id = event.button.id

        if button_id == "btn_save":
            self.action_save()
        elif button_id == "btn_back":
            self.app.navigate_back()

    def action_save(self) -> None:
        """Validate and save settings."""
        preroll = self.query_one("#preroll_input", Input).value.strip()
        fade = self.query_one("#fade_input", Input).value.strip()
        steps = self.query_one("#steps_input", Input).value.strip()
        cue = self.query_one("#cue_input", Input).value.strip()
        video = self.query_one("#video_input", Input).value.strip()

        previous = (
            self.config.preroll_seconds,
            self.config.fade_duration_seconds,
            self.config.fade_steps,
        )
        try:
            self.config.preroll_seconds = int(preroll)
            self.config.fade_duration_seconds = float(fade)
            self.config.fade_steps = int(steps)
            self.config.validate()
        except ValueError as e:
            (
                self.config.preroll_seconds,
                self.config.fade_duration_seconds,
                self.config.fade_steps,
            ) = previous
            self.notify(f"Invalid setting: {e}", severity="error")
            return

        if cue:
            self.config.cue_path = Path(cue).expanduser()
        if video:
            self.config.video_path = Path(video).expanduser()

        self.app.apply_settings()
        self.app.save_preferences()
        self.notify("Settings saved")

    def action_back(self) -> None:
        """Go back."""
        self.app.navigate_back()
