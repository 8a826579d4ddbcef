"""Configuration management for bowl-timer.

Session preferences, asset locations and the log directory are kept in
a TOML file under the platform config directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import tomllib
import tomli_w

from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.session import SessionConfig
from bowl_timer.core.paths import get_app_config_dir, get_default_cue_path, get_default_video_path

logger = get_logger(__name__)


def get_app_config_path() -> Path:
    """Get the path to the app config.toml file.

    Returns:
        Path to config.toml
    """
    return get_app_config_dir() / "config.toml"


@dataclass
class AppConfig:
    """Configuration for bowl-timer.

    Attributes:
        selected_minutes: Last chosen session length in minutes
        use_video: Whether the background video is shown
        preroll_seconds: Countdown-to-start length
        fade_duration_seconds: Length of the closing fade
        fade_steps: Number of volume steps in the closing fade
        cue_path: Singing-bowl sound file
        video_path: Background video file
        ffplay_path: ffplay executable
        ffprobe_path: ffprobe executable
        log_dir: Directory for session logs
    """

    # Session settings
    selected_minutes: int = 10
    use_video: bool = False
    preroll_seconds: int = 5
    fade_duration_seconds: float = 10.0
    fade_steps: int = 40

    # Assets
    cue_path: Path = field(default_factory=get_default_cue_path)
    video_path: Path = field(default_factory=get_default_video_path)
    ffplay_path: str = "ffplay"
    ffprobe_path: str = "ffprobe"

    # App paths
    log_dir: Path = field(default_factory=lambda: get_app_config_dir() / "logs")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "AppConfig":
        """Load configuration from TOML file.

        Args:
            path: Path to config file (defaults to standard location)

        Returns:
            AppConfig instance with loaded values

        Raises:
            FileNotFoundError: If config file doesn't exist
        """
        if path is None:
            path = get_app_config_path()

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f)

        config = cls()

        if "session" in data:
            session_data = data["session"]
            config.selected_minutes = int(session_data.get("selected_minutes", config.selected_minutes))
            config.use_video = bool(session_data.get("use_video", config.use_video))
            config.preroll_seconds = int(session_data.get("preroll_seconds", config.preroll_seconds))
            config.fade_duration_seconds = float(
                session_data.get("fade_duration_seconds", config.fade_duration_seconds)
            )
            config.fade_steps = int(session_data.get("fade_steps", config.fade_steps))

        if "assets" in data:
            assets_data = data["assets"]
            if "cue_path" in assets_data:
                config.cue_path = Path(assets_data["cue_path"]).expanduser()
            if "video_path" in assets_data:
                config.video_path = Path(assets_data["video_path"]).expanduser()
            config.ffplay_path = assets_data.get("ffplay_path", config.ffplay_path)
            config.ffprobe_path = assets_data.get("ffprobe_path", config.ffprobe_path)

        if "app" in data and "log_dir" in data["app"]:
            config.log_dir = Path(data["app"]["log_dir"]).expanduser()

        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: If a setting is out of range
        """
        if not 1 <= self.selected_minutes <= 60:
            raise ValueError(f"selected_minutes must be between 1 and 60, got {self.selected_minutes}")
        if self.preroll_seconds < 0:
            raise ValueError(f"preroll_seconds must not be negative, got {self.preroll_seconds}")
        if self.fade_duration_seconds <= 0:
            raise ValueError(f"fade_duration_seconds must be positive, got {self.fade_duration_seconds}")
        if self.fade_steps < 1:
            raise ValueError(f"fade_steps must be at least 1, got {self.fade_steps}")

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to TOML file.

        Args:
            path: Path to save config (defaults to standard location)
        """
        if path is None:
            path = get_app_config_path()

        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "session": {
                "selected_minutes": self.selected_minutes,
                "use_video": self.use_video,
                "preroll_seconds": self.preroll_seconds,
                "fade_duration_seconds": self.fade_duration_seconds,
                "fade_steps": self.fade_steps,
            },
            "assets": {
                "cue_path": str(self.cue_path),
                "video_path": str(self.video_path),
                "ffplay_path": self.ffplay_path,
                "ffprobe_path": self.ffprobe_path,
            },
            "app": {
                "log_dir": str(self.log_dir),
            },
        }

        with open(path, "wb") as f:
            tomli_w.dump(data, f)

    def session_config(self) -> SessionConfig:
        """Build the immutable settings for the next session."""
        return SessionConfig.from_minutes(self.selected_minutes, self.use_video)


def ensure_app_config_exists(path: Optional[Path] = None) -> AppConfig:
    """Ensure config file exists, creating default if needed.

    Args:
        path: Path to config file (defaults to standard location)

    Returns:
        AppConfig instance
    """
    if path is None:
        path = get_app_config_path()

    if path.exists():
        try:
            return AppConfig.load(path)
        except (tomllib.TOMLDecodeError, ValueError) as e:
            logger.warning(f"Config at {path} is unreadable, replacing with defaults: {e}")

    config = AppConfig()
    config.save(path)
    return config
