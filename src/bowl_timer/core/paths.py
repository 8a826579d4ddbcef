"""Platform-specific path resolution for Bowl Timer.

This module handles cross-platform path conventions for storing the
bundled sound and video assets and the user configuration.

Supported Platforms:
- macOS: ~/Library/Application Support/BowlTimer/
- Linux: ~/.local/share/bowl_timer/ (XDG_DATA_HOME)
- Windows: %APPDATA%\\BowlTimer\\
"""

import os
import sys
from pathlib import Path

CUE_FILENAME = "singingbowl.mp3"
VIDEO_FILENAME = "tree.mp4"


def get_user_data_dir() -> Path:
    """Get the platform-specific user data directory.

    Returns:
        Path to the user data directory for Bowl Timer.

    Examples:
        >>> get_user_data_dir()  # doctest: +SKIP
        Path('/home/user/.local/share/bowl_timer')  # Linux
        Path('/Users/user/Library/Application Support/BowlTimer')  # macOS
    """
    # Check for environment variable override first
    if "BOWL_TIMER_DATA_DIR" in os.environ:
        return Path(os.environ["BOWL_TIMER_DATA_DIR"])

    if sys.platform == "darwin":
        path = Path.home() / "Library" / "Application Support" / "BowlTimer"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA", "")
        if not appdata:
            path = Path.home() / "AppData" / "Roaming" / "BowlTimer"
        else:
            path = Path(appdata) / "BowlTimer"
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            path = Path(xdg_data_home) / "bowl_timer"
        else:
            path = Path.home() / ".local" / "share" / "bowl_timer"

    return path


def get_app_config_dir() -> Path:
    """Get the platform-specific config directory for bowl-timer.

    Returns:
        Path to the config directory for bowl-timer.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "bowl-timer"
        return Path.home() / "AppData" / "Roaming" / "bowl-timer"

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "bowl-timer"
    return Path.home() / ".config" / "bowl-timer"


def get_default_cue_path() -> Path:
    """Get the default location of the singing-bowl sound."""
    return get_user_data_dir() / "assets" / CUE_FILENAME


def get_default_video_path() -> Path:
    """Get the default location of the background video."""
    return get_user_data_dir() / "assets" / VIDEO_FILENAME
