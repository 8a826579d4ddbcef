"""Shared fixtures for app tests."""

from pathlib import Path
from typing import Optional
from unittest.mock import MagicMock

import pytest

from bowl_timer.app.config import AppConfig
from bowl_timer.app.services.audio_cue import AssetUnavailable, AudioCueController
from bowl_timer.app.services.clock import ManualClock
from bowl_timer.app.services.session import SessionConfig, SessionController
from bowl_timer.app.services.timer import SessionTimer


class FakeHandle:
    """Audio handle that records what was done to it."""

    def __init__(self):
        self._volume = 1.0
        self.volume_history: list[float] = []
        self.play_count = 0
        self.stop_count = 0

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = value
        self.volume_history.append(value)

    @property
    def stopped(self) -> bool:
        return self.stop_count > 0

    def play(self) -> None:
        self.play_count += 1

    def stop(self) -> None:
        self.stop_count += 1


class FakeAsset:
    """Audio asset handing out FakeHandles, or failing on demand."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.handles: list[FakeHandle] = []

    def load(self) -> FakeHandle:
        if self.fail:
            raise AssetUnavailable("Audio file not found: bowl.mp3", Path("bowl.mp3"))
        handle = FakeHandle()
        self.handles.append(handle)
        return handle


@pytest.fixture
def clock():
    """Simulated clock."""
    return ManualClock()


@pytest.fixture
def session_timer(clock):
    """SessionTimer on the simulated clock."""
    return SessionTimer(clock)


@pytest.fixture
def fake_asset():
    """Working audio asset."""
    return FakeAsset()


@pytest.fixture
def failing_asset():
    """Audio asset whose file is missing."""
    return FakeAsset(fail=True)


@pytest.fixture
def audio(fake_asset, clock):
    """AudioCueController over the fake asset."""
    return AudioCueController(fake_asset, clock)


@pytest.fixture
def media():
    """Mocked media surface reporting a 7 second clip."""
    surface = MagicMock()
    surface.get_asset_duration_seconds.return_value = 7.0
    return surface


def make_controller(
    clock: ManualClock,
    audio: AudioCueController,
    media=None,
    duration_seconds: int = 300,
    use_external_media: bool = False,
    timer: Optional[SessionTimer] = None,
) -> SessionController:
    return SessionController(
        timer or SessionTimer(clock),
        audio,
        media=media,
        config=SessionConfig(duration_seconds, use_external_media),
    )


@pytest.fixture
def controller(clock, audio, media):
    """SessionController for a 5 minute session with video."""
    return make_controller(clock, audio, media, duration_seconds=300, use_external_media=True)


@pytest.fixture
def app_config(tmp_path):
    """AppConfig pointing at missing assets inside tmp_path."""
    return AppConfig(
        cue_path=tmp_path / "assets" / "singingbowl.mp3",
        video_path=tmp_path / "assets" / "tree.mp4",
        log_dir=tmp_path / "logs",
    )
