"""Tests for FfplayMediaSurface.

Note: subprocess is mocked so neither ffprobe nor ffplay is required.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from bowl_timer.app.services.audio_cue import AssetUnavailable
from bowl_timer.app.services.media import FfplayMediaSurface, MediaState


@pytest.fixture
def video_file(tmp_path):
    """Placeholder video file."""
    path = tmp_path / "tree.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
    return path


@pytest.fixture
def surface(video_file):
    return FfplayMediaSurface(video_file)


class TestDuration:
    """Tests for probing the clip length."""

    def test_probe_parses_ffprobe_output(self, surface, video_file):
        """ffprobe's duration is returned as a float."""
        with patch("bowl_timer.app.services.media.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="7.000000\n")

            assert surface.get_asset_duration_seconds() == 7.0

        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "ffprobe"
        assert str(video_file) in cmd

    def test_probe_is_cached(self, surface):
        """The clip is probed only once."""
        with patch("bowl_timer.app.services.media.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="7.0")
            surface.get_asset_duration_seconds()
            surface.get_asset_duration_seconds()

        assert mock_run.call_count == 1

    def test_missing_file(self, tmp_path):
        """A missing clip raises AssetUnavailable."""
        surface = FfplayMediaSurface(tmp_path / "missing.mp4")

        with pytest.raises(AssetUnavailable):
            surface.get_asset_duration_seconds()

    def test_ffprobe_missing(self, surface):
        """No ffprobe executable raises AssetUnavailable."""
        with patch("bowl_timer.app.services.media.subprocess.run", side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(AssetUnavailable):
                surface.get_asset_duration_seconds()

    def test_unparseable_output(self, surface):
        """Garbage output raises AssetUnavailable."""
        with patch("bowl_timer.app.services.media.subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(stdout="N/A")
            with pytest.raises(AssetUnavailable):
                surface.get_asset_duration_seconds()

    def test_ffprobe_error_exit(self, surface):
        """A failing ffprobe raises AssetUnavailable."""
        error = subprocess.CalledProcessError(1, ["ffprobe"])
        with patch("bowl_timer.app.services.media.subprocess.run", side_effect=error):
            with pytest.raises(AssetUnavailable):
                surface.get_asset_duration_seconds()


class TestPlayback:
    """Tests for playing, pausing and rewinding."""

    def test_play_uses_rate_filter(self, surface):
        """ffplay is launched muted with the stretched timestamps."""
        surface.set_playback_rate(7 / 300)

        with patch("bowl_timer.app.services.media.subprocess.Popen") as mock_popen:
            mock_popen.return_value.poll.return_value = None
            surface.play_from_start()

        cmd = mock_popen.call_args[0][0]
        assert cmd[0] == "ffplay"
        assert "-an" in cmd
        assert "setpts=PTS/0.023333" in cmd
        assert surface.state == MediaState.PLAYING

    def test_invalid_rate_rejected(self, surface):
        """Zero or negative rates raise ValueError."""
        with pytest.raises(ValueError):
            surface.set_playback_rate(0)

    def test_pause_terminates_player(self, surface):
        """pause closes the running ffplay."""
        with patch("bowl_timer.app.services.media.subprocess.Popen") as mock_popen:
            process = mock_popen.return_value
            process.poll.return_value = None
            surface.play_from_start()

            surface.pause()

        process.terminate.assert_called_once()
        assert surface.state == MediaState.PAUSED

    def test_seek_to_start_after_pause(self, surface):
        """Rewinding a paused clip leaves it stopped at the start."""
        with patch("bowl_timer.app.services.media.subprocess.Popen") as mock_popen:
            mock_popen.return_value.poll.return_value = None
            surface.play_from_start()
            surface.pause()

        surface.seek_to_start()

        assert surface.state == MediaState.STOPPED

    def test_pause_without_playback(self, surface):
        """pause with nothing playing is a no-op."""
        surface.pause()

        assert surface.state == MediaState.STOPPED

    def test_play_restarts_existing_player(self, surface):
        """A second play closes the first ffplay."""
        with patch("bowl_timer.app.services.media.subprocess.Popen") as mock_popen:
            first = MagicMock()
            first.poll.return_value = None
            second = MagicMock()
            second.poll.return_value = None
            mock_popen.side_effect = [first, second]

            surface.play_from_start()
            surface.play_from_start()

        first.terminate.assert_called_once()
        assert mock_popen.call_count == 2

    def test_ffplay_missing(self, surface):
        """No ffplay executable raises AssetUnavailable."""
        with patch("bowl_timer.app.services.media.subprocess.Popen", side_effect=FileNotFoundError("ffplay")):
            with pytest.raises(AssetUnavailable):
                surface.play_from_start()

        assert surface.state == MediaState.STOPPED

    def test_clip_end_reported_as_stopped(self, surface):
        """An exited ffplay shows up as STOPPED."""
        with patch("bowl_timer.app.services.media.subprocess.Popen") as mock_popen:
            mock_popen.return_value.poll.return_value = 0
            surface.play_from_start()

        assert surface.state == MediaState.STOPPED
