"""Tests for SessionController.

Covers the whole Start -> countdown -> session -> fade flow on a
simulated clock, with a mocked media surface and fake audio.
"""

from unittest.mock import call

import pytest

from bowl_timer.app.services.audio_cue import AssetUnavailable, AudioCueController
from bowl_timer.app.services.rate import InvalidDurationError
from bowl_timer.app.services.session import SessionConfig, SessionController
from bowl_timer.app.services.timer import Cancelled, Idle, Running, SessionTimer, Starting


class TestSessionConfig:
    """Tests for the immutable session settings."""

    def test_from_minutes(self):
        """Minutes are converted to seconds."""
        config = SessionConfig.from_minutes(5, use_external_media=True)

        assert config.duration_seconds == 300
        assert config.use_external_media is True

    @pytest.mark.parametrize("seconds", [0, -1, 3601])
    def test_out_of_range(self, seconds):
        """Durations outside 1..3600 are rejected."""
        with pytest.raises(InvalidDurationError):
            SessionConfig(seconds)

    def test_bounds_accepted(self):
        """1 and 3600 seconds are valid."""
        assert SessionConfig(1).duration_seconds == 1
        assert SessionConfig(3600).duration_seconds == 3600

    def test_frozen(self):
        """Config cannot be changed after creation."""
        config = SessionConfig(60)
        with pytest.raises(AttributeError):
            config.duration_seconds = 120


class TestStart:
    """Tests for handle_start_tap."""

    def test_start_enters_preroll(self, controller):
        """Start begins a five second countdown-to-start."""
        assert controller.handle_start_tap() is True

        assert controller.current_phase == Starting(5)
        assert controller.status_text == "Starting in 5…"
        assert controller.is_active

    def test_second_start_is_ignored(self, controller, clock, fake_asset):
        """Tapping Start twice does not double-start or add a ticker."""
        controller.handle_start_tap()
        clock.advance(2)

        assert controller.handle_start_tap() is False
        assert controller.current_phase == Starting(3)
        assert clock.pending == 1

        clock.advance(3)
        assert controller.handle_start_tap() is False
        assert controller.current_phase == Running(300, 1.0)
        assert clock.pending == 1
        assert len(fake_asset.handles) == 1

    def test_cue_plays_when_preroll_ends(self, controller, clock, fake_asset):
        """The bowl sounds exactly when the main countdown begins."""
        controller.handle_start_tap()
        clock.advance(4)
        assert fake_asset.handles == []

        clock.advance(1)

        assert len(fake_asset.handles) == 1
        assert fake_asset.handles[0].play_count == 1
        assert isinstance(controller.current_phase, Running)

    def test_config_captured_at_start(self, controller, clock):
        """Changing config mid-session does not affect the running session."""
        controller.handle_start_tap()
        controller.config = SessionConfig(60)
        clock.advance(5)

        assert controller.current_phase == Running(300, 1.0)
        assert controller.active_config == SessionConfig(300, True)


class TestMediaRate:
    """Tests for stretching the background video."""

    def test_rate_set_before_play(self, controller, clock, media):
        """300s session with a 7s clip: rate 7/300 is set once before play."""
        controller.handle_start_tap()
        clock.advance(5)

        media.set_playback_rate.assert_called_once()
        rate = media.set_playback_rate.call_args[0][0]
        assert rate == pytest.approx(0.023333, abs=1e-6)
        assert rate == 7 / 300

        names = [c[0] for c in media.method_calls]
        assert names.index("set_playback_rate") < names.index("play_from_start")
        media.play_from_start.assert_called_once()

    def test_media_untouched_without_video(self, clock, audio, media):
        """With video off the media surface is never called."""
        controller = SessionController(SessionTimer(clock), audio, media=media, config=SessionConfig(60))

        controller.handle_start_tap()
        clock.advance(70)

        assert media.method_calls == []

    def test_missing_video_does_not_stop_timer(self, controller, clock, media):
        """An unavailable clip is recorded and the countdown still runs."""
        media.get_asset_duration_seconds.side_effect = AssetUnavailable("Video file not found")

        controller.handle_start_tap()
        clock.advance(5)

        assert isinstance(controller.last_media_error, AssetUnavailable)
        assert controller.current_phase == Running(300, 1.0)
        media.play_from_start.assert_not_called()

    def test_zero_length_video_is_skipped(self, controller, clock, media):
        """A zero-length clip yields InvalidDurationError, recorded not raised."""
        media.get_asset_duration_seconds.return_value = 0.0

        controller.handle_start_tap()
        clock.advance(5)

        assert isinstance(controller.last_media_error, InvalidDurationError)
        media.set_playback_rate.assert_not_called()
        assert isinstance(controller.current_phase, Running)

    def test_video_requested_without_surface(self, clock, audio):
        """No media surface configured: the session runs without video."""
        controller = SessionController(SessionTimer(clock), audio, config=SessionConfig(10, True))

        controller.handle_start_tap()
        clock.advance(5)

        assert isinstance(controller.current_phase, Running)


class TestCompletion:
    """Tests for the end of a session."""

    def test_full_session(self, controller, clock, media, fake_asset):
        """Preroll, countdown, fade: phase ends Idle and the bowl fades out."""
        progress = []
        controller.add_listener(lambda p: isinstance(p, Running) and progress.append(p.progress))

        controller.handle_start_tap()
        clock.advance(5 + 300)

        assert len(progress) == 301
        assert progress[0] == 1.0
        assert progress[-1] == 0.0
        assert controller.current_phase == Idle()
        assert controller.active_config is None

        cue, fading = fake_asset.handles
        assert controller.audio.is_fading
        assert media.method_calls[-2:] == [call.pause(), call.seek_to_start()]

        clock.advance(10)
        assert fading.volume == 0.0
        assert fading.stopped
        assert not controller.audio.is_fading

    def test_fade_uses_configured_length(self, clock, audio, fake_asset):
        """Fade settings are passed through to the cue controller."""
        controller = SessionController(
            SessionTimer(clock),
            audio,
            config=SessionConfig(1),
            preroll_seconds=0,
            fade_duration_seconds=2.0,
            fade_steps=4,
        )

        controller.handle_start_tap()
        clock.advance(1)

        assert audio.fade_state.step_duration == 0.5
        assert audio.fade_state.total_steps == 4

    def test_restart_after_completion_stops_fade(self, controller, clock, fake_asset):
        """A new session ends the previous session's fade."""
        controller.handle_start_tap()
        clock.advance(305)
        fading = fake_asset.handles[-1]

        assert controller.handle_start_tap() is True

        assert fading.stopped
        assert not controller.audio.is_fading

    def test_missing_cue_does_not_affect_timing(self, clock, failing_asset):
        """A missing bowl sound leaves the countdown intact."""
        audio = AudioCueController(failing_asset, clock)
        controller = SessionController(SessionTimer(clock), audio, config=SessionConfig(3))
        completions = []
        controller.add_listener(lambda p: isinstance(p, Idle) and completions.append(clock.now))

        controller.handle_start_tap()
        clock.advance(8)

        assert completions == [8.0]
        assert audio.last_error is not None


class TestCancel:
    """Tests for handle_cancel."""

    def test_cancel_during_preroll(self, controller, clock, media, fake_asset):
        """Cancel in the countdown-to-start: nothing ever plays."""
        controller.handle_start_tap()
        clock.advance(3)

        assert controller.handle_cancel() is True
        clock.advance(400)

        assert controller.current_phase == Idle()
        assert fake_asset.handles == []
        media.play_from_start.assert_not_called()
        assert clock.pending == 0

    def test_cancel_during_session(self, controller, clock, media, fake_asset):
        """Cancel while running stops the cue and rewinds the video."""
        phases = []
        controller.add_listener(phases.append)
        controller.handle_start_tap()
        clock.advance(60)
        phases.clear()

        controller.handle_cancel()
        clock.advance(400)

        assert phases == [Cancelled(), Idle()]
        assert fake_asset.handles[0].stopped
        assert len(fake_asset.handles) == 1
        assert media.method_calls[-2:] == [call.pause(), call.seek_to_start()]
        assert clock.pending == 0

    def test_cancel_when_idle(self, controller, media):
        """Cancel with no session does nothing."""
        assert controller.handle_cancel() is False
        assert media.method_calls == []

    def test_cancel_without_video_leaves_media_alone(self, clock, audio, media):
        """Video off: cancel does not pause or rewind the surface."""
        controller = SessionController(SessionTimer(clock), audio, media=media, config=SessionConfig(60))
        controller.handle_start_tap()
        clock.advance(10)

        controller.handle_cancel()

        assert media.method_calls == []

    def test_start_again_after_cancel(self, controller, clock):
        """A fresh session can start right after cancelling."""
        controller.handle_start_tap()
        clock.advance(10)
        controller.handle_cancel()

        assert controller.handle_start_tap() is True
        assert controller.current_phase == Starting(5)
