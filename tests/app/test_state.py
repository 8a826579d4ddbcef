"""Tests for AppState and status formatting."""

import pytest

from bowl_timer.app.services.timer import Cancelled, Finishing, Idle, Running, Starting, format_remaining, format_status
from bowl_timer.app.state import AppScreen, AppState


class TestFormatStatus:
    """Tests for the status line."""

    def test_starting(self):
        assert format_status(Starting(5)) == "Starting in 5…"

    @pytest.mark.parametrize(
        "seconds, text",
        [(600, "Remaining: 10:00"), (299, "Remaining: 4:59"), (61, "Remaining: 1:01"), (0, "Remaining: 0:00")],
    )
    def test_running(self, seconds, text):
        assert format_status(Running(seconds, 0.5)) == text

    @pytest.mark.parametrize("phase", [Idle(), Finishing(), Cancelled()])
    def test_other_phases_blank(self, phase):
        assert format_status(phase) == ""

    def test_format_remaining_over_an_hour(self):
        """Minutes are not wrapped into hours."""
        assert format_remaining(3600) == "60:00"


class TestPhaseUpdates:
    """Tests for phase snapshots in the app state."""

    def test_update_phase_notifies(self):
        """Listeners on 'phase' receive each snapshot."""
        state = AppState()
        received = []
        state.add_listener("phase", received.append)

        state.update_phase(Running(30, 0.5))

        assert received == [Running(30, 0.5)]
        assert state.progress == 0.5
        assert state.status_text == "Remaining: 0:30"
        assert state.is_active

    def test_idle_resets_progress(self):
        """Idle shows a full ring."""
        state = AppState()
        state.update_phase(Running(1, 0.1))

        state.update_phase(Idle())

        assert state.progress == 1.0
        assert not state.is_active

    def test_failing_listener_is_contained(self):
        """A broken listener does not stop other listeners."""
        state = AppState()
        received = []

        def broken(value):
            raise RuntimeError("boom")

        state.add_listener("phase", broken)
        state.add_listener("phase", received.append)

        state.update_phase(Starting(5))

        assert received == [Starting(5)]


class TestSelection:
    """Tests for duration and video selection."""

    def test_select_minutes(self):
        state = AppState()
        received = []
        state.add_listener("selected_minutes", received.append)

        assert state.select_minutes(15) is True

        assert state.selected_minutes == 15
        assert received == [15]

    @pytest.mark.parametrize("minutes, expected", [(0, 1), (-5, 1), (61, 60), (120, 60)])
    def test_select_minutes_clamped(self, minutes, expected):
        """Durations are kept within 1..60 minutes."""
        state = AppState(selected_minutes=30)

        state.select_minutes(minutes)

        assert state.selected_minutes == expected

    def test_select_same_minutes_is_silent(self):
        state = AppState(selected_minutes=10)
        received = []
        state.add_listener("selected_minutes", received.append)

        assert state.select_minutes(10) is False
        assert received == []

    def test_cannot_change_duration_mid_session(self):
        """The duration is fixed while a session is active."""
        state = AppState(selected_minutes=10)
        state.update_phase(Starting(3))

        assert state.select_minutes(5) is False
        assert state.selected_minutes == 10

    def test_toggle_video(self):
        state = AppState()
        received = []
        state.add_listener("use_video", received.append)

        assert state.toggle_video() is True
        assert state.toggle_video() is False
        assert received == [True, False]


class TestNavigationState:
    """Tests for screen navigation bookkeeping."""

    def test_navigate_and_back(self):
        state = AppState()

        state.navigate_to(AppScreen.SETTINGS)
        assert state.current_screen == AppScreen.SETTINGS

        assert state.navigate_back() is True
        assert state.current_screen == AppScreen.TIMER
        assert state.navigate_back() is False

    def test_remove_listener(self):
        state = AppState()
        received = []
        state.add_listener("error_message", received.append)
        state.remove_listener("error_message", received.append)

        state.set_error("missing sound")

        assert received == []
        assert state.error_message == "missing sound"
        state.clear_error()
        assert state.error_message is None
