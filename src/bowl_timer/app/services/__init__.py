"""Timer, cue and video services for bowl-timer."""

from bowl_timer.app.services.audio_cue import AssetUnavailable, AudioCueController, FadeState
from bowl_timer.app.services.clock import AsyncioClock, CancelToken, Clock, ManualClock
from bowl_timer.app.services.rate import InvalidDurationError, compute_rate
from bowl_timer.app.services.session import SessionConfig, SessionController
from bowl_timer.app.services.timer import (
    Cancelled,
    Finishing,
    Idle,
    InvalidStateTransition,
    Running,
    SessionTimer,
    Starting,
    TimerPhase,
)

__all__ = [
    "AssetUnavailable",
    "AudioCueController",
    "FadeState",
    "AsyncioClock",
    "CancelToken",
    "Clock",
    "ManualClock",
    "InvalidDurationError",
    "compute_rate",
    "SessionConfig",
    "SessionController",
    "Cancelled",
    "Finishing",
    "Idle",
    "InvalidStateTransition",
    "Running",
    "SessionTimer",
    "Starting",
    "TimerPhase",
]
