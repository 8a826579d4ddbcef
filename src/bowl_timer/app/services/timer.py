"""Session timer state machine for bowl-timer.

Owns the countdown-to-start, the running countdown and its progress.
All ticking goes through one Clock and one active CancelToken; every
phase change is published as an immutable snapshot to listeners.

Phases: Idle -> Starting -> Running -> Idle, with cancellation edges
Starting -> Idle and Running -> Idle. Finishing and Cancelled are
published on the way back to Idle.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union

from bowl_timer.app.logging_config import get_logger
from bowl_timer.app.services.clock import CancelToken, Clock
from bowl_timer.app.services.rate import InvalidDurationError

logger = get_logger(__name__)

TICK_SECONDS = 1.0


@dataclass(frozen=True)
class Idle:
    """No session in progress."""


@dataclass(frozen=True)
class Starting:
    """Countdown-to-start in progress.

    Attributes:
        remaining_preroll: Seconds left before the session begins
    """

    remaining_preroll: int


@dataclass(frozen=True)
class Running:
    """Main countdown in progress.

    Attributes:
        remaining_seconds: Seconds left in the session
        progress: remaining_seconds / total_seconds (1.0 down to 0.0)
    """

    remaining_seconds: int
    progress: float


@dataclass(frozen=True)
class Finishing:
    """Countdown reached zero, completion callback is running."""


@dataclass(frozen=True)
class Cancelled:
    """Session was cancelled, ticking has stopped."""


TimerPhase = Union[Idle, Starting, Running, Finishing, Cancelled]

PhaseListener = Callable[[TimerPhase], None]


def format_remaining(seconds: int) -> str:
    """Format seconds as M:SS."""
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_status(phase: TimerPhase) -> str:
    """Status line shown above the progress ring.

    Args:
        phase: Phase snapshot

    Returns:
        "Starting in N…", "Remaining: M:SS" or an empty string
    """
    if isinstance(phase, Starting):
        return f"Starting in {phase.remaining_preroll}…"
    if isinstance(phase, Running):
        return f"Remaining: {format_remaining(phase.remaining_seconds)}"
    return ""


class InvalidStateTransition(RuntimeError):
    """Timer operation called from a phase that does not allow it."""

    def __init__(self, current: TimerPhase, requested: str):
        super().__init__(f"Cannot {requested} while {type(current).__name__}")
        self.current = current
        self.requested = requested


def _check_seconds(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidDurationError(f"{name} must be a non-negative integer, got {value!r}")


class SessionTimer:
    """Countdown state machine driven by a Clock.

    Only this class changes the phase. Ticks arriving for a token that
    is no longer the active one are ignored, so no callback of a
    cancelled run can fire after cancel() returns.
    """

    def __init__(self, clock: Clock):
        """Initialize the timer.

        Args:
            clock: Tick source shared by the preroll and the main countdown
        """
        self._clock = clock
        self._phase: TimerPhase = Idle()
        self._token: Optional[CancelToken] = None
        self._total_seconds = 0

        self._on_preroll_tick: Optional[Callable[[int], None]] = None
        self._on_preroll_complete: Optional[Callable[[], None]] = None
        self._on_tick: Optional[Callable[[int, float], None]] = None
        self._on_complete: Optional[Callable[[], None]] = None

        self._listeners: list[PhaseListener] = []

    @property
    def current_phase(self) -> TimerPhase:
        """Get the current phase snapshot."""
        return self._phase

    @property
    def is_idle(self) -> bool:
        return isinstance(self._phase, Idle)

    @property
    def is_starting(self) -> bool:
        return isinstance(self._phase, Starting)

    @property
    def is_running(self) -> bool:
        return isinstance(self._phase, Running)

    @property
    def total_seconds(self) -> int:
        """Length of the current (or last begun) countdown."""
        return self._total_seconds

    @property
    def remaining_seconds(self) -> Optional[int]:
        """Seconds left while Running, None otherwise."""
        if isinstance(self._phase, Running):
            return self._phase.remaining_seconds
        return None

    @property
    def progress(self) -> float:
        """Fraction of the session left; a full ring outside Running."""
        if isinstance(self._phase, Running):
            return self._phase.progress
        return 1.0

    def add_listener(self, callback: PhaseListener) -> None:
        """Subscribe to phase snapshots.

        Args:
            callback: Called with every published phase
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: PhaseListener) -> None:
        """Unsubscribe a phase listener.

        Args:
            callback: Listener to remove
        """
        self._listeners = [cb for cb in self._listeners if cb != callback]

    def _set_phase(self, phase: TimerPhase) -> None:
        """Update phase and notify listeners."""
        self._phase = phase
        for callback in list(self._listeners):
            try:
                callback(phase)
            except Exception:
                logger.exception(f"Phase listener failed for {phase}")

    def _release_token(self) -> None:
        if self._token is not None:
            self._clock.cancel(self._token)
            self._token = None

    def start(
        self,
        preroll_seconds: int = 5,
        on_preroll_tick: Optional[Callable[[int], None]] = None,
        on_preroll_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """Begin the countdown-to-start.

        The phase stays Starting(0) after the preroll finishes until the
        caller invokes begin_running().

        Args:
            preroll_seconds: Seconds to count down before the session
            on_preroll_tick: Called with the remaining preroll after each tick
            on_preroll_complete: Called once the preroll reaches zero

        Raises:
            InvalidStateTransition: If the timer is not Idle
            InvalidDurationError: If preroll_seconds is negative
        """
        if not self.is_idle:
            raise InvalidStateTransition(self._phase, "start")
        _check_seconds("preroll_seconds", preroll_seconds)

        self._release_token()
        self._on_preroll_tick = on_preroll_tick
        self._on_preroll_complete = on_preroll_complete

        logger.info(f"Preroll started: {preroll_seconds}s")
        snapshot = Starting(preroll_seconds)
        self._set_phase(snapshot)
        # A listener may have cancelled or restarted on the first snapshot
        if self._phase is not snapshot:
            return

        if preroll_seconds == 0:
            self._complete_preroll()
            return

        self._token = self._clock.schedule(TICK_SECONDS, True, self._preroll_tick)

    def _preroll_tick(self) -> None:
        token = self._token
        if token is None or not isinstance(self._phase, Starting):
            return

        remaining = self._phase.remaining_preroll - 1
        self._set_phase(Starting(remaining))

        if self._on_preroll_tick:
            self._on_preroll_tick(remaining)

        # Listener or tick callback may have cancelled us
        if self._token is not token:
            return

        if remaining <= 0:
            self._release_token()
            self._complete_preroll()

    def _complete_preroll(self) -> None:
        logger.debug("Preroll complete")
        callback = self._on_preroll_complete
        self._on_preroll_tick = None
        self._on_preroll_complete = None
        if callback:
            callback()

    def begin_running(
        self,
        total_seconds: int,
        on_tick: Optional[Callable[[int, float], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> None:
        """Begin the main countdown.

        A total of zero completes synchronously without any tick.

        Args:
            total_seconds: Session length in seconds
            on_tick: Called with (remaining_seconds, progress) after each tick
            on_complete: Called once the countdown reaches zero

        Raises:
            InvalidStateTransition: If already Running or winding down
            InvalidDurationError: If total_seconds is negative
        """
        if not (self.is_idle or self.is_starting):
            raise InvalidStateTransition(self._phase, "begin running")
        _check_seconds("total_seconds", total_seconds)

        # Starting early drops whatever is left of the preroll
        self._release_token()
        self._on_preroll_tick = None
        self._on_preroll_complete = None

        self._total_seconds = total_seconds
        self._on_tick = on_tick
        self._on_complete = on_complete

        logger.info(f"Countdown started: {total_seconds}s")

        if total_seconds == 0:
            self._finish()
            return

        snapshot = Running(total_seconds, 1.0)
        self._set_phase(snapshot)
        if self._phase is not snapshot:
            return

        self._token = self._clock.schedule(TICK_SECONDS, True, self._run_tick)

    def _run_tick(self) -> None:
        token = self._token
        if token is None or not isinstance(self._phase, Running):
            return

        remaining = self._phase.remaining_seconds - 1
        progress = remaining / self._total_seconds
        self._set_phase(Running(remaining, progress))

        if self._on_tick:
            self._on_tick(remaining, progress)

        if self._token is not token:
            return

        if remaining <= 0:
            self._finish()

    def _finish(self) -> None:
        self._release_token()
        callback = self._on_complete
        self._on_tick = None
        self._on_complete = None

        logger.info("Countdown complete")
        self._set_phase(Finishing())
        try:
            if callback:
                callback()
        finally:
            self._set_phase(Idle())

    def cancel(self) -> bool:
        """Stop any countdown immediately and return to Idle.

        Returns:
            True if something was cancelled, False if already Idle
        """
        if self.is_idle:
            return False

        logger.info(f"Cancelled from {type(self._phase).__name__}")
        self._release_token()
        self._on_preroll_tick = None
        self._on_preroll_complete = None
        self._on_tick = None
        self._on_complete = None
        self._total_seconds = 0

        self._set_phase(Cancelled())
        self._set_phase(Idle())
        return True
