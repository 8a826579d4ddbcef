"""Tick sources for bowl-timer.

Every countdown and fade in the app is driven by a single Clock that
fires callbacks at fixed intervals on one execution context. Two
implementations are provided:

- AsyncioClock: schedules on a running asyncio event loop (the Textual
  app and the headless `sit` command both run on one).
- ManualClock: simulated time advanced explicitly, used for tests and
  for previewing a session without waiting.
"""

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from bowl_timer.app.logging_config import get_logger

logger = get_logger(__name__)

_token_ids = itertools.count(1)


@dataclass(eq=False)
class CancelToken:
    """Handle for one scheduled (possibly repeating) callback.

    Attributes:
        interval_seconds: Seconds between firings
        repeating: Whether the callback re-arms after firing
        callback: Function invoked on each firing
        cancelled: Set once the token has been cancelled
        fire_count: Number of times the callback has fired
    """

    interval_seconds: float
    repeating: bool
    callback: Callable[[], None]
    cancelled: bool = False
    fire_count: int = 0
    id: int = field(default_factory=lambda: next(_token_ids))

    @property
    def active(self) -> bool:
        """Check if the token can still fire."""
        return not self.cancelled


class Clock(Protocol):
    """A repeating, cancelable time source."""

    def schedule(
        self,
        interval_seconds: float,
        repeating: bool,
        callback: Callable[[], None],
    ) -> CancelToken:
        ...

    def cancel(self, token: CancelToken) -> None:
        ...


def _validate_interval(interval_seconds: float) -> None:
    if not interval_seconds > 0:
        raise ValueError(f"Tick interval must be positive, got {interval_seconds}")


class ManualClock:
    """Simulated clock advanced by hand.

    Callbacks fire strictly in due-time order, one at a time, from
    inside advance(). Repeating tokens are re-armed from their original
    schedule so that intervals never drift.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[tuple[float, int, CancelToken]] = []
        self._origins: dict[int, float] = {}
        self._seq = itertools.count()

    @property
    def now(self) -> float:
        """Current simulated time in seconds."""
        return self._now

    @property
    def pending(self) -> int:
        """Number of live scheduled tokens."""
        return sum(1 for _, _, token in self._queue if token.active)

    def schedule(
        self,
        interval_seconds: float,
        repeating: bool,
        callback: Callable[[], None],
    ) -> CancelToken:
        _validate_interval(interval_seconds)
        token = CancelToken(interval_seconds, repeating, callback)
        self._origins[token.id] = self._now
        self._push(token)
        return token

    def cancel(self, token: CancelToken) -> None:
        token.cancelled = True
        self._origins.pop(token.id, None)

    def _push(self, token: CancelToken) -> None:
        due = self._origins[token.id] + token.interval_seconds * (token.fire_count + 1)
        heapq.heappush(self._queue, (due, next(self._seq), token))

    def advance(self, seconds: float) -> None:
        """Move simulated time forward, firing every callback that falls due.

        Args:
            seconds: Amount of simulated time to pass
        """
        if seconds < 0:
            raise ValueError("Cannot advance a clock backwards")

        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, token = heapq.heappop(self._queue)
            if not token.active:
                continue

            self._now = max(self._now, due)
            token.fire_count += 1
            if not token.repeating:
                token.cancelled = True
                self._origins.pop(token.id, None)

            token.callback()

            if token.active:
                self._push(token)

        self._now = max(self._now, target)

    def run_until_idle(self, max_seconds: float = 24 * 3600.0, step: float = 1.0) -> float:
        """Advance in steps until nothing is scheduled.

        Args:
            max_seconds: Upper bound on simulated time to pass
            step: Size of each advance

        Returns:
            Simulated seconds that elapsed
        """
        start = self._now
        while self.pending and self._now - start < max_seconds:
            self.advance(step)
        return self._now - start


class AsyncioClock:
    """Clock backed by an asyncio event loop.

    All callbacks run on the loop thread. A cancelled token is checked
    again right before its callback runs, so cancel() takes effect even
    when the loop already popped the handle.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._handles: dict[int, asyncio.TimerHandle] = {}

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(
        self,
        interval_seconds: float,
        repeating: bool,
        callback: Callable[[], None],
    ) -> CancelToken:
        _validate_interval(interval_seconds)
        token = CancelToken(interval_seconds, repeating, callback)
        origin = self.loop.time()
        self._arm(token, origin)
        return token

    def cancel(self, token: CancelToken) -> None:
        token.cancelled = True
        handle = self._handles.pop(token.id, None)
        if handle is not None:
            handle.cancel()

    def _arm(self, token: CancelToken, origin: float) -> None:
        due = origin + token.interval_seconds * (token.fire_count + 1)
        self._handles[token.id] = self.loop.call_at(due, self._fire, token, origin)

    def _fire(self, token: CancelToken, origin: float) -> None:
        self._handles.pop(token.id, None)
        if not token.active:
            return

        token.fire_count += 1
        if not token.repeating:
            token.cancelled = True

        try:
            token.callback()
        except Exception:
            logger.exception(f"Tick callback failed (token {token.id})")
            self.cancel(token)
            raise

        if token.active:
            self._arm(token, origin)
