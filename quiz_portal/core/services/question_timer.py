"""Per-question countdown bound to an absolute deadline on the event loop clock.

The countdown is scheduled with ``loop.call_at`` so a slow page render or a
missed poll never stretches the limit: remaining time is always
``deadline - now``. Each session owns one ``QuestionTimer`` and the timer keeps
at most one live ``TimerHandle``; starting a new countdown cancels the old one
first.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import Enum, auto
from typing import Any, Protocol

from quiz_portal.core.errors import TimerRace


class LoopClock(Protocol):
    """The slice of ``asyncio.AbstractEventLoop`` the timer relies on."""

    def time(self) -> float: ...

    def call_at(self, when: float, callback: Callable[..., Any], *args: Any) -> Any: ...


class TimerState(Enum):
    RUNNING = auto()
    CANCELLED = auto()
    EXPIRED = auto()


class TimerHandle:
    """One countdown. Fires ``on_expired(handle)`` at most once."""

    def __init__(
        self,
        loop: LoopClock,
        limit_seconds: float,
        on_expired: Callable[["TimerHandle"], None],
    ) -> None:
        self.limit_seconds = limit_seconds
        self._loop = loop
        self._on_expired = on_expired
        self._state = TimerState.RUNNING
        self.started_at = loop.time()
        self.deadline = self.started_at + limit_seconds
        self._stopped_at: float | None = None
        self._scheduled = loop.call_at(self.deadline, self._fire)

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is TimerState.RUNNING

    def remaining_seconds(self) -> float:
        if self._state is TimerState.EXPIRED:
            return 0.0
        now = self._stopped_at if self._stopped_at is not None else self._loop.time()
        return max(0.0, min(self.limit_seconds, self.deadline - now))

    def elapsed_seconds(self) -> float:
        return self.limit_seconds - self.remaining_seconds()

    def cancel(self) -> bool:
        """Stop the countdown; return ``True`` if the cancel beat the deadline.

        A cancel at or after the deadline loses: the pending expiry is delivered
        right here instead, so it still happens exactly once.
        """
        if self._state is TimerState.CANCELLED:
            return True
        if self._state is TimerState.EXPIRED:
            return False
        now = self._loop.time()
        self._scheduled.cancel()
        if now < self.deadline:
            self._state = TimerState.CANCELLED
            self._stopped_at = now
            return True
        self._fire()
        return False

    def discard(self) -> None:
        """Tear down without delivering anything, even if the deadline has passed."""
        if self._state is TimerState.RUNNING:
            self._scheduled.cancel()
            self._state = TimerState.CANCELLED
            self._stopped_at = self._loop.time()

    def _fire(self) -> None:
        if self._state is TimerState.CANCELLED:
            raise TimerRace("Countdown fired after it was cancelled.")
        if self._state is TimerState.EXPIRED:
            return
        self._state = TimerState.EXPIRED
        self._stopped_at = self.deadline
        self._on_expired(self)


class QuestionTimer:
    """Owns the single live countdown of one session."""

    def __init__(self, loop: LoopClock | None = None) -> None:
        self._loop = loop
        self._active: TimerHandle | None = None

    @property
    def active(self) -> TimerHandle | None:
        return self._active

    def start(
        self,
        limit_seconds: float,
        on_expired: Callable[[TimerHandle], None],
    ) -> TimerHandle:
        if limit_seconds <= 0:
            raise ValueError("Time limit must be positive.")
        if self._active is not None:
            self._active.discard()
            self._active = None
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()

        def deliver(handle: TimerHandle) -> None:
            if self._active is handle:
                self._active = None
            on_expired(handle)

        handle = TimerHandle(loop, limit_seconds, deliver)
        self._active = handle
        return handle

    def cancel(self, handle: TimerHandle) -> bool:
        if self._active is handle:
            self._active = None
        return handle.cancel()

    def shutdown(self) -> None:
        if self._active is not None:
            self._active.discard()
            self._active = None
