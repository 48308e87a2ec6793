"""
Restartable idle countdown.

Every poke() restarts the countdown; stop() disarms it. Subscribers are
notified once per completed countdown and decide themselves whether to poke
again.
"""

from typing import Callable, Optional

from loguru import logger

from playback_container.core.scheduler import Scheduler, TimerHandle, cancel_handle


class PokeIntervalTimer:
    """Single-shot-per-poke countdown used to auto-hide the overlay."""

    def __init__(self, scheduler: Scheduler, interval: float = 5.0, name: str = "idle") -> None:
        self._scheduler = scheduler
        self.interval = interval
        self._name = name
        self._handle: Optional[TimerHandle] = None
        self._subscribers: list[Callable[[], None]] = []

    @property
    def interval(self) -> float:
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"Timer interval must be positive, got {value}")
        self._interval = value

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a fire callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def poke(self) -> None:
        """(Re)start the countdown from the full interval."""
        cancel_handle(self._handle)
        self._handle = self._scheduler.call_later(self._interval, self._fire)

    def stop(self) -> None:
        """Cancel any in-flight countdown without firing."""
        if self._handle is not None:
            logger.debug(f"{self._name} timer stopped")
        cancel_handle(self._handle)
        self._handle = None

    def _fire(self) -> None:
        self._handle = None
        logger.debug(f"{self._name} timer fired after {self._interval}s")
        for callback in list(self._subscribers):
            callback()
