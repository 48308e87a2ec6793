"""
Timer scheduling for the playback container.

Everything in the container runs on a single scheduling context. In production
that is the asyncio event loop, which already has the shape of the Scheduler
protocol (``time()`` and ``call_later()``). Tests and the simulator use
ManualScheduler, a virtual clock that only moves when told to.
"""

import heapq
import itertools
from typing import Any, Callable, Optional, Protocol


class TimerHandle(Protocol):
    """Cancellable handle returned by Scheduler.call_later."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Single-threaded timer source (asyncio.AbstractEventLoop satisfies this)."""

    def time(self) -> float: ...

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle: ...


def cancel_handle(handle: Optional[TimerHandle]) -> None:
    """Cancel a timer handle if one is set. Safe on already-cancelled handles."""
    if handle is not None:
        handle.cancel()


class ManualTimerHandle:
    """Timer handle for ManualScheduler."""

    __slots__ = ("when", "_callback", "_args", "_cancelled")

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self._callback = callback
        self._args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        self._callback(*self._args)


class ManualScheduler:
    """Deterministic virtual-clock scheduler.

    Callbacks run only inside advance()/advance_to(), in due-time order.
    Callbacks scheduled while advancing run in the same pass if they fall
    due before the target time, so repeating timers behave like they do on
    a real loop.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, ManualTimerHandle]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> ManualTimerHandle:
        handle = ManualTimerHandle(self._now + max(0.0, delay), callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward by ``seconds``, running every due callback."""
        self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> None:
        """Move the clock to ``target``, running every due callback."""
        # Tolerance keeps 0.3 + 0.1 + 0.1 style sums from missing their tick
        epsilon = 1e-9
        while self._queue and self._queue[0][0] <= target + epsilon:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = max(self._now, when)
            handle._run()
        self._now = max(self._now, target)

    @property
    def pending(self) -> int:
        """Number of scheduled, not yet cancelled callbacks."""
        return sum(1 for _, _, handle in self._queue if not handle.cancelled())
