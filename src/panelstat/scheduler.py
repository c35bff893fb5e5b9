"""
Periodic callback scheduling.

Samplers never own a timer directly; they receive a ``Scheduler`` and
register their tick with it. Every implementation guarantees that the
callbacks of one handle never overlap and that no callback fires after
``cancel()`` for its handle has returned.
"""

import heapq
import itertools
import logging
import threading
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Registers periodic callbacks."""

    def schedule(self, interval_ms: int, fn: Callable[[], None]) -> Any:
        """Call ``fn`` every ``interval_ms`` until cancelled; return a handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Stop calling the callback behind ``handle``. Unknown handles are ignored."""
        ...


class _PeriodicThread:
    """Daemon thread calling one function until its stop event is set."""

    def __init__(self, interval_ms: int, fn: Callable[[], None], name: str) -> None:
        self._interval = interval_ms / 1000
        self._fn = fn
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)

    @property
    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def stop(self, timeout: float | None) -> None:
        self._stop_event.set()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        # Wait first so the first tick lands one interval after scheduling
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self._fn()
            except Exception:
                logger.exception("Scheduled callback %r failed", self._fn)


class ThreadScheduler:
    """
    Scheduler running each handle on its own daemon thread.

    A handle's thread runs its callback and then sleeps for the interval, so
    consecutive ticks of one handle are sequential. Handles are independent:
    a slow callback delays only its own next tick.
    """

    def __init__(self, join_timeout: float | None = 5.0) -> None:
        """
        Initialize the ThreadScheduler.

        Args:
            join_timeout: How long ``cancel`` waits for a running callback
                to finish (seconds).
        """
        self._join_timeout = join_timeout
        self._threads: dict[int, _PeriodicThread] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        """Number of scheduled handles."""
        with self._lock:
            return len(self._threads)

    def schedule(self, interval_ms: int, fn: Callable[[], None]) -> int:
        with self._lock:
            handle = next(self._ids)
            periodic = _PeriodicThread(interval_ms, fn, name=f"panelstat-tick-{handle}")
            self._threads[handle] = periodic
        periodic.start()
        return handle

    def cancel(self, handle: int) -> None:
        with self._lock:
            periodic = self._threads.pop(handle, None)
        if periodic is not None:
            periodic.stop(self._join_timeout)

    def shutdown(self) -> None:
        """Cancel every scheduled handle."""
        with self._lock:
            handles = list(self._threads)
        for handle in handles:
            self.cancel(handle)


class ManualScheduler:
    """
    Deterministic scheduler driven by an explicit clock.

    Nothing fires until ``advance()`` is called, which runs every callback
    that falls due in time order. Intended for tests.
    """

    def __init__(self) -> None:
        self.now_ms = 0
        self._ids = itertools.count(1)
        self._queue: list[tuple[int, int]] = []  # (due_ms, handle)
        self._callbacks: dict[int, tuple[int, Callable[[], None]]] = {}

    @property
    def pending(self) -> int:
        """Number of scheduled handles."""
        return len(self._callbacks)

    def schedule(self, interval_ms: int, fn: Callable[[], None]) -> int:
        handle = next(self._ids)
        interval_ms = max(1, interval_ms)
        self._callbacks[handle] = (interval_ms, fn)
        heapq.heappush(self._queue, (self.now_ms + interval_ms, handle))
        return handle

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def advance(self, ms: int) -> int:
        """
        Move the clock forward and fire due callbacks.

        Returns:
            Number of callbacks fired.
        """
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle = heapq.heappop(self._queue)
            entry = self._callbacks.get(handle)
            if entry is None:
                continue  # cancelled
            interval_ms, fn = entry
            self.now_ms = due
            try:
                fn()
                fired += 1
            finally:
                if handle in self._callbacks:
                    heapq.heappush(self._queue, (due + interval_ms, handle))
        self.now_ms = target
        return fired
