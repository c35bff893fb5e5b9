"""Rolling sampler: one metric source, one bounded window, one timer."""

import logging
from collections import deque
from collections.abc import Callable, Iterator, Sequence
from enum import Enum
from typing import Any, Protocol, TypeVar, overload

from panelstat.errors import SourceError
from panelstat.scheduler import Scheduler

logger = logging.getLogger(__name__)

PLACEHOLDER = "---"

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class MetricSource(Protocol[T_co]):
    """Produces one snapshot per read, or None when there is nothing to sample."""

    def read(self) -> T_co | None: ...


Derivation = Callable[["Window[Any]", int], "str | None"]


def window_capacity(sample_rate_ms: int, window_size: int | None = None) -> int:
    """Number of snapshots covering one second at the given rate, at least 1."""
    if window_size is not None:
        return max(1, window_size)
    return max(1, 1000 // max(1, sample_rate_ms))


class Window(Sequence[T]):
    """Fixed-capacity FIFO of snapshots, oldest first."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"window capacity must be at least 1, got {capacity}")
        self._items: deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    @property
    def full(self) -> bool:
        return len(self._items) == self.capacity

    def push(self, item: T) -> None:
        """Append an item, evicting the oldest one when full."""
        self._items.append(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index: int | slice) -> T | list[T]:
        if isinstance(index, slice):
            return list(self._items)[index]
        return self._items[index]

    def __repr__(self) -> str:
        return f"Window(capacity={self.capacity}, items={list(self._items)!r})"


class SamplerState(Enum):
    """Lifecycle states of a sampler."""

    STOPPED = "stopped"
    RUNNING = "running"


class RollingSampler:
    """
    Samples a source on a fixed period into a rolling window.

    Every tick reads the source, pushes the snapshot and re-derives the
    display text. A tick whose read fails leaves both the window and the
    text untouched. The tick registered with the scheduler is the only
    writer of the window.
    """

    def __init__(
        self,
        source: MetricSource[Any],
        derive: Derivation,
        scheduler: Scheduler,
        sample_rate_ms: int,
        window_size: int | None = None,
        baseline: bool = False,
        name: str = "sampler",
    ) -> None:
        """
        Initialize the RollingSampler.

        Args:
            source: Object whose ``read()`` returns one snapshot.
            derive: Turns the window and sample rate into display text, or
                None when the window is not yet sufficient.
            scheduler: Registers the periodic tick.
            sample_rate_ms: Tick period in milliseconds.
            window_size: Window capacity; derived from the rate when None.
            baseline: Keep one extra snapshot so delta-based derivations
                see a full window of deltas.
            name: Label used in log messages.
        """
        self.name = name
        self._source = source
        self._derive = derive
        self._scheduler = scheduler
        self._sample_rate_ms = max(1, sample_rate_ms)
        self._window_size = window_size
        self._baseline = baseline
        self._state = SamplerState.STOPPED
        self._handle: Any = None
        self._window: Window[Any] | None = None
        self._text = PLACEHOLDER
        self._ticking = False

    @property
    def sample_rate_ms(self) -> int:
        return self._sample_rate_ms

    @property
    def state(self) -> SamplerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SamplerState.RUNNING

    @property
    def window(self) -> tuple[Any, ...]:
        """Copy of the current window contents, oldest first."""
        return tuple(self._window) if self._window is not None else ()

    @property
    def capacity(self) -> int:
        capacity = window_capacity(self._sample_rate_ms, self._window_size)
        return capacity + 1 if self._baseline else capacity

    def start(self) -> None:
        """Allocate an empty window and register the periodic tick."""
        if self.is_running:
            return

        self._window = Window(self.capacity)
        self._text = PLACEHOLDER
        self._state = SamplerState.RUNNING
        self._handle = self._scheduler.schedule(self._sample_rate_ms, self.tick)
        logger.debug(
            "Started %s every %dms with window of %d",
            self.name,
            self._sample_rate_ms,
            self.capacity,
        )

    def stop(self) -> None:
        """Cancel the tick and discard the window. Safe to call repeatedly."""
        if not self.is_running:
            return

        self._state = SamplerState.STOPPED
        handle, self._handle = self._handle, None
        self._scheduler.cancel(handle)
        self._window = None
        logger.debug("Stopped %s", self.name)

    def current_text(self) -> str:
        """Return the most recent display text."""
        return self._text

    def tick(self) -> None:
        """Take one sample and refresh the display text."""
        if not self.is_running or self._ticking:
            return

        self._ticking = True
        try:
            self._sample()
        finally:
            self._ticking = False

    def _sample(self) -> None:
        try:
            snapshot = self._source.read()
        except SourceError as exc:
            logger.debug("Skipping %s tick: %s", self.name, exc)
            return
        if snapshot is None:
            return

        window = self._window
        if window is None:
            return  # stopped while reading
        window.push(snapshot)

        text = self._derive(window, self._sample_rate_ms)
        if text is not None:
            self._text = text
