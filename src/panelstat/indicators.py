"""The set of samplers behind a panel, and its enable/disable lifecycle."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from panelstat.config import Settings
from panelstat.derivations import derive_cpu, derive_gpu, derive_memory, derive_network
from panelstat.sampler import Derivation, MetricSource, RollingSampler
from panelstat.scheduler import Scheduler
from panelstat.sources import CpuSource, GpuSource, MemorySource, NetworkSource

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MetricKind:
    """How to build and summarize one indicator."""

    name: str
    source_factory: Callable[[], MetricSource[Any]]
    derive: Derivation
    baseline: bool = False  # delta-based kinds keep one extra snapshot
    sample_rate_ms: int | None = None  # None uses Settings.sample_rate_ms


def default_kinds(settings: Settings) -> list[MetricKind]:
    """Memory, CPU, network and GPU indicators, in panel order."""
    return [
        MetricKind("memory", MemorySource, derive_memory),
        MetricKind("cpu", CpuSource, derive_cpu, baseline=True),
        MetricKind("network", NetworkSource, derive_network, baseline=True),
        MetricKind("gpu", GpuSource, derive_gpu, sample_rate_ms=settings.gpu_sample_rate_ms),
    ]


class Indicators:
    """
    One sampler per metric kind, all driven by a shared scheduler.

    Samplers share no state; each ticks on its own handle.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        settings: Settings | None = None,
        kinds: list[MetricKind] | None = None,
    ) -> None:
        self._scheduler = scheduler
        self._settings = settings or Settings()
        self._kinds = kinds if kinds is not None else default_kinds(self._settings)
        self._samplers: dict[str, RollingSampler] = {}

    @property
    def enabled(self) -> bool:
        return bool(self._samplers)

    @property
    def samplers(self) -> dict[str, RollingSampler]:
        return dict(self._samplers)

    @property
    def names(self) -> list[str]:
        return [kind.name for kind in self._kinds]

    def enable(self) -> None:
        """Create and start one sampler per metric kind."""
        if self.enabled:
            return

        for kind in self._kinds:
            sampler = RollingSampler(
                source=kind.source_factory(),
                derive=kind.derive,
                scheduler=self._scheduler,
                sample_rate_ms=kind.sample_rate_ms or self._settings.sample_rate_ms,
                window_size=self._settings.window_size,
                baseline=kind.baseline,
                name=kind.name,
            )
            sampler.start()
            self._samplers[kind.name] = sampler
        logger.info("Enabled %d indicators", len(self._samplers))

    def disable(self) -> None:
        """Stop, then release, every active sampler."""
        for sampler in list(self._samplers.values()):
            sampler.stop()
        self._samplers.clear()
        logger.info("Disabled indicators")

    def texts(self) -> dict[str, str]:
        """Current display text of every active sampler, by kind name."""
        return {name: sampler.current_text() for name, sampler in self._samplers.items()}
