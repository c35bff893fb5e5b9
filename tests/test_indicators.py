"""Tests for the Indicators lifecycle."""

from panelstat.config import Settings
from panelstat.derivations import derive_memory
from panelstat.errors import SourceUnavailable
from panelstat.indicators import Indicators, MetricKind, default_kinds
from panelstat.models import MemorySnapshot
from panelstat.sampler import PLACEHOLDER
from panelstat.scheduler import ManualScheduler
from panelstat.sources import CpuSource, GpuSource, MemorySource, NetworkSource


class FixedMemorySource:
    def read(self):
        return MemorySnapshot(used_kb=4096, swap_used_kb=1024)


class BrokenSource:
    def read(self):
        raise SourceUnavailable("unplugged")


def memory_kind(name: str = "memory") -> MetricKind:
    return MetricKind(name, FixedMemorySource, derive_memory)


class TestDefaultKinds:
    """Tests for the built-in metric kinds."""

    def test_default_kinds(self):
        """Test memory, CPU, network and GPU are built in that order."""
        kinds = default_kinds(Settings())

        assert [kind.name for kind in kinds] == ["memory", "cpu", "network", "gpu"]
        assert [kind.source_factory for kind in kinds] == [
            MemorySource,
            CpuSource,
            NetworkSource,
            GpuSource,
        ]

    def test_delta_kinds_keep_a_baseline(self):
        """Test CPU and network keep one extra snapshot."""
        baselines = {kind.name: kind.baseline for kind in default_kinds(Settings())}

        assert baselines == {"memory": False, "cpu": True, "network": True, "gpu": False}

    def test_gpu_uses_its_own_rate(self):
        """Test the GPU kind samples at the GPU rate."""
        kinds = {kind.name: kind for kind in default_kinds(Settings(gpu_sample_rate_ms=2500))}

        assert kinds["gpu"].sample_rate_ms == 2500
        assert kinds["memory"].sample_rate_ms is None


class TestIndicators:
    """Tests for enable/disable."""

    def test_enable_starts_one_sampler_per_kind(self):
        """Test enable creates and starts a sampler for each kind."""
        scheduler = ManualScheduler()
        indicators = Indicators(scheduler, Settings(sample_rate_ms=100), [memory_kind("a"), memory_kind("b")])

        indicators.enable()

        assert indicators.enabled
        assert set(indicators.samplers) == {"a", "b"}
        assert all(sampler.is_running for sampler in indicators.samplers.values())
        assert scheduler.pending == 2

    def test_enable_is_idempotent(self):
        """Test enabling twice does not create duplicate samplers."""
        scheduler = ManualScheduler()
        indicators = Indicators(scheduler, Settings(), [memory_kind()])

        indicators.enable()
        indicators.enable()

        assert scheduler.pending == 1

    def test_texts(self):
        """Test texts reports every sampler's current text by name."""
        scheduler = ManualScheduler()
        indicators = Indicators(scheduler, Settings(sample_rate_ms=100), [memory_kind()])
        indicators.enable()
        assert indicators.texts() == {"memory": PLACEHOLDER}

        scheduler.advance(100)

        assert indicators.texts() == {"memory": "4MB\n1MB"}

    def test_disable_stops_then_releases(self):
        """Test disable stops every sampler and forgets it."""
        scheduler = ManualScheduler()
        indicators = Indicators(scheduler, Settings(), [memory_kind("a"), memory_kind("b")])
        indicators.enable()
        samplers = list(indicators.samplers.values())

        indicators.disable()

        assert not indicators.enabled
        assert indicators.texts() == {}
        assert not any(sampler.is_running for sampler in samplers)
        assert scheduler.pending == 0

    def test_disable_twice(self):
        """Test disabling an already disabled set is a no-op."""
        indicators = Indicators(ManualScheduler(), Settings(), [memory_kind()])
        indicators.disable()
        indicators.enable()
        indicators.disable()
        indicators.disable()
        assert not indicators.enabled

    def test_window_size_setting_applies(self):
        """Test the configured window size reaches every sampler."""
        indicators = Indicators(ManualScheduler(), Settings(window_size=4), [memory_kind()])
        indicators.enable()

        assert indicators.samplers["memory"].capacity == 4

    def test_samplers_are_isolated(self):
        """Test one failing sampler does not stop the others from updating."""
        scheduler = ManualScheduler()
        kinds = [MetricKind("broken", BrokenSource, derive_memory), memory_kind()]
        indicators = Indicators(scheduler, Settings(sample_rate_ms=100), kinds)
        indicators.enable()

        scheduler.advance(200)

        assert indicators.texts()["memory"] == "4MB\n1MB"
        assert indicators.texts()["broken"] == PLACEHOLDER
        assert indicators.samplers["broken"].is_running
