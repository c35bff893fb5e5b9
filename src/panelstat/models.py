"""Data models for panelstat."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class InterfaceCounters:
    """One direction (receive or transmit) of a network-device row."""

    bytes: int
    packets: int
    errs: int
    drop: int
    fifo: int
    frame: int
    compressed: int
    multicast: int


@dataclass(slots=True, frozen=True)
class NetworkSnapshot:
    """Cumulative byte counters of the selected interface."""

    received_bytes: int
    transmitted_bytes: int


@dataclass(slots=True, frozen=True)
class MemorySnapshot:
    """Memory in use, in kilobytes as reported by the kernel."""

    used_kb: int
    swap_used_kb: int


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    """Cumulative CPU ticks plus instantaneous temperature and memory."""

    total_ticks: int
    idle_ticks: int  # idle + iowait
    temperature_c: float
    mem_used_kb: int


@dataclass(slots=True, frozen=True)
class GpuSnapshot:
    """One reading of the GPU query utility."""

    utilization_percent: float
    mem_used_mib: float
    mem_total_mib: float
    temperature_c: float


Snapshot = NetworkSnapshot | MemorySnapshot | CpuSnapshot | GpuSnapshot
