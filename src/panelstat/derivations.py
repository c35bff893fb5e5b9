"""
Window summaries.

Each metric kind has a ``summarize_*`` function turning the window into
numbers and a ``render_*`` function turning those numbers into display
lines. The ``derive_*`` functions combine the two and are what a sampler
calls on every tick; they return None while the window cannot yet produce
a summary.

Counter resets are not detected: a negative delta flows through unchanged.
"""

from collections.abc import Sequence
from itertools import pairwise

from panelstat.formatting import format_bytes, format_percent, format_temperature
from panelstat.models import CpuSnapshot, GpuSnapshot, MemorySnapshot, NetworkSnapshot

KB = 1024
MIB = 1024 * 1024


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def summarize_network(
    window: Sequence[NetworkSnapshot], sample_rate_ms: int
) -> tuple[float, float] | None:
    """Return received and transmitted bytes/sec over the window."""
    if len(window) < 2:
        return None

    rx = 0
    tx = 0
    for previous, current in pairwise(window):
        rx += current.received_bytes - previous.received_bytes
        tx += current.transmitted_bytes - previous.transmitted_bytes

    seconds = (len(window) - 1) * sample_rate_ms / 1000
    return rx / seconds, tx / seconds


def render_network(rx_per_sec: float, tx_per_sec: float) -> str:
    return "\n".join([f"↓{format_bytes(rx_per_sec)}/s", f"↑{format_bytes(tx_per_sec)}/s"])


def derive_network(window: Sequence[NetworkSnapshot], sample_rate_ms: int) -> str | None:
    rates = summarize_network(window, sample_rate_ms)
    return render_network(*rates) if rates is not None else None


def summarize_memory(window: Sequence[MemorySnapshot]) -> tuple[float, float] | None:
    """Return mean used memory and mean used swap in bytes."""
    if not window:
        return None
    used = _mean([snap.used_kb for snap in window]) * KB
    swap = _mean([snap.swap_used_kb for snap in window]) * KB
    return used, swap


def render_memory(used_bytes: float, swap_bytes: float) -> str:
    return "\n".join([format_bytes(used_bytes), format_bytes(swap_bytes)])


def derive_memory(window: Sequence[MemorySnapshot], sample_rate_ms: int) -> str | None:
    summary = summarize_memory(window)
    return render_memory(*summary) if summary is not None else None


def summarize_cpu(window: Sequence[CpuSnapshot]) -> tuple[float, float, float] | None:
    """
    Return CPU usage percent, mean temperature and mean memory in bytes.

    Usage compares only the oldest and newest snapshot, so it covers the
    whole window rather than averaging per-tick percentages.
    """
    if len(window) < 2:
        return None

    oldest, newest = window[0], window[-1]
    total = newest.total_ticks - oldest.total_ticks
    idle = newest.idle_ticks - oldest.idle_ticks
    usage = (total - idle) / total * 100 if total else 0.0

    temperature = _mean([snap.temperature_c for snap in window])
    memory = _mean([snap.mem_used_kb for snap in window]) * KB
    return usage, temperature, memory


def render_cpu(usage: float, temperature: float, memory_bytes: float) -> str:
    return "\n".join(
        [format_percent(usage), format_temperature(temperature), format_bytes(memory_bytes)]
    )


def derive_cpu(window: Sequence[CpuSnapshot], sample_rate_ms: int) -> str | None:
    summary = summarize_cpu(window)
    return render_cpu(*summary) if summary is not None else None


def summarize_gpu(window: Sequence[GpuSnapshot]) -> tuple[float, float, float, float] | None:
    """Return mean utilization, memory used/total in bytes and temperature."""
    if not window:
        return None
    return (
        _mean([snap.utilization_percent for snap in window]),
        _mean([snap.mem_used_mib for snap in window]) * MIB,
        _mean([snap.mem_total_mib for snap in window]) * MIB,
        _mean([snap.temperature_c for snap in window]),
    )


def render_gpu(utilization: float, used_bytes: float, total_bytes: float, temperature: float) -> str:
    return "\n".join(
        [
            format_percent(utilization),
            f"{format_bytes(used_bytes)}/{format_bytes(total_bytes)}",
            format_temperature(temperature),
        ]
    )


def derive_gpu(window: Sequence[GpuSnapshot], sample_rate_ms: int) -> str | None:
    summary = summarize_gpu(window)
    return render_gpu(*summary) if summary is not None else None
