"""
Metric sources.

Each source produces one snapshot per call to ``read()`` by parsing a
procfs table or querying a helper process. Failures are raised as
``SourceError`` subclasses and never carry partial data.
"""

import logging
import re
import subprocess
from pathlib import Path

from panelstat.errors import NoEligibleInterface, ParseError, SourceUnavailable
from panelstat.models import (
    CpuSnapshot,
    GpuSnapshot,
    InterfaceCounters,
    MemorySnapshot,
    NetworkSnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = "/proc"
DEFAULT_THERMAL_PATH = "/sys/class/thermal/thermal_zone0/temp"

COUNTER_FIELDS = [
    "bytes",
    "packets",
    "errs",
    "drop",
    "fifo",
    "frame",
    "compressed",
    "multicast",
]

INTERFACE_DENYLIST = [
    re.compile(pattern)
    for pattern in [
        r"^lo",
        r"^ifb[0-9]+",
        r"^lxdbr[0-9]+",
        r"^virbr[0-9]+",
        r"^br[0-9]+",
        r"^vnet[0-9]+",
        r"^tun[0-9]+",
        r"^tap[0-9]+",
    ]
]

GPU_QUERY_COMMAND = [
    "nvidia-smi",
    "--query-gpu=temperature.gpu,utilization.gpu,memory.used,memory.total",
    "--format=csv,noheader,nounits",
]


def _read_text(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as exc:
        raise SourceUnavailable(f"cannot read {path}: {exc}") from exc


# ----------------------------------------------------------------------
# Network
# ----------------------------------------------------------------------


def parse_net_dev(text: str) -> dict[str, tuple[InterfaceCounters, InterfaceCounters]]:
    """
    Parse the network-device counter table.

    The first two lines are headers. Every following ``name: fields`` line
    yields ``(received, transmitted)`` counters, built from columns 0-7 and
    8-15 respectively. Interface order is preserved.

    Raises:
        ParseError: A row has too few or non-integer fields.
    """
    width = len(COUNTER_FIELDS)
    result: dict[str, tuple[InterfaceCounters, InterfaceCounters]] = {}

    for line in text.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        iface = name.strip()
        try:
            cols = [int(col) for col in rest.split()]
        except ValueError as exc:
            raise ParseError(f"non-numeric counter for {iface!r}") from exc
        if len(cols) < 2 * width:
            raise ParseError(f"expected {2 * width} counters for {iface!r}, got {len(cols)}")
        result[iface] = (
            InterfaceCounters(*cols[:width]),
            InterfaceCounters(*cols[width : 2 * width]),
        )

    return result


def is_denylisted(iface: str) -> bool:
    """Return True for loopback and virtual interfaces."""
    return any(pattern.match(iface) for pattern in INTERFACE_DENYLIST)


def select_interface(
    table: dict[str, tuple[InterfaceCounters, InterfaceCounters]],
) -> tuple[str, tuple[InterfaceCounters, InterfaceCounters]] | None:
    """Return the first interface that is not denylisted, or None."""
    for iface, counters in table.items():
        if not is_denylisted(iface):
            return iface, counters
    return None


class NetworkSource:
    """Byte counters of the first physical network interface."""

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT) -> None:
        self._path = Path(proc_root) / "net" / "dev"
        self.interface: str | None = None

    def read(self) -> NetworkSnapshot:
        selected = select_interface(parse_net_dev(_read_text(self._path)))
        if selected is None:
            raise NoEligibleInterface(f"no eligible interface in {self._path}")

        iface, (received, transmitted) = selected
        if iface != self.interface:
            logger.debug("Sampling network interface %s", iface)
            self.interface = iface
        return NetworkSnapshot(
            received_bytes=received.bytes,
            transmitted_bytes=transmitted.bytes,
        )


# ----------------------------------------------------------------------
# Memory
# ----------------------------------------------------------------------


def parse_meminfo(text: str) -> dict[str, int]:
    """Parse ``key: value [unit]`` lines into a dict of integer values."""
    result: dict[str, int] = {}
    for line in text.splitlines():
        name, sep, value_unit = line.partition(":")
        fields = value_unit.split()
        if not sep or not name.strip() or not fields:
            continue
        try:
            result[name.strip()] = int(fields[0])
        except ValueError as exc:
            raise ParseError(f"non-numeric value for {name.strip()!r}") from exc
    return result


class MemorySource:
    """Used memory and swap, in kilobytes."""

    def __init__(self, proc_root: str = DEFAULT_PROC_ROOT) -> None:
        self._path = Path(proc_root) / "meminfo"

    def read(self) -> MemorySnapshot:
        stats = parse_meminfo(_read_text(self._path))
        try:
            return MemorySnapshot(
                used_kb=stats["MemTotal"] - stats["MemAvailable"],
                swap_used_kb=stats["SwapTotal"] - stats["SwapFree"],
            )
        except KeyError as exc:
            raise ParseError(f"{self._path} is missing {exc.args[0]}") from exc


# ----------------------------------------------------------------------
# CPU
# ----------------------------------------------------------------------


def parse_cpu_line(text: str) -> tuple[int, int]:
    """
    Parse the aggregate line of the CPU-tick table.

    Fields after the label are user, nice, system, idle, iowait, irq,
    softirq, steal, guest, guest_nice.

    Returns:
        ``(total, idle)`` where total sums every field and idle is
        idle + iowait.
    """
    lines = text.splitlines()
    if not lines:
        raise ParseError("empty CPU table")
    try:
        values = [int(field) for field in lines[0].split()[1:]]
    except ValueError as exc:
        raise ParseError(f"malformed CPU line: {lines[0]!r}") from exc
    if len(values) < 5:
        raise ParseError(f"expected at least 5 CPU fields, got {len(values)}")
    return sum(values), values[3] + values[4]


def read_temperature(path: Path) -> float:
    """Read a millidegree thermal-zone value and return degrees Celsius."""
    text = _read_text(path)
    try:
        return int(text.split()[0]) / 1000
    except (IndexError, ValueError) as exc:
        raise ParseError(f"malformed temperature in {path}: {text!r}") from exc


class CpuSource:
    """CPU ticks, package temperature and memory in use."""

    def __init__(
        self,
        proc_root: str = DEFAULT_PROC_ROOT,
        thermal_path: str = DEFAULT_THERMAL_PATH,
    ) -> None:
        self._stat_path = Path(proc_root) / "stat"
        self._thermal_path = Path(thermal_path)
        self._memory = MemorySource(proc_root)

    def read(self) -> CpuSnapshot:
        total, idle = parse_cpu_line(_read_text(self._stat_path))
        return CpuSnapshot(
            total_ticks=total,
            idle_ticks=idle,
            temperature_c=read_temperature(self._thermal_path),
            mem_used_kb=self._memory.read().used_kb,
        )


# ----------------------------------------------------------------------
# GPU
# ----------------------------------------------------------------------


def parse_gpu_line(text: str) -> GpuSnapshot:
    """Parse ``temperature, utilization, memory.used, memory.total``."""
    lines = text.strip().splitlines()
    if not lines:
        raise ParseError("empty GPU query output")
    try:
        temperature, utilization, mem_used, mem_total = (
            float(field) for field in lines[0].split(",")
        )
    except ValueError as exc:
        raise ParseError(f"malformed GPU query output: {lines[0]!r}") from exc
    return GpuSnapshot(
        utilization_percent=utilization,
        mem_used_mib=mem_used,
        mem_total_mib=mem_total,
        temperature_c=temperature,
    )


class GpuSource:
    """
    Utilization, memory and temperature of the first GPU.

    Queries an external utility each read. A hang is bounded by ``timeout``
    and reported like any other unavailable source.
    """

    def __init__(self, command: list[str] | None = None, timeout: float = 2.0) -> None:
        self._command = command or GPU_QUERY_COMMAND
        self._timeout = timeout

    def read(self) -> GpuSnapshot:
        try:
            proc = subprocess.run(
                self._command,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=True,
            )
        except FileNotFoundError as exc:
            raise SourceUnavailable(f"{self._command[0]} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise SourceUnavailable(f"{self._command[0]} timed out after {self._timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            raise SourceUnavailable(
                f"{self._command[0]} exited with status {exc.returncode}"
            ) from exc
        except OSError as exc:
            raise SourceUnavailable(f"cannot run {self._command[0]}: {exc}") from exc

        return parse_gpu_line(proc.stdout)
