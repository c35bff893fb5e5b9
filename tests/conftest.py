"""Shared fixtures: a fake procfs tree and scripted metric sources."""

import pytest

from panelstat.errors import SourceUnavailable

NET_DEV = """\
Inter-|   Receive                                                |  Transmit
 face |bytes    packets errs drop fifo frame compressed multicast|bytes    packets errs drop fifo colls carrier compressed
    lo:  123456     100    0    0    0     0          0         0   123456     100    0    0    0     0       0          0
virbr0:    5000      10    0    0    0     0          0         0     6000      12    0    0    0     0       0          0
  eth0: 9876543    7000    1    2    3     4          5         6  1234567    5000    7    8    9    10      11         12
 wlan0:     777       7    0    0    0     0          0         0      888       8    0    0    0     0       0          0
"""

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         2000000 kB
MemAvailable:    6000000 kB
Buffers:          300000 kB
SwapTotal:       4000000 kB
SwapFree:        3000000 kB
HugePages_Total:       0
"""

STAT = """\
cpu  100 20 30 800 50 5 5 0 0 0
cpu0 50 10 15 400 25 2 3 0 0 0
intr 12345
ctxt 6789
"""


@pytest.fixture
def proc_root(tmp_path):
    """A procfs-shaped directory with network, memory and CPU tables."""
    root = tmp_path / "proc"
    (root / "net").mkdir(parents=True)
    (root / "net" / "dev").write_text(NET_DEV)
    (root / "meminfo").write_text(MEMINFO)
    (root / "stat").write_text(STAT)
    return root


@pytest.fixture
def thermal_path(tmp_path):
    """A thermal-zone file reading 47.5 degrees Celsius."""
    path = tmp_path / "temp"
    path.write_text("47500\n")
    return path


class ScriptedSource:
    """Returns queued results in order; an exception instance is raised instead."""

    def __init__(self, results):
        self.results = list(results)
        self.reads = 0

    def read(self):
        self.reads += 1
        if not self.results:
            raise SourceUnavailable("script exhausted")
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def scripted_source():
    """Factory for sources replaying a fixed list of results."""
    return ScriptedSource
