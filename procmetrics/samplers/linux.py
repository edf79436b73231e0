"""
procmetrics.samplers.linux

Linux sampler via /proc
- /proc/self/stat: CPU ticks, memory sizes, thread count, start tick
- /proc/self/fd: one entry per open descriptor
- /proc/self/limits: descriptor and address-space ceilings
- /proc/stat: boot time (btime)
- stdlib only
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from procmetrics.facts import ProcessFacts
from procmetrics.samplers.base import RawSnapshot, Sampler

PROC_SELF = Path("/proc/self")
PROC_STAT = Path("/proc/stat")

LIMIT_OPEN_FILES = "Max open files"
LIMIT_ADDRESS_SPACE = "Max address space"


@dataclass(frozen=True)
class ProcStat:
    """
    Fields of /proc/<pid>/stat used here (see proc(5))
    """

    utime: int  # clock ticks
    stime: int  # clock ticks
    num_threads: int
    starttime: int  # clock ticks since boot
    vsize: int  # bytes
    rss: int  # pages


def parse_proc_stat(contents: str) -> ProcStat:
    """
    Parse /proc/<pid>/stat

    comm (field 2) is wrapped in parentheses and may itself contain spaces
    or parentheses; split after the last ')'
    """
    rparen = contents.rindex(")")
    # rest[0] is field 3 (state)
    rest = contents[rparen + 1 :].split()
    if len(rest) < 22:
        raise ValueError(f"truncated stat record: {len(rest) + 2} fields")

    return ProcStat(
        utime=int(rest[11]),
        stime=int(rest[12]),
        num_threads=int(rest[17]),
        starttime=int(rest[19]),
        vsize=int(rest[20]),
        rss=int(rest[21]),
    )


def parse_boot_time(contents: str) -> float:
    for line in contents.splitlines():
        if line.startswith("btime "):
            return float(line.split()[1])
    raise ValueError("btime missing in /proc/stat")


def parse_limits(contents: str) -> dict[str, tuple[str, str]]:
    """
    Parse /proc/<pid>/limits into {limit name: (soft, hard)}

    Columns are separated by runs of spaces; names contain single spaces
    """
    limits: dict[str, tuple[str, str]] = {}
    for line in contents.splitlines()[1:]:
        parts = re.split(r"\s{2,}", line.strip())
        if len(parts) < 3:
            continue
        limits[parts[0]] = (parts[1], parts[2])
    return limits


def limit_value(raw: str) -> int:
    """
    'unlimited' -> 0
    """
    if raw == "unlimited":
        return 0
    return int(raw)


def soft_limit(limits: dict[str, tuple[str, str]], name: str) -> int:
    soft, _hard = limits[name]
    return limit_value(soft)


def _positive_sysconf(sysconf: Callable[[str], int], name: str) -> int:
    value = sysconf(name)
    if value <= 0:
        raise OSError(f"sysconf({name}) returned {value}")
    return value


class LinuxSampler(Sampler):
    name = "linux"

    def __init__(
        self,
        proc_self: Path = PROC_SELF,
        proc_stat: Path = PROC_STAT,
        sysconf: Callable[[str], int] = os.sysconf,
    ) -> None:
        self._proc_self = proc_self
        self._proc_stat = proc_stat
        self._sysconf = sysconf

    def _stat(self) -> ProcStat:
        return parse_proc_stat((self._proc_self / "stat").read_text(encoding="utf-8"))

    def _boot_time(self) -> float:
        return parse_boot_time(self._proc_stat.read_text(encoding="utf-8"))

    def _soft_limit(self, name: str) -> int:
        limits = parse_limits((self._proc_self / "limits").read_text(encoding="utf-8"))
        return soft_limit(limits, name)

    def _count_fds(self) -> int:
        return len(os.listdir(self._proc_self / "fd"))

    def load_facts(self) -> ProcessFacts:
        ticks = self._read("clock_ticks_per_second", _positive_sysconf, self._sysconf, "SC_CLK_TCK")
        page_size = self._read("page_size_bytes", _positive_sysconf, self._sysconf, "SC_PAGE_SIZE")
        boot_time = self._read("system_boot_unix_seconds", self._boot_time)
        stat = self._read("stat", self._stat)

        start_time: Optional[float] = None
        if boot_time is not None and ticks and stat is not None:
            start_time = boot_time + stat.starttime / ticks

        return ProcessFacts(
            clock_ticks_per_second=ticks,
            page_size_bytes=page_size,
            process_start_unix_seconds=start_time,
            system_boot_unix_seconds=boot_time,
        )

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        cpu_seconds: Optional[float] = None
        virtual_memory: Optional[int] = None
        resident_memory: Optional[int] = None
        threads: Optional[int] = None

        stat = self._read("stat", self._stat)
        if stat is not None:
            if facts.clock_ticks_per_second:
                cpu_seconds = (stat.utime + stat.stime) / facts.clock_ticks_per_second
            if facts.page_size_bytes:
                resident_memory = stat.rss * facts.page_size_bytes
            virtual_memory = stat.vsize
            threads = stat.num_threads

        # Each limit is read on its own: one bad line drops one metric
        max_fds = self._read("max_fds", self._soft_limit, LIMIT_OPEN_FILES)
        virtual_memory_max = self._read(
            "virtual_memory_max_bytes", self._soft_limit, LIMIT_ADDRESS_SPACE
        )

        return RawSnapshot(
            cpu_seconds_total=cpu_seconds,
            virtual_memory_bytes=virtual_memory,
            virtual_memory_max_bytes=virtual_memory_max,
            resident_memory_bytes=resident_memory,
            open_fds=self._read("open_fds", self._count_fds),
            max_fds=max_fds,
            threads=threads,
        )
