"""
procmetrics.samplers.process

psutil-backed sampler shared by the non-Linux platforms
- Process.oneshot(): one cached OS round-trip per pass
- cpu_times(), memory_info(), num_threads(), num_fds(), create_time()
- getrlimit for the descriptor and address-space ceilings

Platform subclasses switch off what their OS cannot report.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import psutil

from procmetrics.facts import ProcessFacts
from procmetrics.samplers.base import RawSnapshot, Sampler, soft_rlimit


def _rlimit_id(name: str) -> Optional[int]:
    try:
        import resource
    except ImportError:
        return None
    return getattr(resource, name, None)


class PsutilSampler(Sampler):
    name = "psutil"

    reports_fds = True
    reports_threads = True
    reports_address_space_limit = True

    def __init__(self, process_factory: Callable[[], Any] = psutil.Process) -> None:
        # Built per pass: a forked child must not sample its parent's pid
        self._process_factory = process_factory

    def _virtual_memory(self, mem: Any) -> int:
        return int(mem.vms)

    def load_facts(self) -> ProcessFacts:
        proc = self._read("process", self._process_factory)
        if proc is None:
            return ProcessFacts()
        return ProcessFacts(
            process_start_unix_seconds=self._read("process_start_unix_seconds", proc.create_time),
        )

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        proc = self._read("process", self._process_factory)
        if proc is None:
            return RawSnapshot()

        threads: Optional[int] = None
        open_fds: Optional[int] = None
        with proc.oneshot():
            times = self._read("cpu_times", proc.cpu_times)
            mem = self._read("memory_info", proc.memory_info)
            if self.reports_threads:
                threads = self._read("threads", proc.num_threads)
            if self.reports_fds:
                open_fds = self._read("open_fds", proc.num_fds)

        max_fds: Optional[int] = None
        nofile = _rlimit_id("RLIMIT_NOFILE")
        if self.reports_fds and nofile is not None:
            max_fds = self._read("max_fds", soft_rlimit, nofile)

        virtual_memory_max: Optional[int] = None
        address_space = _rlimit_id("RLIMIT_AS")
        # OpenBSD has no RLIMIT_AS
        if self.reports_address_space_limit and address_space is not None:
            virtual_memory_max = self._read("virtual_memory_max_bytes", soft_rlimit, address_space)

        return RawSnapshot(
            cpu_seconds_total=times.user + times.system if times is not None else None,
            virtual_memory_bytes=self._virtual_memory(mem) if mem is not None else None,
            virtual_memory_max_bytes=virtual_memory_max,
            resident_memory_bytes=int(mem.rss) if mem is not None else None,
            open_fds=open_fds,
            max_fds=max_fds,
            threads=threads,
        )
