"""
procmetrics.samplers.windows

Windows sampler (GetProcessTimes / GetProcessMemoryInfo through psutil)
- virtual memory is PrivateUsage (commit charge)
- descriptor counts, address-space ceiling and thread count are not
  reported on Windows; those fields are always absent
"""

from __future__ import annotations

from typing import Any

from procmetrics.samplers.process import PsutilSampler


class WindowsSampler(PsutilSampler):
    name = "windows"

    reports_fds = False
    reports_threads = False
    reports_address_space_limit = False

    def _virtual_memory(self, mem: Any) -> int:
        return int(getattr(mem, "private", mem.vms))
