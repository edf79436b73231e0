"""
procmetrics.samplers.bsd

FreeBSD / OpenBSD / NetBSD / DragonFly sampler (kinfo_proc through psutil)
- OpenBSD has no RLIMIT_AS: process_virtual_memory_max_bytes stays absent
"""

from __future__ import annotations

from procmetrics.samplers.process import PsutilSampler


class BsdSampler(PsutilSampler):
    name = "bsd"
