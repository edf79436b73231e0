"""procmetrics.samplers: per-platform sampler selection."""

from __future__ import annotations

import sys
from typing import Optional

from procmetrics.samplers.base import FieldOutcome, RawSnapshot, Sampler, read_field
from procmetrics.samplers.bsd import BsdSampler
from procmetrics.samplers.darwin import DarwinSampler
from procmetrics.samplers.dummy import DummySampler
from procmetrics.samplers.linux import LinuxSampler
from procmetrics.samplers.process import PsutilSampler
from procmetrics.samplers.windows import WindowsSampler

_BSD_PREFIXES = ("freebsd", "openbsd", "netbsd", "dragonfly")


class UnsupportedPlatformError(RuntimeError):
    def __init__(self, platform: str) -> None:
        super().__init__(
            f"no process sampler for platform {platform!r}; "
            "set PROCMETRICS_ALLOW_DUMMY=1 to run without process metrics"
        )
        self.platform = platform


def select_sampler(platform: Optional[str] = None, *, allow_dummy: bool = False) -> Sampler:
    """
    Pick exactly one sampler for the running platform
    """
    platform = platform or sys.platform

    if platform.startswith("linux"):
        return LinuxSampler()
    if platform == "darwin":
        return DarwinSampler()
    if platform == "win32":
        return WindowsSampler()
    if platform.startswith(_BSD_PREFIXES):
        return BsdSampler()
    if allow_dummy:
        return DummySampler()
    raise UnsupportedPlatformError(platform)


__all__ = [
    "BsdSampler",
    "DarwinSampler",
    "DummySampler",
    "FieldOutcome",
    "LinuxSampler",
    "PsutilSampler",
    "RawSnapshot",
    "Sampler",
    "UnsupportedPlatformError",
    "WindowsSampler",
    "read_field",
    "select_sampler",
]
