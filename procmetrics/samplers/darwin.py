"""procmetrics.samplers.darwin: macOS sampler (libproc through psutil)."""

from __future__ import annotations

from procmetrics.samplers.process import PsutilSampler


class DarwinSampler(PsutilSampler):
    name = "darwin"
