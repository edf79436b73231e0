"""
procmetrics.samplers.dummy

Empty sampler for unsupported platforms: never claims data it cannot produce
"""

from __future__ import annotations

from procmetrics.facts import ProcessFacts
from procmetrics.samplers.base import RawSnapshot, Sampler


class DummySampler(Sampler):
    name = "dummy"

    def load_facts(self) -> ProcessFacts:
        return ProcessFacts()

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        return RawSnapshot()
