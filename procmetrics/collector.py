"""
procmetrics.collector

Public façade: describe() + collect() over one platform sampler.

Failure semantics:
- describe() and collect() never raise
- a failed OS read drops only the affected metric for that cycle
- a failed facts computation drops the dependent metrics for the process
  lifetime
"""

from __future__ import annotations

import threading
from typing import Optional

from procmetrics.config import Settings
from procmetrics.facts import FactsCache, ProcessFacts
from procmetrics.logging import emit_event
from procmetrics.model import MetricDescription, MetricKind, MetricSample, describe_metrics
from procmetrics.normalize import normalize
from procmetrics.samplers import Sampler, select_sampler
from procmetrics.sink import Sink


class Collector:
    """
    Prometheus style process metrics collector

    Usage:
        sink = PrometheusSink()
        collector = Collector(sink)
        collector.describe()
        collector.collect()   # before every scrape

    Construction picks the sampler for the running platform and raises
    UnsupportedPlatformError when there is none (unless dummy is allowed).
    """

    def __init__(
        self,
        sink: Sink,
        *,
        settings: Optional[Settings] = None,
        sampler: Optional[Sampler] = None,
    ) -> None:
        self._sink = sink
        self._settings = settings if settings is not None else Settings.from_env()
        self._sampler = (
            sampler if sampler is not None else select_sampler(allow_dummy=self._settings.allow_dummy)
        )
        self._facts = FactsCache(self._sampler.load_facts)

        self._describe_lock = threading.Lock()
        self._described = False

        # Highest counter value handed to the sink, per name
        self._publish_lock = threading.Lock()
        self._counter_marks: dict[str, float] = {}

        emit_event(
            "sampler_selected",
            sampler=self._sampler.name,
            cpu_kind=self._settings.cpu_kind.value,
            prefix=self._settings.prefix,
        )

    @property
    def sampler(self) -> Sampler:
        return self._sampler

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def facts(self) -> ProcessFacts:
        return self._facts.ensure()

    def descriptions(self) -> list[MetricDescription]:
        return describe_metrics(self._settings.cpu_kind, self._settings.prefix)

    def describe(self) -> None:
        """
        Register all eight metric descriptions with the sink, once
        """
        with self._describe_lock:
            if self._described:
                return
            try:
                for description in self.descriptions():
                    self._sink.describe(description)
            except Exception as e:
                # Left undescribed; the next call retries
                emit_event(
                    "describe_failed",
                    sampler=self._sampler.name,
                    error_type=type(e).__name__,
                    message=str(e),
                )
                return
            self._described = True

    def sample(self) -> list[MetricSample]:
        """
        One sampling pass without publishing
        """
        facts = self._facts.ensure()
        snapshot = self._sampler.sample(facts)
        return normalize(snapshot, facts, self._settings.cpu_kind, self._settings.prefix)

    def collect(self) -> None:
        """
        Sample the process and record every available metric
        """
        try:
            samples = self.sample()
        except Exception as e:
            emit_event(
                "collect_failed",
                sampler=self._sampler.name,
                error_type=type(e).__name__,
                message=str(e),
            )
            return

        with self._publish_lock:
            for sample in samples:
                self._publish(sample)

    def _publish(self, sample: MetricSample) -> None:
        if sample.kind is MetricKind.COUNTER:
            mark = self._counter_marks.get(sample.name)
            if mark is not None and sample.value < mark:
                # Older reading from a concurrent caller; the sink already has a newer one
                return

        try:
            self._sink.record(sample)
        except Exception as e:
            emit_event(
                "record_failed",
                sampler=self._sampler.name,
                metric=sample.name,
                error_type=type(e).__name__,
                message=str(e),
            )
            return

        if sample.kind is MetricKind.COUNTER:
            self._counter_marks[sample.name] = sample.value
