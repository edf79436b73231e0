"""
procmetrics.sink

Where descriptions and samples go.

- Sink: the two calls a Collector makes
- MemorySink: keeps everything in process (tests, CLI json output)
- PrometheusSink: bridges into a prometheus_client CollectorRegistry

Both sinks keep the first description registered for a name; a later one
with another kind is ignored and reported as metric_kind_conflict.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Iterator, Optional, Protocol

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.metrics_core import CounterMetricFamily, GaugeMetricFamily, Metric

from procmetrics.logging import emit_event
from procmetrics.model import MetricDescription, MetricKind, MetricSample

# Eight metrics a pass: the last 128 passes
DEFAULT_HISTORY_LIMIT = 1024


class Sink(Protocol):
    def describe(self, description: MetricDescription) -> None: ...

    def record(self, sample: MetricSample) -> None: ...


class MemorySink:
    """
    Latest value per name, plus the last `history_limit` recorded samples

    history_limit=0 keeps no history.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 0:
            raise ValueError(f"history_limit must be >= 0, got {history_limit}")
        self._lock = threading.Lock()
        self._descriptions: dict[str, MetricDescription] = {}
        self._values: dict[str, MetricSample] = {}
        self._history: deque[MetricSample] = deque(maxlen=history_limit)

    def describe(self, description: MetricDescription) -> None:
        with self._lock:
            existing = self._descriptions.get(description.name)
            if existing is None:
                self._descriptions[description.name] = description
                return

        if existing.kind != description.kind:
            emit_event(
                "metric_kind_conflict",
                metric=description.name,
                registered_kind=existing.kind.value,
                requested_kind=description.kind.value,
            )

    def record(self, sample: MetricSample) -> None:
        with self._lock:
            self._values[sample.name] = sample
            self._history.append(sample)

    @property
    def descriptions(self) -> dict[str, MetricDescription]:
        with self._lock:
            return dict(self._descriptions)

    @property
    def values(self) -> dict[str, float]:
        with self._lock:
            return {name: sample.value for name, sample in self._values.items()}

    @property
    def samples(self) -> list[MetricSample]:
        """
        Latest sample per name, in first-recorded order
        """
        with self._lock:
            return list(self._values.values())

    @property
    def history(self) -> list[MetricSample]:
        with self._lock:
            return list(self._history)


class _RegistryBridge:
    """
    Custom prometheus_client collector over a MemorySink

    No describe(): the registry then skips name de-duplication for it, which
    keeps it registrable next to other collectors.
    """

    def __init__(self, store: MemorySink) -> None:
        self._store = store

    def collect(self) -> Iterator[Metric]:
        descriptions = self._store.descriptions
        for sample in self._store.samples:
            description = descriptions.get(sample.name)
            kind = description.kind if description else sample.kind
            documentation = description.help if description else sample.name

            if kind is MetricKind.COUNTER:
                yield CounterMetricFamily(sample.name, documentation, value=sample.value)
            else:
                yield GaugeMetricFamily(sample.name, documentation, value=sample.value)


class PrometheusSink:
    """
    Publish through a prometheus_client registry

    A fresh registry is used by default: prometheus_client's global REGISTRY
    already carries its own process_* collector.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        # Scrapes only read the latest values
        self._store = MemorySink(history_limit=0)
        self.registry.register(_RegistryBridge(self._store))

    def describe(self, description: MetricDescription) -> None:
        self._store.describe(description)

    def record(self, sample: MetricSample) -> None:
        self._store.record(sample)

    @property
    def samples(self) -> list[MetricSample]:
        return self._store.samples

    def exposition(self) -> bytes:
        """
        Prometheus text exposition format of the registry
        """
        return generate_latest(self.registry)
