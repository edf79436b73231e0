"""
procmetrics.model

Metric vocabulary + deterministic serialization primitives.

Design goals:
- Fixed canonical metric set (Prometheus process-metrics convention)
- Explicit structure (no accidental serialization via __dict__)
- Deterministic ordering: publication order is the table order below
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class MetricKind(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


class Unit(str, Enum):
    SECONDS = "seconds"
    BYTES = "bytes"
    COUNT = "count"


@dataclass(frozen=True)
class CanonicalMetric:
    """
    One row of the canonical metric table
    - key: RawSnapshot / ProcessFacts field the value comes from
    - name: metric name without prefix
    """

    key: str
    name: str
    help: str
    kind: MetricKind
    unit: Unit


CPU_SECONDS_TOTAL = "cpu_seconds_total"
START_TIME_SECONDS = "start_time_seconds"

CANONICAL_METRICS: tuple[CanonicalMetric, ...] = (
    CanonicalMetric(
        CPU_SECONDS_TOTAL,
        "process_cpu_seconds_total",
        "Total user and system CPU time spent in seconds.",
        MetricKind.COUNTER,
        Unit.SECONDS,
    ),
    CanonicalMetric(
        "open_fds",
        "process_open_fds",
        "Number of open file descriptors.",
        MetricKind.GAUGE,
        Unit.COUNT,
    ),
    CanonicalMetric(
        "max_fds",
        "process_max_fds",
        "Maximum number of open file descriptors.",
        MetricKind.GAUGE,
        Unit.COUNT,
    ),
    CanonicalMetric(
        "virtual_memory_bytes",
        "process_virtual_memory_bytes",
        "Virtual memory size in bytes.",
        MetricKind.GAUGE,
        Unit.BYTES,
    ),
    CanonicalMetric(
        "virtual_memory_max_bytes",
        "process_virtual_memory_max_bytes",
        "Maximum amount of virtual memory available in bytes.",
        MetricKind.GAUGE,
        Unit.BYTES,
    ),
    CanonicalMetric(
        "resident_memory_bytes",
        "process_resident_memory_bytes",
        "Resident memory size in bytes.",
        MetricKind.GAUGE,
        Unit.BYTES,
    ),
    CanonicalMetric(
        START_TIME_SECONDS,
        "process_start_time_seconds",
        "Start time of the process since unix epoch in seconds.",
        MetricKind.GAUGE,
        Unit.SECONDS,
    ),
    CanonicalMetric(
        "threads",
        "process_threads",
        "Number of OS threads in the process.",
        MetricKind.GAUGE,
        Unit.COUNT,
    ),
)


@dataclass(frozen=True)
class MetricDescription:
    """
    What a sink registers for one metric name
    """

    key: str
    name: str
    help: str
    kind: MetricKind
    unit: Unit

    def to_dict(self) -> dict[str, Any]:
        # Explicit key mapping for stability
        return {
            "name": self.name,
            "help": self.help,
            "kind": self.kind.value,
            "unit": self.unit.value,
        }


@dataclass(frozen=True)
class MetricSample:
    """
    One published value
    """

    name: str
    kind: MetricKind
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "value": self.value,
        }


def kind_for(metric: CanonicalMetric, cpu_kind: MetricKind) -> MetricKind:
    """
    CPU total follows the configured kind; every other metric keeps its own
    """
    if metric.key == CPU_SECONDS_TOTAL:
        return cpu_kind
    return metric.kind


def describe_metrics(
    cpu_kind: MetricKind = MetricKind.COUNTER,
    prefix: str = "",
) -> list[MetricDescription]:
    return [
        MetricDescription(
            key=metric.key,
            name=f"{prefix}{metric.name}",
            help=metric.help,
            kind=kind_for(metric, cpu_kind),
            unit=metric.unit,
        )
        for metric in CANONICAL_METRICS
    ]


def samples_to_json(samples: Iterable[MetricSample], *, sampler: str) -> str:
    """
    Serialize one sampling pass

    Rules:
    - sample order preserved (canonical order)
    - sort_keys + compact separators
    """
    payload = {
        "sampler": sampler,
        "metrics": [sample.to_dict() for sample in samples],
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
