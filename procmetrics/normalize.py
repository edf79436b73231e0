"""
procmetrics.normalize

RawSnapshot + ProcessFacts -> canonical metric samples
"""

from __future__ import annotations

from typing import Optional, Union

from procmetrics.facts import ProcessFacts
from procmetrics.model import (
    CANONICAL_METRICS,
    START_TIME_SECONDS,
    MetricKind,
    MetricSample,
    kind_for,
)
from procmetrics.samplers.base import RawSnapshot


def _value_for(key: str, snapshot: RawSnapshot, facts: ProcessFacts) -> Optional[Union[int, float]]:
    if key == START_TIME_SECONDS:
        return facts.process_start_unix_seconds
    return getattr(snapshot, key)


def normalize(
    snapshot: RawSnapshot,
    facts: ProcessFacts,
    cpu_kind: MetricKind = MetricKind.COUNTER,
    prefix: str = "",
) -> list[MetricSample]:
    """
    One sample per canonical metric whose value is present, canonical order

    Absent values are omitted, never reported as zero.
    """
    samples: list[MetricSample] = []
    for metric in CANONICAL_METRICS:
        value = _value_for(metric.key, snapshot, facts)
        if value is None:
            continue
        samples.append(
            MetricSample(
                name=f"{prefix}{metric.name}",
                kind=kind_for(metric, cpu_kind),
                value=float(value),
            )
        )
    return samples
