"""
procmetrics.config

Settings for a Collector, read from environment variables.

- PROCMETRICS_CPU_KIND: "counter" (default) or "gauge" (pre-2.0 compatibility)
- PROCMETRICS_ALLOW_DUMMY: "1" -> empty sampler on unsupported platforms
- PROCMETRICS_PREFIX: prepended to every metric name
- PROCMETRICS_EVENTS: "0" -> no event logging
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from procmetrics.model import MetricKind

CPU_KIND_ENV = "PROCMETRICS_CPU_KIND"
ALLOW_DUMMY_ENV = "PROCMETRICS_ALLOW_DUMMY"
PREFIX_ENV = "PROCMETRICS_PREFIX"
EVENTS_ENV = "PROCMETRICS_EVENTS"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}

# Prometheus metric name grammar; a prefix must keep names inside it
_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"invalid boolean for {name}: {raw!r}")


def parse_cpu_kind(raw: str) -> MetricKind:
    try:
        return MetricKind(raw.strip().lower())
    except ValueError:
        raise ValueError(f"invalid cpu kind: {raw!r} (expected 'counter' or 'gauge')") from None


def validate_prefix(prefix: str) -> str:
    if prefix and not _METRIC_NAME_RE.match(prefix):
        raise ValueError(f"invalid metric name prefix: {prefix!r}")
    return prefix


@dataclass(frozen=True)
class Settings:
    """
    Collector configuration

    cpu_kind only changes the kind attached to process_cpu_seconds_total,
    never its value.
    """

    cpu_kind: MetricKind = MetricKind.COUNTER
    allow_dummy: bool = False
    prefix: str = ""

    def __post_init__(self) -> None:
        validate_prefix(self.prefix)

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ

        cpu_kind = MetricKind.COUNTER
        if env.get(CPU_KIND_ENV):
            cpu_kind = parse_cpu_kind(env[CPU_KIND_ENV])

        allow_dummy = _parse_bool(ALLOW_DUMMY_ENV, env.get(ALLOW_DUMMY_ENV, ""))

        return Settings(
            cpu_kind=cpu_kind,
            allow_dummy=allow_dummy,
            prefix=env.get(PREFIX_ENV, "").strip(),
        )
