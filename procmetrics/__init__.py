"""procmetrics: Prometheus style metrics for the current process."""

__version__ = "0.1.0"

from procmetrics.collector import Collector
from procmetrics.config import Settings
from procmetrics.facts import FactsCache, ProcessFacts
from procmetrics.model import MetricDescription, MetricKind, MetricSample, Unit
from procmetrics.normalize import normalize
from procmetrics.samplers import RawSnapshot, Sampler, UnsupportedPlatformError, select_sampler
from procmetrics.sink import MemorySink, PrometheusSink, Sink

__all__ = [
    "Collector",
    "FactsCache",
    "MemorySink",
    "MetricDescription",
    "MetricKind",
    "MetricSample",
    "ProcessFacts",
    "PrometheusSink",
    "RawSnapshot",
    "Sampler",
    "Settings",
    "Sink",
    "Unit",
    "UnsupportedPlatformError",
    "__version__",
    "normalize",
    "select_sampler",
]
