"""
Collector façade: describe/collect contract, degradation, concurrency
"""

from __future__ import annotations

import shutil
import sys
import threading
import time
from pathlib import Path

import pytest

from procmetrics.collector import Collector
from procmetrics.config import Settings
from procmetrics.facts import ProcessFacts
from procmetrics.model import MetricDescription, MetricKind, MetricSample
from procmetrics.samplers import DummySampler, LinuxSampler
from procmetrics.samplers.base import RawSnapshot, Sampler
from procmetrics.sink import MemorySink
from tests.conftest import LIMITS_TEXT, fake_sysconf

linux_only = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="reads the real /proc")


class SequenceSampler(Sampler):
    """
    Replays CPU readings in order
    """

    name = "sequence"

    def __init__(self, cpu_values: list[float]) -> None:
        self._values = iter(cpu_values)

    def load_facts(self) -> ProcessFacts:
        return ProcessFacts(process_start_unix_seconds=100.0)

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        return RawSnapshot(cpu_seconds_total=next(self._values), threads=2)


class RaisingSampler(Sampler):
    name = "raising"

    def load_facts(self) -> ProcessFacts:
        return ProcessFacts()

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        raise RuntimeError("sampler exploded")


class CountingSink(MemorySink):
    def __init__(self, *, fail_describe_once: bool = False, fail_record: str | None = None) -> None:
        super().__init__()
        self.describe_calls = 0
        self._fail_describe_once = fail_describe_once
        self._fail_record = fail_record

    def describe(self, description: MetricDescription) -> None:
        if self._fail_describe_once:
            self._fail_describe_once = False
            raise RuntimeError("registry not ready")
        self.describe_calls += 1
        super().describe(description)

    def record(self, sample: MetricSample) -> None:
        if sample.name == self._fail_record:
            raise RuntimeError("record rejected")
        super().record(sample)


def _cpu_history(sink: MemorySink) -> list[float]:
    return [s.value for s in sink.history if s.name == "process_cpu_seconds_total"]


def test_describe_twice_registers_once() -> None:
    sink = CountingSink()
    collector = Collector(sink, settings=Settings(), sampler=DummySampler())

    collector.describe()
    collector.describe()

    assert sink.describe_calls == 8
    assert len(sink.descriptions) == 8


def test_describe_retries_after_sink_failure(capsys) -> None:
    sink = CountingSink(fail_describe_once=True)
    collector = Collector(sink, settings=Settings(), sampler=DummySampler())

    collector.describe()
    assert sink.describe_calls == 0
    assert '"event_type":"describe_failed"' in capsys.readouterr().err

    collector.describe()
    assert len(sink.descriptions) == 8


def test_dummy_sampler_publishes_nothing_but_describes_everything() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings(allow_dummy=True), sampler=DummySampler())

    collector.describe()
    collector.collect()

    assert sink.history == []
    assert len(sink.descriptions) == 8


def test_descriptor_read_failure_drops_only_fd_metrics(fake_proc: Path) -> None:
    sampler = LinuxSampler(proc_self=fake_proc / "self", proc_stat=fake_proc / "stat", sysconf=fake_sysconf)
    sink = MemorySink()
    collector = Collector(sink, settings=Settings(), sampler=sampler)

    collector.collect()
    first_pass = {s.name for s in sink.history}
    assert len(first_pass) == 8

    shutil.rmtree(fake_proc / "self" / "fd")
    limits = "".join(line for line in LIMITS_TEXT.splitlines(keepends=True) if "open files" not in line)
    (fake_proc / "self" / "limits").write_text(limits, encoding="utf-8")

    before = len(sink.history)
    collector.collect()
    second_pass = {s.name for s in sink.history[before:]}

    assert second_pass == first_pass - {"process_open_fds", "process_max_fds"}
    assert "process_virtual_memory_max_bytes" in second_pass


def test_counter_never_decreases_as_seen_by_sink() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings(), sampler=SequenceSampler([1.0, 2.0, 1.5, 3.0]))

    for _ in range(4):
        collector.collect()

    assert _cpu_history(sink) == [1.0, 2.0, 3.0]


def test_gauge_mode_publishes_every_reading() -> None:
    sink = MemorySink()
    settings = Settings(cpu_kind=MetricKind.GAUGE)
    collector = Collector(sink, settings=settings, sampler=SequenceSampler([1.0, 2.0, 1.5]))

    for _ in range(3):
        collector.collect()

    assert _cpu_history(sink) == [1.0, 2.0, 1.5]
    assert all(s.kind is MetricKind.GAUGE for s in sink.history)


def test_collect_never_raises_on_sampler_failure(capsys) -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings(), sampler=RaisingSampler())

    collector.collect()

    assert sink.history == []
    err = capsys.readouterr().err
    assert '"event_type":"collect_failed"' in err
    assert "sampler exploded" in err


def test_record_failure_skips_only_that_metric() -> None:
    sink = CountingSink(fail_record="process_cpu_seconds_total")
    collector = Collector(sink, settings=Settings(), sampler=SequenceSampler([1.0]))

    collector.collect()

    assert sink.values == {"process_start_time_seconds": 100.0, "process_threads": 2.0}


def test_prefix_from_settings() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings(prefix="svc_"), sampler=SequenceSampler([1.0]))

    collector.describe()
    collector.collect()

    assert all(name.startswith("svc_process_") for name in sink.descriptions)
    assert all(name.startswith("svc_process_") for name in sink.values)


# -----------------------------
# Live /proc
# -----------------------------
@linux_only
def test_live_collect_publishes_all_metrics() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings())

    collector.collect()

    assert len(sink.values) == 8
    assert sink.values["process_threads"] >= 1
    assert sink.values["process_resident_memory_bytes"] > 0


@linux_only
def test_live_start_time_is_constant_and_in_the_past() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings())

    for _ in range(5):
        collector.collect()

    starts = [s.value for s in sink.history if s.name == "process_start_time_seconds"]
    assert len(starts) == 5
    assert len(set(starts)) == 1
    assert starts[0] <= time.time() + 1


@linux_only
def test_live_concurrent_collects_are_complete_and_monotonic() -> None:
    sink = MemorySink()
    collector = Collector(sink, settings=Settings())
    barrier = threading.Barrier(8)
    errors: list[str] = []

    def worker() -> None:
        barrier.wait()
        previous_cpu = -1.0
        for _ in range(20):
            samples = {s.name: s.value for s in collector.sample()}
            if len(samples) != 8:
                errors.append(f"incomplete pass: {sorted(samples)}")
            cpu = samples["process_cpu_seconds_total"]
            if cpu < previous_cpu:
                errors.append(f"cpu regressed {previous_cpu} -> {cpu}")
            previous_cpu = cpu
            collector.collect()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    cpu = _cpu_history(sink)
    assert cpu == sorted(cpu)
    starts = {s.value for s in sink.history if s.name == "process_start_time_seconds"}
    assert len(starts) == 1
