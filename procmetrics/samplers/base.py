"""
procmetrics.samplers.base

Shared sampler contract + per-field failure capture.

A missing datum is not an error: every field of RawSnapshot is optional and a
failed OS read turns into None for that field only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from procmetrics.facts import ProcessFacts
from procmetrics.logging import emit_event


@dataclass(frozen=True)
class RawSnapshot:
    """
    One point-in-time reading, already in canonical units
    (seconds, bytes, counts)
    """

    cpu_seconds_total: Optional[float] = None
    virtual_memory_bytes: Optional[int] = None
    virtual_memory_max_bytes: Optional[int] = None
    resident_memory_bytes: Optional[int] = None
    open_fds: Optional[int] = None
    max_fds: Optional[int] = None
    threads: Optional[int] = None


@dataclass(frozen=True)
class FieldOutcome:
    """
    Normalized result of one OS read
    - ok: false=failure, error details in error fields
    - value: read result if ok=true
    """

    name: str
    ok: bool
    value: Optional[Any] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None


def read_field(name: str, fn, *args, **kwargs) -> FieldOutcome:
    """
    Run one OS read & capture failure as data
    """
    try:
        v = fn(*args, **kwargs)
        return FieldOutcome(name=name, ok=True, value=v)
    except Exception as e:
        return FieldOutcome(
            name=name,
            ok=False,
            value=None,
            error_type=type(e).__name__,
            error_message=str(e),
        )


def translate_rlimit(value: int) -> int:
    """
    RLIM_INFINITY -> 0 ('unlimited')
    """
    import resource

    if value == resource.RLIM_INFINITY or value < 0:
        return 0
    return int(value)


def soft_rlimit(limit: int) -> int:
    import resource

    soft, _hard = resource.getrlimit(limit)
    return translate_rlimit(soft)


class Sampler:
    name: str = "base"

    def load_facts(self) -> ProcessFacts:
        raise NotImplementedError

    def sample(self, facts: ProcessFacts) -> RawSnapshot:
        raise NotImplementedError

    def _read(self, name: str, fn, *args, **kwargs) -> Optional[Any]:
        """
        Read one field; failures become None plus a field_read_failed event
        """
        outcome = read_field(name, fn, *args, **kwargs)
        if outcome.ok:
            return outcome.value

        emit_event(
            "field_read_failed",
            sampler=self.name,
            field=name,
            error_type=outcome.error_type,
            message=outcome.error_message,
        )
        return None
