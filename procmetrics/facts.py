"""
procmetrics.facts

Process-lifetime invariants, computed once per process.

- ProcessFacts: write-once bundle, every field optional
- FactsCache: lazy, lock-guarded single initialization; reads after the
  first computation take no lock
- A forked child drops the parent's facts (its start time differs)
"""

from __future__ import annotations

import os
import threading
import weakref
from dataclasses import dataclass, fields
from typing import Callable, Optional

from procmetrics.logging import emit_event


@dataclass(frozen=True)
class ProcessFacts:
    clock_ticks_per_second: Optional[int] = None
    page_size_bytes: Optional[int] = None
    process_start_unix_seconds: Optional[float] = None
    system_boot_unix_seconds: Optional[float] = None

    def missing(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]


_CACHES: "weakref.WeakSet[FactsCache]" = weakref.WeakSet()


class FactsCache:
    """
    Memoize the result of a facts loader

    Initialization failure leaves every fact absent for the rest of the
    process lifetime; no retry.
    """

    def __init__(self, loader: Callable[[], ProcessFacts]) -> None:
        self._loader = loader
        self._lock = threading.Lock()
        self._facts: Optional[ProcessFacts] = None
        _CACHES.add(self)

    @property
    def is_initialized(self) -> bool:
        return self._facts is not None

    def ensure(self) -> ProcessFacts:
        facts = self._facts
        if facts is not None:
            return facts

        with self._lock:
            if self._facts is None:
                self._facts = self._load()
            return self._facts

    def _load(self) -> ProcessFacts:
        try:
            facts = self._loader()
        except Exception as e:
            emit_event(
                "facts_unavailable",
                error_type=type(e).__name__,
                message=str(e),
            )
            return ProcessFacts()

        emit_event("facts_loaded", missing=facts.missing())
        return facts

    def _reset_in_child(self) -> None:
        # The lock may have been held by another thread at fork time
        self._lock = threading.Lock()
        self._facts = None


def _reset_after_fork() -> None:
    for cache in list(_CACHES):
        cache._reset_in_child()


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_reset_after_fork)
