"""
procmetrics.logging

Structured JSON event logging

Contract:
- One JSON object per line to stderr (stdout belongs to the host application)
- Stable event vocabulary (allowlist)
- UTC timestamps only
- PROCMETRICS_EVENTS=0 silences every event
"""

from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone
from typing import Any

from procmetrics import __version__
from procmetrics.config import EVENTS_ENV

# Event types
VALID_EVENT_TYPES = {
    "sampler_selected",
    "facts_loaded",
    "facts_unavailable",
    "field_read_failed",
    "collect_failed",
    "describe_failed",
    "record_failed",
    "metric_kind_conflict",
    "cli_start",
    "cli_sample_emitted",
    "cli_shutdown",
}


def _truncate_message(value: str, *, limit: int = 200) -> str:
    """
    Cap message length to keep events compact
    """
    if len(value) <= limit:
        return value
    return value[:limit] + f"...[truncated {len(value) - limit} chars]"


# Time: current in UTC ISO 8601
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def events_enabled() -> bool:
    return os.environ.get(EVENTS_ENV, "1") != "0"


def emit_event(event_type: str, **fields: Any) -> None:
    """
    Emit structured event line to stderr

    Rules:
    - event_type in VALID_EVENT_TYPES (checked even when silenced)
    - event_type, version, utc_now always present
    - sort_keys + compact separators for format
    """
    if event_type not in VALID_EVENT_TYPES:
        raise ValueError(f"invalid event_type: {event_type}")

    if not events_enabled():
        return

    if "message" in fields and isinstance(fields["message"], str):
        # Avoid emitting long strings in event fields
        fields["message"] = _truncate_message(fields["message"])

    payload: dict[str, Any] = {
        "event_type": event_type,
        "utc_now": utc_now_iso(),
        "version": __version__,
        **fields,
    }

    print(
        json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=str,
        ),
        file=sys.stderr,
    )
