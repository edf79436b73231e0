"""
Contract tests for event logging.

The logging surface must reject unknown event types to keep aggregation stable.
"""

import json

import pytest

from procmetrics import __version__
from procmetrics.logging import emit_event


def test_emit_event_rejects_invalid_event_type() -> None:
    """
    Unknown event types must raise ValueError.
    """
    with pytest.raises(ValueError, match="invalid event_type"):
        emit_event("not_a_real_event")


def test_event_payload_shape(capsys, monkeypatch) -> None:
    """
    One JSON line on stderr with the stable required fields; stdout untouched
    """
    monkeypatch.delenv("PROCMETRICS_EVENTS", raising=False)

    emit_event("field_read_failed", sampler="linux", field="open_fds", error_type="OSError")

    captured = capsys.readouterr()
    assert captured.out == ""
    payload = json.loads(captured.err.strip())

    assert payload["event_type"] == "field_read_failed"
    assert "utc_now" in payload
    assert payload["version"] == __version__
    assert payload["field"] == "open_fds"


def test_long_messages_are_truncated(capsys, monkeypatch) -> None:
    monkeypatch.delenv("PROCMETRICS_EVENTS", raising=False)

    emit_event("collect_failed", message="x" * 500)

    payload = json.loads(capsys.readouterr().err.strip())
    assert payload["message"].startswith("x" * 200)
    assert payload["message"].endswith("...[truncated 300 chars]")


def test_events_can_be_silenced(capsys, monkeypatch) -> None:
    monkeypatch.setenv("PROCMETRICS_EVENTS", "0")

    emit_event("collect_failed", message="quiet")

    assert capsys.readouterr().err == ""
