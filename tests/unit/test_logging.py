import json
import logging

import pytest

from gardenbeds.shared.utils.logging import (
    ContextualJsonFormatter,
    QueryPerformanceTracker,
    get_logger,
    log_context,
    request_id_var,
)
from tests.fakes import FakeClock


def test_tracker_averages_per_operation():
    clock = FakeClock(start=0.0)
    tracker = QueryPerformanceTracker(clock=clock)

    for seconds in (0.010, 0.030):
        stop = tracker.start_timer("get_beds")
        clock.advance(seconds)
        stop()

    stats = tracker.get_stats()
    assert stats["get_beds"]["count"] == 2
    assert stats["get_beds"]["avg_time_ms"] == pytest.approx(20.0)


def test_tracker_context_manager_records_on_error():
    clock = FakeClock(start=0.0)
    tracker = QueryPerformanceTracker(clock=clock)

    with pytest.raises(RuntimeError):
        with tracker.track("create_pin"):
            clock.advance(0.005)
            raise RuntimeError("boom")

    assert tracker.get_stats()["create_pin"]["count"] == 1
    tracker.reset()
    assert tracker.get_stats() == {}


def test_slow_queries_are_logged_as_warnings(caplog):
    clock = FakeClock(start=0.0)
    tracker = QueryPerformanceTracker(slow_threshold_ms=100, clock=clock)

    with caplog.at_level(logging.WARNING):
        with tracker.track("search_pins"):
            clock.advance(0.5)

    assert "Slow query detected: search_pins" in caplog.text


def test_log_context_binds_and_restores_request_id():
    with log_context(request_id="req-123") as context:
        assert context["request_id"] == "req-123"
        assert request_id_var.get() == "req-123"

    assert request_id_var.get() == ""


def test_get_logger_returns_the_same_instance():
    assert get_logger("gardenbeds.test") is get_logger("gardenbeds.test")


def test_json_formatter_flattens_extra_fields():
    formatter = ContextualJsonFormatter("%(message)s")
    record = logging.LogRecord("gardenbeds.test", logging.INFO, __file__, 1, "hello", None, None)
    record.extra_fields = {"operation": "get_beds", "duration_ms": 1.5}

    with log_context(request_id="req-9"):
        payload = json.loads(formatter.format(record))

    assert payload["message"] == "hello"
    assert payload["operation"] == "get_beds"
    assert payload["request_id"] == "req-9"
    assert payload["service"] == "gardenbeds-api"
    assert "extra_fields" not in payload
