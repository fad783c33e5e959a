"""
Unit tests for metrics collection utilities.
"""

import pytest

from app.utils.logging import get_logger
from app.utils.metrics import MetricsCollector, emit_metric, track_api_call


def test_metrics_collector_initialization():
    """Test metrics collector initialization."""
    collector = MetricsCollector("record_store")

    assert collector.name == "record_store"
    assert collector.api_calls == {}
    assert collector.api_failures == {}


def test_metrics_collector_record_api_call():
    """Test recording API call metrics."""
    collector = MetricsCollector()

    collector.record_api_call("record_store", 150.5)
    collector.record_api_call("record_store", 200.0)
    collector.record_api_call("blob_store", 500.0, failed=True)

    assert collector.api_calls["record_store"] == 2
    assert collector.api_calls["blob_store"] == 1
    assert collector.api_failures == {"blob_store": 1}
    assert len(collector.api_latencies["record_store"]) == 2


def test_metrics_collector_get_summary():
    """Test getting metrics summary."""
    collector = MetricsCollector("backend")

    collector.record_api_call("record_store", 150.0)
    collector.record_api_call("record_store", 200.0)

    summary = collector.get_metrics_summary()

    assert summary["name"] == "backend"
    assert summary["api_calls"] == {"record_store": 2}
    assert summary["api_latencies"]["record_store"]["count"] == 2
    assert summary["api_latencies"]["record_store"]["avg_ms"] == 175.0
    assert summary["api_latencies"]["record_store"]["min_ms"] == 150.0


def test_metrics_collector_reset():
    """Test that reset clears collected data."""
    collector = MetricsCollector()
    collector.record_api_call("record_store", 10.0, failed=True)

    collector.reset()

    assert collector.get_metrics_summary() == {
        "name": "backend",
        "api_calls": {},
        "api_failures": {},
    }


@pytest.mark.asyncio
async def test_track_api_call_records_success():
    """Test that a successful call is counted."""
    collector = MetricsCollector()

    async with track_api_call(collector, "record_store", get_logger("test"), "GET", "/rest/v1/errors"):
        pass

    assert collector.api_calls["record_store"] == 1
    assert "record_store" not in collector.api_failures


@pytest.mark.asyncio
async def test_track_api_call_records_failure_and_reraises():
    """Test that a failing call is counted and the error propagates."""
    collector = MetricsCollector()

    with pytest.raises(RuntimeError):
        async with track_api_call(collector, "record_store", get_logger("test")):
            raise RuntimeError("down")

    assert collector.api_calls["record_store"] == 1
    assert collector.api_failures["record_store"] == 1


def test_emit_metric():
    """Test emitting a metric."""
    # This should not raise an exception
    emit_metric("export_records", 42.0, format="csv")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
