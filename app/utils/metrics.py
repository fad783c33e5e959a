"""
Metrics collection and emission for observability.

This module provides metrics tracking for:
- Backend call counts per service
- Backend call latency
- Backend call failures
"""

import time
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from app.utils.logging import get_logger, log_api_call

logger = get_logger(__name__)


class MetricsCollector:
    """
    Collects metrics for calls made to the hosted backend.

    Tracks:
    - Call counts per service
    - Call latency per service
    - Failure counts per service
    """

    def __init__(self, name: str = "backend"):
        """
        Initialize metrics collector.

        Args:
            name: Collector name, included in the summary
        """
        self.name = name
        self.api_calls: Dict[str, int] = {}
        self.api_failures: Dict[str, int] = {}
        self.api_latencies: Dict[str, list[float]] = {}

    def record_api_call(self, service: str, duration_ms: float, failed: bool = False) -> None:
        """
        Record API call and latency.

        Args:
            service: Service name (e.g., 'record_store', 'blob_store')
            duration_ms: Call duration in milliseconds
            failed: Whether the call raised
        """
        self.api_calls[service] = self.api_calls.get(service, 0) + 1
        self.api_latencies.setdefault(service, []).append(duration_ms)

        if failed:
            self.api_failures[service] = self.api_failures.get(service, 0) + 1

    def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of collected metrics.

        Returns:
            Dictionary of metrics
        """
        summary: Dict[str, Any] = {
            "name": self.name,
            "api_calls": dict(self.api_calls),
            "api_failures": dict(self.api_failures),
        }

        if self.api_latencies:
            latency_stats = {}
            for service, latencies in self.api_latencies.items():
                if latencies:
                    latency_stats[service] = {
                        "count": len(latencies),
                        "min_ms": round(min(latencies), 2),
                        "max_ms": round(max(latencies), 2),
                        "avg_ms": round(sum(latencies) / len(latencies), 2),
                    }
            summary["api_latencies"] = latency_stats

        return summary

    def reset(self) -> None:
        """Discard everything collected so far."""
        self.api_calls.clear()
        self.api_failures.clear()
        self.api_latencies.clear()


@asynccontextmanager
async def track_api_call(
    metrics_collector: Optional[MetricsCollector],
    service: str,
    logger_adapter,
    method: str = "",
    endpoint: str = "",
):
    """
    Context manager to track backend call timing.

    Usage:
        async with track_api_call(metrics, "record_store", logger, "GET", "/rest/v1/errors"):
            response = await client.get(...)

    Args:
        metrics_collector: Metrics collector (optional)
        service: Service name
        logger_adapter: Logger for logging API calls
        method: HTTP method
        endpoint: Endpoint path

    Yields:
        None
    """
    start_time = time.time()
    error = None

    try:
        yield
    except Exception as e:
        error = e
        raise
    finally:
        duration_ms = (time.time() - start_time) * 1000

        if metrics_collector:
            metrics_collector.record_api_call(service, duration_ms, failed=error is not None)

        log_api_call(
            logger_adapter,
            service=service,
            endpoint=endpoint,
            method=method,
            duration_ms=duration_ms,
            error=str(error) if error else None
        )


def emit_metric(metric_name: str, value: float, **tags: Any) -> None:
    """
    Emit a metric as a structured log line.

    Args:
        metric_name: Metric name
        value: Metric value
        **tags: Metric tags/labels
    """
    logger.info(
        f"Metric: {metric_name}",
        extra={
            "metric_name": metric_name,
            "metric_value": value,
            "metric_tags": tags,
        }
    )
