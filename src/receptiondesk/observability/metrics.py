"""
Custom metrics for the reception desk using OpenTelemetry.

Counts relay deliveries and outbox step outcomes. Without a configured
MeterProvider the API hands out no-op instruments, so recording is always safe.
"""
import logging
from typing import Optional

from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram

logger = logging.getLogger(__name__)

meter = metrics.get_meter("receptiondesk")

# Initialize custom metrics (lazy initialization)
_metrics_initialized = False
_relay_publish_counter: Optional[Counter] = None
_relay_dropped_counter: Optional[Counter] = None
_outbox_step_counter: Optional[Counter] = None
_outbox_event_counter: Optional[Counter] = None
_request_latency_histogram: Optional[Histogram] = None


def _initialize_metrics():
    """Initialize custom metrics instruments."""
    global _metrics_initialized, _relay_publish_counter, _relay_dropped_counter
    global _outbox_step_counter, _outbox_event_counter, _request_latency_histogram

    if _metrics_initialized:
        return

    _relay_publish_counter = meter.create_counter(
        name="receptiondesk.relay.deliveries",
        description="Relay messages delivered to sessions",
        unit="1",
    )
    _relay_dropped_counter = meter.create_counter(
        name="receptiondesk.relay.dropped_sessions",
        description="Sessions dropped after a failed send",
        unit="1",
    )
    _outbox_step_counter = meter.create_counter(
        name="receptiondesk.outbox.steps",
        description="Outbox steps executed, by step and outcome",
        unit="1",
    )
    _outbox_event_counter = meter.create_counter(
        name="receptiondesk.outbox.events",
        description="Outbox events finished, by kind and final status",
        unit="1",
    )
    _request_latency_histogram = meter.create_histogram(
        name="receptiondesk.http.latency",
        description="HTTP request latency in milliseconds",
        unit="ms",
    )
    _metrics_initialized = True


def record_relay_publish(event: str, delivered: int, dropped: int = 0) -> None:
    _initialize_metrics()
    _relay_publish_counter.add(delivered, {"event": event})
    if dropped:
        _relay_dropped_counter.add(dropped, {"event": event})


def record_outbox_step(step: str, success: bool) -> None:
    _initialize_metrics()
    _outbox_step_counter.add(1, {"step": step, "status": "success" if success else "error"})


def record_outbox_event(kind: str, status: str) -> None:
    _initialize_metrics()
    _outbox_event_counter.add(1, {"kind": kind, "status": status})


def record_request(method: str, path: str, status_code: int, latency_ms: float) -> None:
    """Record an HTTP request latency sample."""
    _initialize_metrics()
    _request_latency_histogram.record(
        latency_ms, {"method": method, "path": path, "status_code": str(status_code)}
    )
