"""
OpenTelemetry tracing helpers.

Spans are no-ops until a TracerProvider is configured by the deployment.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("receptiondesk")


@contextmanager
def trace_operation(operation_name: str, attributes: Optional[dict] = None):
    """
    Context manager for creating custom tracing spans.

    Example:
        with trace_operation("outbox.step", {"step": "publish_queue"}):
            await publisher.publish(...)
    """
    with tracer.start_as_current_span(operation_name) as span:
        if attributes:
            for key, value in attributes.items():
                span.set_attribute(key, str(value))
        try:
            yield span
        except Exception as exc:
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
