"""OpenTelemetry bootstrap: tracing initialisation and helpers.

Configures a ``TracerProvider`` with an OTLP HTTP exporter when tracing is
enabled via ``TracingConfig``.  When disabled the module is a graceful no-op
and ``tracer`` hands out non-recording spans.

Usage::

    from taskgate.infra.telemetry import SPAN_TASK_EXECUTE, tracer

    with tracer.start_as_current_span(SPAN_TASK_EXECUTE) as span:
        ...
"""

from __future__ import annotations

import base64
import logging

from opentelemetry import trace
from opentelemetry.trace import format_span_id, format_trace_id

from taskgate.configs.system import TracingConfig

logger = logging.getLogger(__name__)

tracer = trace.get_tracer("taskgate")

# ---------------------------------------------------------------------------
# Span names: single source of truth for all custom spans
# ---------------------------------------------------------------------------

SPAN_TASK_EXECUTE = "task.execute"
SPAN_TASK_RETRY = "task.retry"
SPAN_TASK_BATCH = "task.batch"

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_TASK_ID = "task.id"
ATTR_TASK_OUTCOME = "task.outcome"
ATTR_TASK_ATTEMPTS = "task.attempts"
ATTR_TASK_MAX_RETRIES = "task.max_retries"
ATTR_BATCH_SIZE = "task.batch_size"
ATTR_SEMAPHORE_WAIT = "semaphore.wait_seconds"

OUTCOME_OK = "ok"
OUTCOME_ERROR = "error"
OUTCOME_REJECTED = "rejected"


def init_telemetry(settings: TracingConfig | None = None) -> None:
    """Initialise the OTEL ``TracerProvider``.

    Parameters
    ----------
    settings:
        Tracing configuration.  When ``None`` or ``enabled`` is
        ``False``, this function is a no-op.
    """
    if settings is None or not settings.enabled:
        logger.info("OpenTelemetry tracing disabled.")
        return

    if not settings.endpoint:
        logger.warning(
            "Tracing enabled but no endpoint configured, "
            "skipping OpenTelemetry setup."
        )
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
        OTLPSpanExporter,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
    from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

    resource = Resource.create({"service.name": settings.service_name})

    sampler = ParentBased(root=TraceIdRatioBased(settings.sample_rate))
    provider = TracerProvider(resource=resource, sampler=sampler)

    headers: dict[str, str] = {}
    if settings.username and settings.password:
        credentials = f"{settings.username}:{settings.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        headers["Authorization"] = f"Basic {encoded}"

    exporter = OTLPSpanExporter(endpoint=settings.endpoint, headers=headers)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    logger.info(
        "OpenTelemetry tracing initialised (service=%s).", settings.service_name
    )


def get_current_trace_context() -> tuple[str, str] | None:
    """Return ``(trace_id, span_id)`` of the active span as hex, or ``None``.

    ``None`` when tracing is not initialised or no span is recording.
    """
    ctx = trace.get_current_span().get_span_context()
    if ctx is None or not ctx.is_valid:
        return None
    return format_trace_id(ctx.trace_id), format_span_id(ctx.span_id)
