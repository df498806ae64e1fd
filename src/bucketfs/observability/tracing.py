"""OpenTelemetry setup for bucketfs.

The storage layer emits spans through the global tracer (see
bucketfs.storage.tracing); this module decides where they go.

Environment Variables:
    BUCKETFS_OTEL_ENABLED: "1" turns tracing on (default: off)
    BUCKETFS_OTEL_EXPORTER: "otlp" (default) or "console"
    BUCKETFS_OTEL_EXPORTER_OTLP_ENDPOINT: gRPC collector endpoint (optional)
    BUCKETFS_OTEL_TEST_CAPTURE: "1" keeps finished spans in memory for tests
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

from opentelemetry import trace

from bucketfs import __version__

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor, TracerProvider
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None
_memory_exporter: InMemorySpanExporter | None = None


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def tracing_enabled() -> bool:
    """Check BUCKETFS_OTEL_ENABLED."""
    return _env_flag("BUCKETFS_OTEL_ENABLED")


def _span_processor() -> SpanProcessor:
    """Pick the span processor for the configured exporter.

    Raises:
        ImportError: If the OTLP exporter package is not installed.
    """
    global _memory_exporter

    from opentelemetry.sdk.trace.export import BatchSpanProcessor, SimpleSpanProcessor

    if _env_flag("BUCKETFS_OTEL_TEST_CAPTURE"):
        from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
            InMemorySpanExporter,
        )

        _memory_exporter = InMemorySpanExporter()
        return SimpleSpanProcessor(_memory_exporter)

    exporter = os.environ.get("BUCKETFS_OTEL_EXPORTER", "otlp").strip().lower()
    if exporter == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        return SimpleSpanProcessor(ConsoleSpanExporter())

    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

    endpoint = os.environ.get("BUCKETFS_OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    otlp = OTLPSpanExporter(endpoint=endpoint) if endpoint else OTLPSpanExporter()
    return BatchSpanProcessor(otlp)


def configure_tracing() -> bool:
    """Install the bucketfs tracer provider when tracing is enabled.

    The global provider can only be set once per process, so after the first
    successful call this is a no-op.

    Returns:
        True if spans are being exported, False otherwise.
    """
    global _provider

    if not tracing_enabled():
        return False
    if _provider is not None:
        return True

    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider

    try:
        processor = _span_processor()
    except ImportError as e:
        logger.warning("Tracing disabled, exporter unavailable (install bucketfs[otel]): %s", e)
        return False

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": "bucketfs",
                "service.version": __version__,
                "storage.backend": "filesystem",
            }
        )
    )
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info("Tracing configured for bucketfs %s", __version__)
    return True


def instrument_fastapi(app: Any) -> None:
    """Add request spans to a FastAPI app; /health is left out."""
    if not tracing_enabled():
        return

    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    except ImportError:
        logger.warning("opentelemetry-instrumentation-fastapi not installed, no request spans")
        return

    FastAPIInstrumentor.instrument_app(app, excluded_urls="health")


def get_current_trace_id() -> str | None:
    """Hex trace ID of the active span, for log correlation."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return format(context.trace_id, "032x")


def get_test_spans() -> list[ReadableSpan]:
    """Spans captured with BUCKETFS_OTEL_TEST_CAPTURE=1 (empty otherwise)."""
    if _memory_exporter is None:
        return []
    return list(_memory_exporter.get_finished_spans())


def clear_test_spans() -> None:
    if _memory_exporter is not None:
        _memory_exporter.clear()
