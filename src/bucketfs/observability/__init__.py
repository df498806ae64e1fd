"""bucketfs observability.

Provides OpenTelemetry tracing configuration.
"""

from bucketfs.observability.tracing import configure_tracing, get_current_trace_id

__all__ = ["configure_tracing", "get_current_trace_id"]
