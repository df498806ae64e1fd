"""OpenTelemetry tracing for bucketfs storage operations.

Provides a decorator that wraps adapter coroutines in spans.

Security:
    - Never export absolute filesystem paths in span attributes
    - Object keys are exported as SHA256 digests only
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    return default


def _is_otel_enabled() -> bool:
    """Check if OpenTelemetry tracing is enabled."""
    return _get_env_bool("BUCKETFS_OTEL_ENABLED", False)


def _key_sha256(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def traced_storage_operation(operation: str) -> Callable[[F], F]:
    """Decorator to trace adapter operations with OpenTelemetry.

    Emits a ``bucketfs.storage.<operation>`` span carrying the bucket name,
    the SHA256 of the object key or prefix, the backend name and the
    result outcome.

    Args:
        operation: Operation name (e.g., "make_bucket", "put_object").

    Returns:
        Decorated coroutine function that emits spans when tracing is enabled.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            if not _is_otel_enabled():
                return await func(self, *args, **kwargs)

            try:
                from opentelemetry import trace
            except ImportError:
                return await func(self, *args, **kwargs)

            tracer = trace.get_tracer("bucketfs.storage")
            bound = signature.bind_partial(self, *args, **kwargs).arguments

            with tracer.start_as_current_span(f"bucketfs.storage.{operation}") as span:
                span.set_attribute("storage.backend", getattr(self, "backend_name", "unknown"))

                bucket = bound.get("bucket", bound.get("name"))
                if isinstance(bucket, str):
                    span.set_attribute("bucketfs.bucket", bucket)
                key = bound.get("key")
                if isinstance(key, str):
                    span.set_attribute("bucketfs.object_key_sha256", _key_sha256(key))
                prefix = bound.get("prefix")
                if isinstance(prefix, str) and prefix:
                    span.set_attribute("bucketfs.prefix_sha256", _key_sha256(prefix))

                try:
                    result = await func(self, *args, **kwargs)
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    raise

                _add_result_attributes(span, result)
                return result

        return cast(F, wrapper)

    return decorator


def _add_result_attributes(span: Any, result: Any) -> None:
    """Add outcome attributes to span (ok flag, status, object count)."""
    try:
        from bucketfs.storage.models import ErrorResult, ListObjectsResult

        if isinstance(result, ErrorResult):
            span.set_attribute("bucketfs.result.ok", False)
            span.set_attribute("bucketfs.result.status", result.status)
            span.set_attribute("bucketfs.result.code", result.code)
            return

        span.set_attribute("bucketfs.result.ok", True)
        if isinstance(result, ListObjectsResult):
            span.set_attribute("bucketfs.object_count", len(result.objects))

    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
