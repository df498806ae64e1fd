"""Tests for OpenTelemetry tracing of bucketfs storage operations.

- Tracing OFF by default, ON via BUCKETFS_OTEL_ENABLED=1
- Missing exporter packages disable tracing instead of failing startup
- One bucketfs.storage.<operation> span per adapter call
- Object keys and prefixes exported as SHA256 digests, never raw or as paths
- Tests use in-memory exporter (no external collector required)
"""

from __future__ import annotations

import asyncio
import hashlib
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from opentelemetry import trace

from bucketfs import __version__
from bucketfs.observability import tracing
from bucketfs.observability.tracing import (
    clear_test_spans,
    configure_tracing,
    get_current_trace_id,
    get_test_spans,
)
from bucketfs.storage.adapter import FilesystemStorageAdapter

OTLP_GRPC_MODULE = "opentelemetry.exporter.otlp.proto.grpc.trace_exporter"


@pytest.fixture(autouse=True)
def fresh_spans() -> Iterator[None]:
    """Start and end each test with no captured spans."""
    clear_test_spans()
    yield
    clear_test_spans()


@pytest.fixture
def capture(monkeypatch: pytest.MonkeyPatch) -> None:
    """Enable tracing with the in-memory exporter."""
    monkeypatch.setenv("BUCKETFS_OTEL_ENABLED", "1")
    monkeypatch.setenv("BUCKETFS_OTEL_TEST_CAPTURE", "1")
    assert configure_tracing() is True


def _spans_named(name: str) -> list[Any]:
    return [s for s in get_test_spans() if s.name == name]


class TestTracingConfiguration:
    """Tests for tracing configuration behavior."""

    def test_tracing_disabled_by_default(self, storage: FilesystemStorageAdapter) -> None:
        """No spans are emitted when BUCKETFS_OTEL_ENABLED is not set."""
        assert configure_tracing() is False

        asyncio.run(storage.make_bucket("b1"))

        assert _spans_named("bucketfs.storage.make_bucket") == []

    def test_tracing_idempotent(self, capture: None) -> None:
        assert configure_tracing() is True
        assert configure_tracing() is True

    def test_resource_identifies_bucketfs(
        self, capture: None, storage: FilesystemStorageAdapter
    ) -> None:
        asyncio.run(storage.make_bucket("b1"))

        (span,) = _spans_named("bucketfs.storage.make_bucket")
        assert span.resource.attributes["service.name"] == "bucketfs"
        assert span.resource.attributes["service.version"] == __version__

    def test_missing_otlp_exporter_disables_tracing(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("BUCKETFS_OTEL_ENABLED", "1")
        monkeypatch.setitem(sys.modules, OTLP_GRPC_MODULE, None)
        monkeypatch.setattr(tracing, "_provider", None)

        with pytest.raises(ImportError):
            tracing._span_processor()
        assert configure_tracing() is False

    def test_current_trace_id(self, capture: None) -> None:
        assert get_current_trace_id() is None

        with trace.get_tracer("tests").start_as_current_span("outer") as span:
            trace_id = get_current_trace_id()

        assert trace_id == format(span.get_span_context().trace_id, "032x")
        assert len(trace_id) == 32


class TestStorageSpans:
    """Tests for spans emitted by adapter operations."""

    def test_make_bucket_span(self, capture: None, storage: FilesystemStorageAdapter) -> None:
        asyncio.run(storage.make_bucket("b1"))

        spans = _spans_named("bucketfs.storage.make_bucket")
        assert len(spans) == 1
        attrs = dict(spans[0].attributes)
        assert attrs["storage.backend"] == "filesystem"
        assert attrs["bucketfs.bucket"] == "b1"
        assert attrs["bucketfs.result.ok"] is True

    def test_error_result_recorded(self, capture: None, storage: FilesystemStorageAdapter) -> None:
        asyncio.run(storage.remove_bucket("dne"))

        (span,) = _spans_named("bucketfs.storage.remove_bucket")
        attrs = dict(span.attributes)
        assert attrs["bucketfs.result.ok"] is False
        assert attrs["bucketfs.result.status"] == 404
        assert attrs["bucketfs.result.code"] == "BUCKET_NOT_FOUND"

    def test_object_key_is_hashed(
        self,
        capture: None,
        storage: FilesystemStorageAdapter,
        bucket: str,
        storage_root: Path,
    ) -> None:
        key = "private/report.pdf"
        asyncio.run(storage.put_object(bucket, key, b"secret"))

        (span,) = _spans_named("bucketfs.storage.put_object")
        attrs = dict(span.attributes)
        assert attrs["bucketfs.object_key_sha256"] == hashlib.sha256(key.encode()).hexdigest()
        for value in attrs.values():
            if isinstance(value, str):
                assert key not in value
                assert str(storage_root) not in value

    def test_listing_records_object_count(
        self, capture: None, storage: FilesystemStorageAdapter, bucket: str
    ) -> None:
        async def scenario() -> None:
            await storage.put_object(bucket, "a.txt", b"1")
            await storage.put_object(bucket, "b.txt", b"2")
            await storage.list_objects(bucket, "")

        asyncio.run(scenario())

        (span,) = _spans_named("bucketfs.storage.list_objects")
        attrs = dict(span.attributes)
        assert attrs["bucketfs.object_count"] == 2
        assert "bucketfs.prefix_sha256" not in attrs

    def test_backend_error_marks_span(
        self,
        capture: None,
        storage: FilesystemStorageAdapter,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        from bucketfs.storage import fs
        from bucketfs.storage.errors import StorageBackendError

        async def denied(path: Path) -> None:
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(fs, "make_dirs", denied)

        with pytest.raises(StorageBackendError):
            asyncio.run(storage.make_bucket("b1"))

        (span,) = _spans_named("bucketfs.storage.make_bucket")
        attrs = dict(span.attributes)
        assert attrs["error"] is True
        assert attrs["error.type"] == "StorageBackendError"
