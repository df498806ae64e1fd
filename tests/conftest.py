"""Pytest configuration and fixtures for bucketfs tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from bucketfs.storage.adapter import FilesystemStorageAdapter

BUCKETFS_ENV_VARS = [
    "BUCKETFS_STORAGE_ROOT",
    "BUCKETFS_COPY_CHUNK_SIZE",
    "BUCKETFS_OTEL_ENABLED",
    "BUCKETFS_OTEL_EXPORTER_OTLP_ENDPOINT",
    "BUCKETFS_OTEL_TEST_CAPTURE",
    "BUCKETFS_OTEL_EXPORTER",
]


@pytest.fixture(autouse=True)
def clean_bucketfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without bucketfs configuration from the host environment."""
    for name in BUCKETFS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Storage root inside the test's temp dir. Not created up front."""
    return tmp_path / "storage"


@pytest.fixture
def storage(storage_root: Path) -> FilesystemStorageAdapter:
    """Adapter over the temp storage root, with a small chunk size."""
    return FilesystemStorageAdapter(storage_root, chunk_size=4)


@pytest.fixture
def bucket(storage: FilesystemStorageAdapter) -> str:
    """Name of a bucket that already exists."""
    result = asyncio.run(storage.make_bucket("b1"))
    assert result.ok
    return "b1"
