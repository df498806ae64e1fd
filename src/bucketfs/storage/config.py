"""bucketfs storage configuration.

Environment Variables:
    BUCKETFS_STORAGE_ROOT: Directory under which buckets are created (required
        when building an adapter from the environment).
    BUCKETFS_COPY_CHUNK_SIZE: Bytes per read/write when streaming object
        content (default: 65536).
"""

from __future__ import annotations

import os

from bucketfs.storage.errors import StorageConfigError

BUCKETFS_STORAGE_ROOT_ENV = "BUCKETFS_STORAGE_ROOT"
BUCKETFS_COPY_CHUNK_SIZE_ENV = "BUCKETFS_COPY_CHUNK_SIZE"

DEFAULT_COPY_CHUNK_SIZE = 64 * 1024


def get_storage_root() -> str | None:
    """Return the configured storage root, or None if unset or blank."""
    raw = os.environ.get(BUCKETFS_STORAGE_ROOT_ENV, "").strip()
    return raw or None


def get_copy_chunk_size() -> int:
    """Parse the copy chunk size from the environment.

    Returns:
        Positive chunk size in bytes.

    Raises:
        StorageConfigError: If the value is set but not a positive integer.
    """
    raw = os.environ.get(BUCKETFS_COPY_CHUNK_SIZE_ENV)
    if raw is None:
        return DEFAULT_COPY_CHUNK_SIZE

    raw = raw.strip()
    if not raw:
        return DEFAULT_COPY_CHUNK_SIZE

    try:
        value = int(raw)
    except ValueError as e:
        raise StorageConfigError(
            f"{BUCKETFS_COPY_CHUNK_SIZE_ENV} must be a positive integer, got '{raw}'"
        ) from e

    if value <= 0:
        raise StorageConfigError(
            f"{BUCKETFS_COPY_CHUNK_SIZE_ENV} must be a positive integer, got {value}"
        )

    return value
