"""bucketfs storage.

Maps buckets and objects onto a directory tree under a single root.

Environment Variables:
    BUCKETFS_STORAGE_ROOT: Root directory for buckets
    BUCKETFS_COPY_CHUNK_SIZE: Streaming chunk size in bytes (default: 65536)
"""

from bucketfs.storage.adapter import FilesystemStorageAdapter, create_adapter_from_env
from bucketfs.storage.errors import (
    BucketAlreadyExistsError,
    BucketNotFoundError,
    InvalidNameError,
    NotImplementedStorageError,
    ObjectNotFoundError,
    ObjectStorageError,
    StorageBackendError,
    StorageConfigError,
)
from bucketfs.storage.models import ErrorResult, ListObjectsResult, OperationResult
from bucketfs.storage.streams import ObjectSource, ObjectStream

__all__ = [
    "FilesystemStorageAdapter",
    "create_adapter_from_env",
    "ObjectSource",
    "ObjectStream",
    "OperationResult",
    "ListObjectsResult",
    "ErrorResult",
    "ObjectStorageError",
    "InvalidNameError",
    "BucketAlreadyExistsError",
    "BucketNotFoundError",
    "ObjectNotFoundError",
    "NotImplementedStorageError",
    "StorageBackendError",
    "StorageConfigError",
]
