"""bucketfs storage error types.

Every failure of a storage operation is one of these typed exceptions. Each
carries the status class and machine-readable code the host reports, so the
adapter can turn expected failures into result values at its boundary.
Only StorageBackendError is raised through to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bucketfs.storage.models import ErrorResult


class StorageConfigError(Exception):
    """Raised when the adapter cannot be constructed from its configuration."""

    pass


class ObjectStorageError(Exception):
    """Base exception for storage operations.

    Attributes:
        message: Human-readable error message (returned to the host as msg).
        bucket: Bucket name associated with the operation (if applicable).
        key: Object key associated with the operation (if applicable).
    """

    status: int = 500
    code: str = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.bucket = bucket
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.bucket:
            parts.append(f"bucket={self.bucket}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)

    def to_result(self) -> ErrorResult:
        """Convert the error into the structured value returned to the host."""
        from bucketfs.storage.models import ErrorResult

        return ErrorResult(status=self.status, code=self.code, msg=self.message)


class InvalidNameError(ObjectStorageError):
    """Raised when a bucket or object name is unsafe or malformed.

    Covers parent-directory traversal segments in any name and path
    separators in bucket names. Raised before the filesystem is touched.
    """

    status = 400
    code = "INVALID_NAME"


class BucketAlreadyExistsError(ObjectStorageError):
    """Raised when creating a bucket that is already present."""

    status = 409
    code = "BUCKET_ALREADY_EXISTS"

    def __init__(self, message: str = "bucket already exists", **kwargs: str | None) -> None:
        super().__init__(message, **kwargs)


class BucketNotFoundError(ObjectStorageError):
    """Raised when an operation targets a bucket that does not exist."""

    status = 404
    code = "BUCKET_NOT_FOUND"

    def __init__(self, message: str = "bucket does not exist", **kwargs: str | None) -> None:
        super().__init__(message, **kwargs)


class ObjectNotFoundError(ObjectStorageError):
    """Raised when an operation targets an object that does not exist.

    A directory sitting at the object's path counts as a missing object.
    """

    status = 404
    code = "OBJECT_NOT_FOUND"

    def __init__(self, message: str = "object does not exist", **kwargs: str | None) -> None:
        super().__init__(message, **kwargs)


class NotImplementedStorageError(ObjectStorageError):
    """Raised for features the filesystem backend does not provide (signed URLs)."""

    status = 501
    code = "NOT_IMPLEMENTED"


class StorageBackendError(ObjectStorageError):
    """Raised when the filesystem cannot complete an operation.

    This error indicates the backend itself failed (e.g., permission denied,
    disk full, I/O error) rather than a logical error like a missing bucket.
    The message is the native OS message; the OSError is kept as cause.
    """

    status = 500
    code = "STORAGE_BACKEND_ERROR"

    def __init__(
        self,
        message: str = "Storage backend error",
        *,
        bucket: str | None = None,
        key: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, bucket=bucket, key=key)
        self.cause = cause

    @classmethod
    def from_os_error(
        cls,
        error: OSError,
        *,
        bucket: str | None = None,
        key: str | None = None,
    ) -> StorageBackendError:
        """Wrap an OSError, keeping its native message."""
        message = error.strerror or str(error) or type(error).__name__
        return cls(message, bucket=bucket, key=key, cause=error)
