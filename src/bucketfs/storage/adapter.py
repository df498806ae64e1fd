"""bucketfs filesystem storage adapter.

Maps the bucket/object model onto a directory tree:
    {root}/{bucket}/                 bucket
    {root}/{bucket}/{object key}     object (key may contain "/" sub-folders)

Every operation runs the same pipeline: validate names, resolve paths,
probe existence, call the filesystem, and settle failures into the
storage error taxonomy. Expected failures come back as ErrorResult
values; StorageBackendError is raised.
"""

from __future__ import annotations

import functools
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, BinaryIO, TypeVar, cast

from bucketfs.storage import fs
from bucketfs.storage.config import get_copy_chunk_size, get_storage_root
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
from bucketfs.storage.paths import (
    is_within_root,
    resolve_path,
    validate_bucket_name,
    validate_object_name,
    validate_prefix,
)
from bucketfs.storage.probe import Presence, probe, require_absent, require_exists
from bucketfs.storage.streams import ObjectSource, ObjectStream, copy_to_file
from bucketfs.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _settle(func: F) -> F:
    """Return taxonomy errors as ErrorResult values; log and re-raise the rest."""

    @functools.wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await func(self, *args, **kwargs)
        except StorageBackendError as e:
            logger.error("%s failed: %s", func.__name__, e)
            raise
        except ObjectStorageError as e:
            logger.debug("%s rejected: %s (%s)", func.__name__, e, e.code)
            return e.to_result()
        except Exception:
            logger.exception("%s failed unexpectedly", func.__name__)
            raise

    return cast(F, wrapper)


async def _close_after_failure(handle: BinaryIO, *, bucket: str, key: str) -> None:
    """Close a write handle while another error is in flight.

    A close failure here is logged and dropped so the original error reaches
    the caller.
    """
    try:
        await fs.close(handle)
    except OSError as e:
        logger.warning("Failed to close %s/%s after write failure: %s", bucket, key, e)


class FilesystemStorageAdapter:
    """Storage adapter backed by a local directory tree.

    The root is captured once at construction and never changes. No
    cross-operation locking is done; concurrent mutations of one bucket or
    object race at the filesystem's discretion.
    """

    def __init__(self, root: str | Path | None, *, chunk_size: int | None = None) -> None:
        """Initialize the adapter.

        Args:
            root: Directory under which buckets are created. Required.
            chunk_size: Bytes per read/write when streaming object content.
                If None, uses BUCKETFS_COPY_CHUNK_SIZE or 64 KiB.

        Raises:
            StorageConfigError: If root is missing or chunk_size is not positive.
        """
        if root is None or not os.fspath(root):
            raise StorageConfigError(
                "root directory required for the filesystem storage adapter"
            )
        if chunk_size is None:
            chunk_size = get_copy_chunk_size()
        if chunk_size <= 0:
            raise StorageConfigError(f"chunk_size must be a positive integer, got {chunk_size}")

        self._root = resolve_path(root)
        self._chunk_size = chunk_size
        logger.debug("FilesystemStorageAdapter initialized with root=%s", self._root)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def root(self) -> Path:
        """Return the storage root directory."""
        return self._root

    def _resolve(self, *segments: str, bucket: str, key: str | None = None) -> Path:
        """Resolve segments under the root, refusing anything that escapes it."""
        path = resolve_path(self._root, *segments)
        if not is_within_root(self._root, path):
            raise InvalidNameError(
                "name resolves outside the storage root", bucket=bucket, key=key
            )
        return path

    def _object_path(self, bucket: str, key: str) -> Path:
        path = self._resolve(bucket, key, bucket=bucket, key=key)
        if path.parent == self._root:
            raise InvalidNameError("object name is required", bucket=bucket, key=key)
        return path

    async def _bucket_dir(self, bucket: str) -> Path:
        """Resolve an existing bucket's directory."""
        bucket_dir = self._resolve(bucket, bucket=bucket)
        found = await require_exists(bucket_dir, BucketNotFoundError(bucket=bucket))
        if not found.is_dir:
            raise BucketNotFoundError(bucket=bucket)
        return bucket_dir

    async def _object_file(self, bucket: str, key: str) -> Path:
        """Resolve an existing object's file inside an existing bucket."""
        await self._bucket_dir(bucket)
        path = self._object_path(bucket, key)
        found = await require_exists(path, ObjectNotFoundError(bucket=bucket, key=key))
        if found.is_dir:
            raise ObjectNotFoundError(bucket=bucket, key=key)
        return path

    # Buckets

    @traced_storage_operation("make_bucket")
    @_settle
    async def make_bucket(self, name: str) -> OperationResult | ErrorResult:
        """Create a bucket directory (and any missing ancestors of the root).

        The root may be created by any caller; the bucket directory itself is
        created with a single mkdir, so exactly one concurrent caller wins.
        """
        validate_bucket_name(name)
        bucket_dir = self._resolve(name, bucket=name)
        await require_absent(bucket_dir, BucketAlreadyExistsError(bucket=name))

        try:
            await fs.make_dirs(self._root)
            await fs.make_dir(bucket_dir)
        except FileExistsError:
            raise BucketAlreadyExistsError(bucket=name) from None
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=name) from e

        logger.debug("Created bucket: %s", name)
        return OperationResult()

    @traced_storage_operation("remove_bucket")
    @_settle
    async def remove_bucket(self, name: str) -> OperationResult | ErrorResult:
        """Delete a bucket and everything in it."""
        validate_bucket_name(name)
        bucket_dir = await self._bucket_dir(name)

        try:
            await fs.remove_tree(bucket_dir)
        except FileNotFoundError:
            # removed concurrently between the probe and the delete
            raise BucketNotFoundError(bucket=name) from None
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=name) from e

        logger.debug("Removed bucket: %s", name)
        return OperationResult()

    @traced_storage_operation("list_buckets")
    async def list_buckets(self) -> None:
        """Bucket enumeration is not supported; the root is never listed."""
        return None

    # Objects

    @traced_storage_operation("put_object")
    @_settle
    async def put_object(
        self,
        bucket: str,
        key: str,
        stream: ObjectSource,
        *,
        use_signed_url: bool = False,
    ) -> OperationResult | ErrorResult:
        """Write a stream to an object, replacing prior content.

        Intermediate sub-folders in the object key are created on demand.
        The file handle is closed before any copy failure propagates.
        """
        if use_signed_url:
            raise NotImplementedStorageError(
                "signed upload urls are not implemented for the filesystem adapter",
                bucket=bucket,
                key=key,
            )
        validate_bucket_name(bucket)
        validate_object_name(key)
        await self._bucket_dir(bucket)

        path = self._object_path(bucket, key)
        try:
            parent = await probe(path.parent)
            if parent.presence is Presence.ERROR:
                assert parent.error is not None
                raise parent.error
            if parent.absent:
                await fs.make_dirs(path.parent)
            handle = await fs.open_file(path, "wb")
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=bucket, key=key) from e

        try:
            try:
                written = await copy_to_file(stream, handle, self._chunk_size)
            except BaseException:
                await _close_after_failure(handle, bucket=bucket, key=key)
                raise
            await fs.close(handle)
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=bucket, key=key) from e

        logger.debug("Stored object: bucket=%s key=%s size=%d", bucket, key, written)
        return OperationResult()

    @traced_storage_operation("get_object")
    @_settle
    async def get_object(
        self,
        bucket: str,
        key: str,
        *,
        use_signed_url: bool = False,
    ) -> ObjectStream | ErrorResult:
        """Open an object for reading.

        Returns:
            ObjectStream owning the open handle; the caller must close it.
        """
        if use_signed_url:
            raise NotImplementedStorageError(
                "signed download urls are not implemented for the filesystem adapter",
                bucket=bucket,
                key=key,
            )
        validate_bucket_name(bucket)
        validate_object_name(key)
        path = await self._object_file(bucket, key)

        try:
            handle = await fs.open_file(path, "rb")
        except FileNotFoundError:
            raise ObjectNotFoundError(bucket=bucket, key=key) from None
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=bucket, key=key) from e

        return ObjectStream(handle, chunk_size=self._chunk_size)

    @traced_storage_operation("remove_object")
    @_settle
    async def remove_object(self, bucket: str, key: str) -> OperationResult | ErrorResult:
        """Delete an object file. Emptied sub-folders are left in place."""
        validate_bucket_name(bucket)
        validate_object_name(key)
        path = await self._object_file(bucket, key)

        try:
            await fs.unlink(path)
        except FileNotFoundError:
            raise ObjectNotFoundError(bucket=bucket, key=key) from None
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=bucket, key=key) from e

        logger.debug("Removed object: bucket=%s key=%s", bucket, key)
        return OperationResult()

    # Listing

    @traced_storage_operation("list_objects")
    @_settle
    async def list_objects(self, bucket: str, prefix: str = "") -> ListObjectsResult | ErrorResult:
        """List the immediate entries under bucket/prefix.

        A prefix that matches nothing yields an empty list; a missing bucket
        is an error. Listing is one level deep.
        """
        validate_bucket_name(bucket)
        validate_prefix(prefix)
        await self._bucket_dir(bucket)

        path = self._resolve(bucket, prefix, bucket=bucket, key=prefix or None)
        found = await probe(path)
        if found.presence is Presence.ERROR:
            assert found.error is not None
            raise StorageBackendError.from_os_error(
                found.error, bucket=bucket, key=prefix
            ) from found.error
        if found.absent:
            return ListObjectsResult(objects=[])
        if not found.is_dir:
            return ListObjectsResult(objects=[path.name])

        try:
            names = await fs.list_dir(path)
        except FileNotFoundError:
            return ListObjectsResult(objects=[])
        except OSError as e:
            raise StorageBackendError.from_os_error(e, bucket=bucket, key=prefix) from e

        return ListObjectsResult(objects=names)


def create_adapter_from_env() -> FilesystemStorageAdapter:
    """Build an adapter from BUCKETFS_STORAGE_ROOT.

    Raises:
        StorageConfigError: If the storage root is not configured.
    """
    root = get_storage_root()
    if root is None:
        raise StorageConfigError(
            "Storage root not configured. Set BUCKETFS_STORAGE_ROOT environment variable."
        )
    return FilesystemStorageAdapter(root)
