"""FastAPI dependencies for the bucketfs API."""

from typing import Annotated

from fastapi import Depends, Request

from bucketfs.storage.adapter import FilesystemStorageAdapter


def get_storage(request: Request) -> FilesystemStorageAdapter:
    """Return the storage adapter bound to the application."""
    storage: FilesystemStorageAdapter = request.app.state.storage
    return storage


StorageDep = Annotated[FilesystemStorageAdapter, Depends(get_storage)]
