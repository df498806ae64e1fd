"""Bucket routes for the bucketfs API.

- GET /buckets (listBuckets, unsupported by the filesystem backend)
- PUT /buckets/{bucket} (makeBucket)
- DELETE /buckets/{bucket} (removeBucket)
"""

from __future__ import annotations

from fastapi import APIRouter

from bucketfs.api.deps import StorageDep
from bucketfs.api.errors import StorageHttpError
from bucketfs.api.models import OkResponse
from bucketfs.storage.models import ErrorResult

router = APIRouter(tags=["Buckets"])


@router.get("/buckets", response_model=OkResponse)
async def list_buckets(storage: StorageDep) -> OkResponse:
    """List buckets. Always 501: the storage root is never enumerated."""
    await storage.list_buckets()
    raise StorageHttpError(
        status_code=501,
        code="NOT_IMPLEMENTED",
        message="listing buckets is not supported by the filesystem adapter",
    )


@router.put("/buckets/{bucket}", response_model=OkResponse, status_code=201)
async def make_bucket(bucket: str, storage: StorageDep) -> OkResponse:
    """Create a bucket."""
    result = await storage.make_bucket(bucket)
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)
    return OkResponse()


@router.delete("/buckets/{bucket}", response_model=OkResponse)
async def remove_bucket(bucket: str, storage: StorageDep) -> OkResponse:
    """Remove a bucket and all of its objects."""
    result = await storage.remove_bucket(bucket)
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)
    return OkResponse()
