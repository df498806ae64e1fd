"""Object routes for the bucketfs API.

- GET /buckets/{bucket}/objects?prefix= (listObjects)
- PUT /buckets/{bucket}/objects/{key} (putObject, request body streamed to disk)
- GET /buckets/{bucket}/objects/{key} (getObject, file streamed to client)
- DELETE /buckets/{bucket}/objects/{key} (removeObject)

Object keys may contain "/" to address sub-folders. The useSignedUrl query
flag is accepted on put/get and always answered with 501.
"""

from __future__ import annotations

import mimetypes
from typing import Annotated

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from bucketfs.api.deps import StorageDep
from bucketfs.api.errors import StorageHttpError
from bucketfs.api.models import ObjectListResponse, OkResponse
from bucketfs.storage.models import ErrorResult

router = APIRouter(tags=["Objects"])

SignedUrlFlag = Annotated[bool, Query(alias="useSignedUrl")]


@router.get("/buckets/{bucket}/objects", response_model=ObjectListResponse)
async def list_objects(
    bucket: str,
    storage: StorageDep,
    prefix: Annotated[str, Query()] = "",
) -> ObjectListResponse:
    """List one level of entries under bucket/prefix."""
    result = await storage.list_objects(bucket, prefix)
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)
    return ObjectListResponse(objects=result.objects)


@router.put("/buckets/{bucket}/objects/{key:path}", response_model=OkResponse, status_code=201)
async def put_object(
    bucket: str,
    key: str,
    request: Request,
    storage: StorageDep,
    use_signed_url: SignedUrlFlag = False,
) -> OkResponse:
    """Store the request body as an object, replacing prior content."""
    result = await storage.put_object(
        bucket, key, request.stream(), use_signed_url=use_signed_url
    )
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)
    return OkResponse()


@router.get("/buckets/{bucket}/objects/{key:path}", response_class=StreamingResponse)
async def get_object(
    bucket: str,
    key: str,
    storage: StorageDep,
    use_signed_url: SignedUrlFlag = False,
) -> StreamingResponse:
    """Stream an object's content.

    The response iterates the ObjectStream, which closes its file handle when
    exhausted. The background close covers clients that disconnect early.
    """
    result = await storage.get_object(bucket, key, use_signed_url=use_signed_url)
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)

    media_type, _ = mimetypes.guess_type(key)
    return StreamingResponse(
        result,
        media_type=media_type or "application/octet-stream",
        background=BackgroundTask(result.aclose),
    )


@router.delete("/buckets/{bucket}/objects/{key:path}", response_model=OkResponse)
async def remove_object(bucket: str, key: str, storage: StorageDep) -> OkResponse:
    """Delete an object."""
    result = await storage.remove_object(bucket, key)
    if isinstance(result, ErrorResult):
        raise StorageHttpError.from_result(result)
    return OkResponse()
