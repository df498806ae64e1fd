"""bucketfs FastAPI application factory.

This module provides the create_app() factory for serving the storage
adapter over HTTP.
"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from bucketfs import __version__
from bucketfs.api.errors import (
    StorageHttpError,
    generic_exception_handler,
    http_exception_handler,
    request_validation_error_handler,
    storage_backend_error_handler,
    storage_http_error_handler,
)
from bucketfs.api.middleware.request_id import RequestIdMiddleware
from bucketfs.api.routes.buckets import router as buckets_router
from bucketfs.api.routes.health import router as health_router
from bucketfs.api.routes.objects import router as objects_router
from bucketfs.observability.tracing import configure_tracing, instrument_fastapi
from bucketfs.storage.adapter import FilesystemStorageAdapter, create_adapter_from_env
from bucketfs.storage.errors import StorageBackendError


def create_app(storage: FilesystemStorageAdapter | None = None) -> FastAPI:
    """Create and configure the bucketfs FastAPI application.

    Args:
        storage: Adapter to serve. If None, one is built from
            BUCKETFS_STORAGE_ROOT (fails with StorageConfigError if unset).

    Returns:
        Configured FastAPI application instance.
    """
    if storage is None:
        storage = create_adapter_from_env()

    app = FastAPI(
        title="bucketfs",
        description="Bucket/object storage on a local filesystem",
        version=__version__,
    )
    app.state.storage = storage

    configure_tracing()

    app.add_middleware(RequestIdMiddleware)

    instrument_fastapi(app)

    app.add_exception_handler(StorageHttpError, storage_http_error_handler)
    app.add_exception_handler(StorageBackendError, storage_backend_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health_router)
    app.include_router(buckets_router)
    app.include_router(objects_router)

    return app
