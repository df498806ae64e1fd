"""Tests for the bucketfs HTTP API over the filesystem adapter.

Covers:
- Bucket routes: create (201), conflict (409), remove, missing (404)
- Object routes: streamed put/get, sub-folder keys, listing, delete
- Error envelope: code, message, request_id on every failure
- Signed URL flag answered with 501
- Backend failures surfaced as 500 STORAGE_BACKEND_ERROR
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from bucketfs.api.main import create_app
from bucketfs.api.routes import objects as objects_routes
from bucketfs.storage import fs
from bucketfs.storage.adapter import FilesystemStorageAdapter
from bucketfs.storage.streams import ObjectStream


@pytest.fixture
def client(storage: FilesystemStorageAdapter) -> TestClient:
    """Create a test client serving the temp storage root."""
    return TestClient(create_app(storage=storage))


def _assert_error(
    response: httpx.Response, status: int, code: str, message: str | None = None
) -> None:
    assert response.status_code == status
    body = response.json()
    assert body["code"] == code
    if message is not None:
        assert body["message"] == message
    assert body["request_id"] == response.headers["X-Request-Id"]


class TestBucketRoutes:
    """Tests for /buckets routes."""

    def test_create_bucket(self, client: TestClient, storage_root: Path) -> None:
        response = client.put("/buckets/b1")

        assert response.status_code == 201
        assert response.json() == {"ok": True}
        assert (storage_root / "b1").is_dir()

    def test_create_existing_bucket_conflicts(self, client: TestClient) -> None:
        client.put("/buckets/b1")
        response = client.put("/buckets/b1")

        _assert_error(response, 409, "BUCKET_ALREADY_EXISTS", "bucket already exists")

    def test_remove_bucket(self, client: TestClient, storage_root: Path) -> None:
        client.put("/buckets/b1")
        client.put("/buckets/b1/objects/a/b.txt", content=b"hi")

        response = client.delete("/buckets/b1")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert not (storage_root / "b1").exists()

    def test_remove_missing_bucket(self, client: TestClient) -> None:
        response = client.delete("/buckets/dne")

        _assert_error(response, 404, "BUCKET_NOT_FOUND", "bucket does not exist")

    def test_list_buckets_not_implemented(self, client: TestClient) -> None:
        response = client.get("/buckets")

        _assert_error(response, 501, "NOT_IMPLEMENTED")

    def test_backslash_in_bucket_name_rejected(
        self, client: TestClient, storage_root: Path
    ) -> None:
        response = client.put("/buckets/b1%5Cfoo")

        _assert_error(response, 400, "INVALID_NAME", "bucket name cannot contain slashes")
        assert not storage_root.exists()

    def test_backend_failure_is_500(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def denied(path: Path) -> None:
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(fs, "make_dirs", denied)

        response = client.put("/buckets/b1")

        _assert_error(response, 500, "STORAGE_BACKEND_ERROR", "Permission denied")


class TestObjectRoutes:
    """Tests for /buckets/{bucket}/objects routes."""

    def test_put_and_get_roundtrip(self, client: TestClient) -> None:
        client.put("/buckets/b1")
        payload = bytes(range(256)) * 40

        put = client.put("/buckets/b1/objects/data.bin", content=payload)
        get = client.get("/buckets/b1/objects/data.bin")

        assert put.status_code == 201
        assert put.json() == {"ok": True}
        assert get.status_code == 200
        assert get.content == payload
        assert get.headers["content-type"] == "application/octet-stream"

    def test_get_guesses_media_type(self, client: TestClient) -> None:
        client.put("/buckets/b1")
        client.put("/buckets/b1/objects/notes/readme.txt", content=b"woop woop")

        response = client.get("/buckets/b1/objects/notes/readme.txt")

        assert response.text == "woop woop"
        assert response.headers["content-type"].startswith("text/plain")

    def test_put_empty_body(self, client: TestClient) -> None:
        client.put("/buckets/b1")

        assert client.put("/buckets/b1/objects/empty", content=b"").status_code == 201
        assert client.get("/buckets/b1/objects/empty").content == b""

    def test_put_into_missing_bucket(self, client: TestClient, storage_root: Path) -> None:
        response = client.put("/buckets/dne/objects/x.txt", content=b"data")

        _assert_error(response, 404, "BUCKET_NOT_FOUND")
        assert not (storage_root / "dne").exists()

    def test_get_missing_object(self, client: TestClient) -> None:
        client.put("/buckets/b1")

        response = client.get("/buckets/b1/objects/nope.txt")

        _assert_error(response, 404, "OBJECT_NOT_FOUND", "object does not exist")

    def test_traversal_key_rejected(self, client: TestClient, storage_root: Path) -> None:
        client.put("/buckets/b1")

        response = client.put("/buckets/b1/objects/..%2Fescape.txt", content=b"data")

        _assert_error(response, 400, "INVALID_NAME")
        assert not (storage_root / "escape.txt").exists()

    def test_list_objects(self, client: TestClient) -> None:
        client.put("/buckets/b1")
        client.put("/buckets/b1/objects/z.txt", content=b"1")
        client.put("/buckets/b1/objects/a/b.txt", content=b"2")

        top = client.get("/buckets/b1/objects")
        nested = client.get("/buckets/b1/objects", params={"prefix": "a"})
        missing = client.get("/buckets/b1/objects", params={"prefix": "nope"})

        assert top.json() == {"ok": True, "objects": ["a", "z.txt"]}
        assert nested.json() == {"ok": True, "objects": ["b.txt"]}
        assert missing.json() == {"ok": True, "objects": []}

    def test_list_missing_bucket(self, client: TestClient) -> None:
        response = client.get("/buckets/dne/objects")

        _assert_error(response, 404, "BUCKET_NOT_FOUND")

    def test_delete_object(self, client: TestClient) -> None:
        client.put("/buckets/b1")
        client.put("/buckets/b1/objects/a/b.txt", content=b"hi")

        response = client.delete("/buckets/b1/objects/a/b.txt")

        assert response.status_code == 200
        listing = client.get("/buckets/b1/objects", params={"prefix": "a"})
        assert listing.json() == {"ok": True, "objects": []}
        _assert_error(client.delete("/buckets/b1/objects/a/b.txt"), 404, "OBJECT_NOT_FOUND")

    @pytest.mark.parametrize("method", ["put", "get"])
    def test_signed_url_not_implemented(
        self, client: TestClient, storage_root: Path, method: str
    ) -> None:
        url = "/buckets/b1/objects/x.txt"
        params = {"useSignedUrl": "true"}
        if method == "put":
            response = client.put(url, params=params, content=b"data")
        else:
            response = client.get(url, params=params)

        _assert_error(response, 501, "NOT_IMPLEMENTED")
        assert not storage_root.exists()

    def test_provided_request_id_is_echoed_on_errors(self, client: TestClient) -> None:
        response = client.get(
            "/buckets/dne/objects/x.txt", headers={"X-Request-Id": "req-12345"}
        )

        assert response.status_code == 404
        assert response.headers["X-Request-Id"] == "req-12345"
        assert response.json()["request_id"] == "req-12345"

    def test_streamed_object_closed_by_background_task(
        self, storage: FilesystemStorageAdapter, bucket: str
    ) -> None:
        """The read handle is released even if the client stops reading early."""
        asyncio.run(storage.put_object(bucket, "big.bin", b"x" * 64))

        response = asyncio.run(objects_routes.get_object(bucket, "big.bin", storage))
        stream = response.body_iterator

        assert isinstance(stream, ObjectStream)
        assert not stream.closed
        assert response.background is not None
        asyncio.run(response.background())
        assert stream.closed
