"""Byte streams flowing into and out of stored objects.

put_object consumes an ObjectSource exactly once; get_object hands the caller
an ObjectStream that owns the open read handle until it is closed.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any, BinaryIO

from bucketfs.storage import fs

ObjectSource = bytes | bytearray | memoryview | BinaryIO | AsyncIterable[bytes] | Iterable[bytes]


async def iter_source(source: ObjectSource, chunk_size: int) -> AsyncIterator[bytes]:
    """Yield the bytes of a source in order, one pass.

    Accepts a bytes value, an object with a sync or async ``read(size)``
    (files, UploadFile), an async iterable of chunks, or a sync iterable of
    chunks. Empty chunks are skipped.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        if source:
            yield bytes(source)
        return

    read = getattr(source, "read", None)
    if callable(read):
        while True:
            if inspect.iscoroutinefunction(read):
                chunk = await read(chunk_size)
            else:
                chunk = await asyncio.to_thread(read, chunk_size)
            if not chunk:
                return
            yield bytes(chunk)

    if isinstance(source, AsyncIterable):
        async for chunk in source:
            if chunk:
                yield bytes(chunk)
        return

    for chunk in source:  # type: ignore[union-attr]
        if chunk:
            yield bytes(chunk)


async def copy_to_file(source: ObjectSource, handle: BinaryIO, chunk_size: int) -> int:
    """Copy a whole source into an open file handle.

    Does not close the handle. Errors from the source or the write propagate
    unchanged.

    Returns:
        Number of bytes written.
    """
    written = 0
    async for chunk in iter_source(source, chunk_size):
        await fs.write_chunk(handle, chunk)
        written += len(chunk)
    return written


class ObjectStream:
    """Readable stream over a stored object's content.

    The stream owns its file handle and is its own async iterator. Reaching
    the end, a failed read, aclose(), or leaving an ``async with`` block
    closes the handle; closing more than once is a no-op. A consumer that
    stops early must call aclose().
    """

    def __init__(self, handle: BinaryIO, *, chunk_size: int) -> None:
        self._handle = handle
        self._chunk_size = chunk_size
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes, or everything remaining when negative."""
        if self._closed:
            raise ValueError("read from closed object stream")
        return await fs.read_chunk(self._handle, size)

    async def read_all(self) -> bytes:
        """Read the remaining content and close the stream."""
        try:
            return await self.read()
        finally:
            await self.aclose()

    def __aiter__(self) -> ObjectStream:
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StopAsyncIteration
        try:
            chunk = await fs.read_chunk(self._handle, self._chunk_size)
        except BaseException:
            await self.aclose()
            raise
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        return chunk

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await fs.close(self._handle)

    async def __aenter__(self) -> ObjectStream:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
