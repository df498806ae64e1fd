"""Awaitable filesystem primitives.

Each blocking os/shutil call runs via asyncio.to_thread() so storage
operations never block the event loop. These functions raise OSError
unchanged; mapping onto the storage error taxonomy is the caller's job.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path
from typing import BinaryIO


async def stat(path: Path) -> os.stat_result:
    return await asyncio.to_thread(os.stat, path)


async def make_dirs(path: Path) -> None:
    """Create a directory and any missing ancestors."""
    await asyncio.to_thread(os.makedirs, path, exist_ok=True)


async def make_dir(path: Path) -> None:
    """Create one directory. Raises FileExistsError if anything is already there."""
    await asyncio.to_thread(os.mkdir, path)


async def remove_tree(path: Path) -> None:
    """Delete a directory and everything beneath it, children first."""
    await asyncio.to_thread(shutil.rmtree, path)


async def unlink(path: Path) -> None:
    await asyncio.to_thread(os.unlink, path)


def _entry_names(path: Path) -> list[str]:
    with os.scandir(path) as entries:
        return sorted(entry.name for entry in entries)


async def list_dir(path: Path) -> list[str]:
    """Return the names of the immediate entries of a directory, sorted."""
    return await asyncio.to_thread(_entry_names, path)


async def open_file(path: Path, mode: str) -> BinaryIO:
    """Open a file in binary mode ("rb" or "wb")."""
    handle: BinaryIO = await asyncio.to_thread(open, path, mode)  # noqa: SIM115
    return handle


async def read_chunk(handle: BinaryIO, size: int) -> bytes:
    return await asyncio.to_thread(handle.read, size)


async def write_chunk(handle: BinaryIO, data: bytes) -> None:
    await asyncio.to_thread(handle.write, data)


async def close(handle: BinaryIO) -> None:
    await asyncio.to_thread(handle.close)
