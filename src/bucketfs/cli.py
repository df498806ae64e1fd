"""bucketfs CLI - run storage operations against a local root.

Usage:
    python -m bucketfs [--root DIR] mb NAME
    python -m bucketfs [--root DIR] rb NAME
    python -m bucketfs [--root DIR] ls BUCKET [--prefix PREFIX]
    python -m bucketfs [--root DIR] put BUCKET KEY [--file PATH]
    python -m bucketfs [--root DIR] get BUCKET KEY [--out PATH]
    python -m bucketfs [--root DIR] rm BUCKET KEY

--root defaults to BUCKETFS_STORAGE_ROOT. Results are printed as JSON,
except for `get` without --out, which writes the object bytes to stdout.

Exit codes:
    0: Success
    1: Operation returned an error result / storage backend failure
    2: Configuration error (no storage root)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from bucketfs.storage.adapter import FilesystemStorageAdapter
from bucketfs.storage.config import get_storage_root
from bucketfs.storage.errors import StorageBackendError, StorageConfigError
from bucketfs.storage.models import ErrorResult
from bucketfs.storage.streams import ObjectStream


def _output_json(data: dict[str, Any]) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _make_error_result(code: str, message: str) -> dict[str, Any]:
    return {"ok": False, "code": code, "msg": message}


async def _write_stream(stream: ObjectStream, out_path: str | None) -> None:
    """Copy an object stream to a file or stdout, closing the stream."""
    async with stream:
        if out_path and out_path != "-":
            with open(out_path, "wb") as f:
                async for chunk in stream:
                    f.write(chunk)
        else:
            async for chunk in stream:
                sys.stdout.buffer.write(chunk)
            sys.stdout.buffer.flush()


async def _run(args: argparse.Namespace, storage: FilesystemStorageAdapter) -> int:
    """Dispatch a parsed command to the adapter."""
    command = args.command

    if command == "mb":
        result: Any = await storage.make_bucket(args.name)
    elif command == "rb":
        result = await storage.remove_bucket(args.name)
    elif command == "ls":
        result = await storage.list_objects(args.bucket, args.prefix)
    elif command == "rm":
        result = await storage.remove_object(args.bucket, args.key)
    elif command == "put":
        if args.file and args.file != "-":
            with open(args.file, "rb") as source:
                result = await storage.put_object(args.bucket, args.key, source)
        else:
            result = await storage.put_object(args.bucket, args.key, sys.stdin.buffer)
    elif command == "get":
        result = await storage.get_object(args.bucket, args.key)
        if isinstance(result, ObjectStream):
            await _write_stream(result, args.out)
            if args.out and args.out != "-":
                _output_json({"ok": True})
            return 0
    else:
        raise ValueError(f"Unknown command: {command}")

    _output_json(result.to_dict())
    return 1 if isinstance(result, ErrorResult) else 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bucketfs",
        description="bucketfs - bucket/object storage on a local filesystem",
    )
    parser.add_argument(
        "--root",
        default=None,
        metavar="DIR",
        help="Storage root directory (default: $BUCKETFS_STORAGE_ROOT)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    mb_parser = subparsers.add_parser("mb", help="Create a bucket")
    mb_parser.add_argument("name", help="Bucket name")

    rb_parser = subparsers.add_parser("rb", help="Remove a bucket and its objects")
    rb_parser.add_argument("name", help="Bucket name")

    ls_parser = subparsers.add_parser("ls", help="List entries in a bucket")
    ls_parser.add_argument("bucket", help="Bucket name")
    ls_parser.add_argument("--prefix", default="", help="Sub-folder to list")

    put_parser = subparsers.add_parser("put", help="Write an object")
    put_parser.add_argument("bucket", help="Bucket name")
    put_parser.add_argument("key", help="Object key (may contain '/')")
    put_parser.add_argument(
        "--file",
        default=None,
        metavar="PATH",
        help="File to upload (reads from stdin if omitted or '-')",
    )

    get_parser = subparsers.add_parser("get", help="Read an object")
    get_parser.add_argument("bucket", help="Bucket name")
    get_parser.add_argument("key", help="Object key")
    get_parser.add_argument(
        "--out",
        default=None,
        metavar="PATH",
        help="Destination file (writes to stdout if omitted or '-')",
    )

    rm_parser = subparsers.add_parser("rm", help="Remove an object")
    rm_parser.add_argument("bucket", help="Bucket name")
    rm_parser.add_argument("key", help="Object key")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (see module docstring).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        storage = FilesystemStorageAdapter(args.root or get_storage_root())
    except StorageConfigError as e:
        _output_json(_make_error_result("CONFIG_ERROR", str(e)))
        return 2

    try:
        return asyncio.run(_run(args, storage))
    except StorageBackendError as e:
        _output_json(_make_error_result(e.code, e.message))
        return 1
    except OSError as e:
        # local --file/--out paths, not the storage root
        _output_json(_make_error_result("IO_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
