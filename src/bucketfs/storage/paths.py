"""Name validation and path resolution for bucketfs.

Bucket names are a single flat segment. Object names may contain "/" to
address sub-folders. Neither may contain a ".." segment. Validation runs
before any filesystem access.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from bucketfs.storage.errors import InvalidNameError

_SEPARATORS = ("/", "\\")
_SEGMENT_SPLIT = re.compile(r"[/\\]")


def resolve_path(root: str | Path, *segments: str) -> Path:
    """Join segments onto root and normalize the result.

    Leading separators are stripped from each segment so that a segment can
    never replace the root. "." and ".." are collapsed syntactically; this
    function does not reject traversal, callers validate names first.

    Args:
        root: Absolute storage root.
        segments: Untrusted name segments (bucket, object key, prefix).

    Returns:
        Absolute, normalized path.
    """
    parts = [segment.lstrip("/\\") for segment in segments if segment]
    joined = os.path.join(os.fspath(root), *parts)
    return Path(os.path.normpath(os.path.abspath(joined)))


def is_within_root(root: Path, path: Path) -> bool:
    """Check that a resolved path is the root or lies beneath it."""
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def reject_traversal(name: str, kind: str = "bucket") -> None:
    """Reject names containing a parent-directory segment or a null byte."""
    if "\x00" in name or any(segment == ".." for segment in _SEGMENT_SPLIT.split(name)):
        raise InvalidNameError(f"{kind} name cannot contain relative path parts")


def reject_separators(name: str, kind: str = "bucket") -> None:
    """Reject names containing a forward or backward slash."""
    if any(sep in name for sep in _SEPARATORS):
        raise InvalidNameError(f"{kind} name cannot contain slashes")


def validate_bucket_name(name: str) -> None:
    if not name:
        raise InvalidNameError("bucket name is required")
    if name == ".":
        # would resolve to the storage root itself
        raise InvalidNameError("bucket name cannot contain relative path parts")
    reject_traversal(name, "bucket")
    reject_separators(name, "bucket")


def validate_object_name(name: str) -> None:
    # "/" alone would address the bucket directory itself
    if not name or not name.strip("/\\"):
        raise InvalidNameError("object name is required")
    reject_traversal(name, "object")


def validate_prefix(prefix: str) -> None:
    if prefix:
        reject_traversal(prefix, "prefix")
