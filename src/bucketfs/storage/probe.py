"""Existence probing for resolved storage paths.

A probe is a non-mutating stat with three outcomes. "Not found" is ABSENT,
any other OS failure is ERROR (surfaced to the caller, never read as
absent), and a successful stat is EXISTS.
"""

from __future__ import annotations

import logging
import stat as stat_module
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from bucketfs.storage import fs
from bucketfs.storage.errors import ObjectStorageError, StorageBackendError

logger = logging.getLogger(__name__)


class Presence(str, Enum):
    """Outcome of probing a path."""

    EXISTS = "exists"
    ABSENT = "absent"
    ERROR = "error"


@dataclass(frozen=True)
class ProbeResult:
    """Result of a probe.

    Attributes:
        presence: Tri-state outcome.
        is_dir: True when the path exists and is a directory.
        error: The OS error when presence is ERROR.
    """

    presence: Presence
    is_dir: bool = False
    error: OSError | None = None

    @property
    def exists(self) -> bool:
        return self.presence is Presence.EXISTS

    @property
    def absent(self) -> bool:
        return self.presence is Presence.ABSENT


async def probe(path: Path) -> ProbeResult:
    """Stat a path and classify the outcome."""
    try:
        result = await fs.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        # a file standing in for an intermediate directory also means absent
        return ProbeResult(Presence.ABSENT)
    except OSError as e:
        logger.warning("Probe failed for %s: %s", path, e)
        return ProbeResult(Presence.ERROR, error=e)
    return ProbeResult(Presence.EXISTS, is_dir=stat_module.S_ISDIR(result.st_mode))


def _raise_probe_error(result: ProbeResult, missing: ObjectStorageError) -> None:
    assert result.error is not None
    raise StorageBackendError.from_os_error(
        result.error, bucket=missing.bucket, key=missing.key
    ) from result.error


async def require_exists(path: Path, missing: ObjectStorageError) -> ProbeResult:
    """Require path to exist.

    Args:
        path: Resolved path to probe.
        missing: Error to raise when the path is absent.

    Returns:
        The EXISTS probe result.

    Raises:
        ObjectStorageError: ``missing`` when absent.
        StorageBackendError: When the probe itself failed.
    """
    result = await probe(path)
    if result.presence is Presence.ERROR:
        _raise_probe_error(result, missing)
    if result.absent:
        raise missing
    return result


async def require_absent(path: Path, present: ObjectStorageError) -> ProbeResult:
    """Require path to be absent, raising ``present`` if it exists."""
    result = await probe(path)
    if result.presence is Presence.ERROR:
        _raise_probe_error(result, present)
    if result.exists:
        raise present
    return result
