"""bucketfs storage result models.

Provides typed dataclasses for the values storage operations return to the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class OperationResult:
    """Successful outcome of a mutating operation."""

    ok: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {"ok": self.ok}


@dataclass(frozen=True)
class ListObjectsResult:
    """Successful outcome of a listing.

    Attributes:
        objects: Names of the immediate entries under the listed path.
    """

    objects: list[str]
    ok: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {"ok": self.ok, "objects": list(self.objects)}


@dataclass(frozen=True)
class ErrorResult:
    """Structured failure returned in place of a success value.

    Attributes:
        status: HTTP-style status class (400, 404, 409, 501).
        code: Machine-readable error code (e.g., "BUCKET_NOT_FOUND").
        msg: Human-readable error message.
    """

    status: int
    code: str
    msg: str
    ok: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "status": self.status,
            "code": self.code,
            "msg": self.msg,
        }
