"""Response schemas for the bucketfs API."""

from pydantic import BaseModel


class OkResponse(BaseModel):
    """Successful mutation response."""

    ok: bool = True


class ObjectListResponse(BaseModel):
    """Listing response: names of the immediate entries under the prefix."""

    ok: bool = True
    objects: list[str]
