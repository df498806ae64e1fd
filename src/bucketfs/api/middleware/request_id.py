"""Request correlation for the bucketfs API.

Pure ASGI middleware (not BaseHTTPMiddleware) so streamed object bodies pass
through untouched in both directions.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


class RequestIdMiddleware:
    """Tag every HTTP request with an ID and echo it on the response.

    A non-blank incoming X-Request-Id is reused, otherwise a uuid4 is minted.
    Handlers read it from request.state.request_id.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip() or str(uuid.uuid4())
        request.state.request_id = request_id

        async def send_with_request_id(message: Any) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
                logger.debug(
                    "%s %s -> %s (request_id=%s)",
                    scope["method"],
                    scope["path"],
                    message["status"],
                    request_id,
                )
            await send(message)

        await self.app(scope, receive, send_with_request_id)
