"""
Summarizer API — Request Body Size Limit
==========================================

What:  Rejects request bodies larger than MAX_BODY_BYTES (1 MB) with 413.
Why:   FastAPI reads and JSON-decodes the whole body before field
       validation runs, so the text length rule alone does not bound memory.
How:   Pure ASGI middleware, since BaseHTTPMiddleware cannot watch the
       body stream:
         1. Content-Length above the limit → 413 before anything is read
         2. Otherwise buffer the body chunk by chunk; crossing the limit
            mid-stream → 413 (chunked uploads, understated Content-Length)
         3. Replay the buffered messages to the app

Installed inside the security pipeline: only allowed requests are read.
"""

import logging
from typing import Iterable, List

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

BODY_TOO_LARGE = "Request body too large"


async def _drain(receive: Receive, more_body: bool) -> None:
    while more_body:
        message = await receive()
        more_body = bool(message.get("more_body", False))


class BodySizeLimitMiddleware:
    """
    Args:
        limit_bytes: Largest accepted body.
        methods: HTTP methods whose bodies are checked.
    """

    def __init__(
        self,
        app: ASGIApp,
        limit_bytes: int,
        methods: Iterable[str] = ("POST", "PUT", "PATCH"),
    ):
        self.app = app
        self.limit_bytes = limit_bytes
        self.methods = frozenset(m.upper() for m in methods)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method", "").upper() not in self.methods:
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.limit_bytes:
            await self._reject(scope, receive, send, int(declared))
            return

        buffered: List[Message] = []
        size = 0
        while True:
            message = await receive()
            if message["type"] != "http.request":
                # Client went away; let the app see the disconnect.
                buffered.append(message)
                break
            size += len(message.get("body", b""))
            more_body = bool(message.get("more_body", False))
            if size > self.limit_bytes:
                await _drain(receive, more_body)
                await self._reject(scope, receive, send, size)
                return
            buffered.append(message)
            if not more_body:
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send, size: int) -> None:
        logger.warning(
            "Rejected %s %s: body of at least %d bytes exceeds %d",
            scope.get("method"),
            scope.get("path"),
            size,
            self.limit_bytes,
        )
        response = JSONResponse(
            status_code=413,
            content={"success": False, "error": BODY_TOO_LARGE},
        )
        await response(scope, receive, send)
