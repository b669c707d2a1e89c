"""
Summarizer API — Request ID Middleware
========================================

What:  Assigns a correlation ID to each request and echoes it in X-Request-ID.
Why:   Pipeline denials, shield failures and AI errors are logged from
       different modules. A shared ID ties them to one request.
How:   Reuses a client-supplied X-Request-ID when it looks sane, otherwise
       generates a short UUID. Stored in a ContextVar (coroutine-local) and
       in request.state.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in log lines; keep them short and printable.
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        supplied = request.headers.get("X-Request-ID", "")
        rid = supplied if _VALID_REQUEST_ID.match(supplied) else str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
