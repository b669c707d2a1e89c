"""
Summarizer API — Access Logging Middleware
============================================

What:  One log line per request: method, path, status, duration, request ID
       and client identity.
Why:   Security denials show up here as 4xx WARNING lines, which is what
       abuse monitoring keys on.
How:   Level follows status: 5xx → ERROR, 4xx → WARNING, else INFO.

What we log vs what we DON'T log:
    ✅ method, path, status, duration, client IP, request ID
    ❌ request body (user text), Authorization, X-Request-Signature
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from summarizer.middleware.request_id import request_id_var
from summarizer.security.identity import client_identity

logger = logging.getLogger("summarizer.access")

QUIET_PATHS = frozenset({"/api/health"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, trust_proxy: bool = False, proxy_hops: int = 1):
        super().__init__(app)
        self.trust_proxy = trust_proxy
        self.proxy_hops = proxy_hops

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        # Health probes run every few seconds
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        rid = request_id_var.get("")
        client = client_identity(request, self.trust_proxy, self.proxy_hops)
        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client,
            },
        )
        return response
