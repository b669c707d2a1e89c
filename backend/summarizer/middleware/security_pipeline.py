"""
Summarizer API — Security Pipeline Middleware
===============================================

What:  Applies the SecurityPipeline to protected paths and turns a denial
       into an error response.
Why:   Running as middleware means the pipeline executes before FastAPI
       reads or validates the request body. Garbage bodies from unverified
       clients are never parsed.
How:   For POST requests to a protected path, evaluate the pipeline.
       Deny → JSON envelope with the stage's status code. Allow → continue,
       then copy the rate-limit headers onto the handler's response.

Response on denial:
    {"success": false, "error": "<message>", "retryAfter": <seconds>?}
    429 responses also carry Retry-After.
"""

from typing import FrozenSet, Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from summarizer.security.pipeline import SecurityPipeline

DEFAULT_PROTECTED_PATHS = frozenset({"/api/summarize"})


class SecurityPipelineMiddleware(BaseHTTPMiddleware):
    """
    Gatekeeper for protected endpoints.

    Only POSTs are gated. CORS preflights (OPTIONS) and every other path,
    including /api/health, pass straight through.
    """

    def __init__(
        self,
        app: ASGIApp,
        pipeline: SecurityPipeline,
        protected_paths: Iterable[str] = DEFAULT_PROTECTED_PATHS,
    ):
        super().__init__(app)
        self.pipeline = pipeline
        self.protected_paths: FrozenSet[str] = frozenset(protected_paths)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path.rstrip("/") not in self.protected_paths:
            return await call_next(request)

        decision = await self.pipeline.evaluate(request)

        if not decision.allowed:
            headers = dict(decision.headers)
            if decision.retry_after is not None:
                headers["Retry-After"] = str(decision.retry_after)
            return JSONResponse(
                status_code=decision.status_code,
                content=decision.to_body(),
                headers=headers,
            )

        response = await call_next(request)
        for name, value in decision.headers.items():
            response.headers[name] = value
        return response
