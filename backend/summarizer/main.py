"""
Summarizer API — FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the process-scoped security state, wires the
       middleware chain and routes, and registers exception handlers.
Who:   Called by uvicorn (uvicorn summarizer.main:app) and by tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware (outermost first):                           │
    │  SecurityHeaders → RequestID → Logging → CORS → Pipeline │
    │  → BodyLimit (413 over MAX_BODY_BYTES)                   │
    │                                                          │
    │  Security Pipeline (POST /api/summarize only):           │
    │  Origin → Browser → AbuseShield → Session → Signature    │
    │                                                          │
    │  Routes:                                                 │
    │  POST /api/summarize   GET /api/health   GET /           │
    │                                                          │
    │  Exception Handlers:                                     │
    │  body→400 │ LLM→503 │ circuit→503 │ HTTP→status │ *→500  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, start security sweeper
    Shutdown: stop sweeper, close the shield HTTP client
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from summarizer import __version__
from summarizer.config import Settings, settings
from summarizer.exceptions import CircuitBreakerOpenError, LLMServiceError, ValidationError
from summarizer.middleware.body_limit import BodySizeLimitMiddleware
from summarizer.middleware.logging import RequestLoggingMiddleware
from summarizer.middleware.request_id import RequestIDMiddleware, request_id_var
from summarizer.middleware.security_headers import SECURITY_HEADERS, SecurityHeadersMiddleware
from summarizer.middleware.security_pipeline import SecurityPipelineMiddleware
from summarizer.routes import health, summarize
from summarizer.security.shield import ShieldProvider
from summarizer.security.state import build_pipeline, build_security_state

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure application-wide logging once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (container runtimes capture stdout).
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    config: Settings = app.state.settings
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Summarizer API starting up (environment=%s)", config.environment)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks should still report the problem
        logger.error("Configuration error: %s", str(e))

    app.state.security.start_sweeper()
    logger.info(
        "Security pipeline ready: origins=%s (%s match), %d req/%ds, shield=%s",
        config.cors_origins_list,
        config.origin_match_mode,
        config.rate_limit_requests,
        config.rate_limit_window_ms // 1000,
        "external" if app.state.security.shield_provider else "local",
    )
    logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Summarizer API shutting down...")
    await app.state.security.shutdown()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str, retry_after: Optional[int] = None, headers=None):
    content = {"success": False, "error": message}
    if retry_after is not None:
        content["retryAfter"] = retry_after
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    error = errors[0]
    message = str(error.get("msg", "Invalid request body"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{location}: {message}" if location else message


def register_exception_handlers(app: FastAPI, config: Settings) -> None:
    """
    Map exceptions to the uniform {success: false, error, retryAfter?} envelope.

    Handler hierarchy:
        RequestValidationError  → 400 (malformed JSON, wrong types, length rules)
        ValidationError         → 400
        CircuitBreakerOpenError → 503 + Retry-After
        LLMServiceError         → 503 + Retry-After when known
        HTTPException           → its own status (404 for unknown routes)
        Exception               → 500, details only in development
    """

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _first_validation_message(exc)
        logger.warning("[%s] Body validation failed: %s", request_id_var.get(""), message)
        return _error(400, message)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error(400, exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return _error(
            503,
            exc.message,
            retry_after=exc.recovery_time,
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error(
            "[%s] LLM service error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error(503, exc.message, retry_after=exc.retry_after, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        return _error(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Top-level boundary. Runs outside the middleware stack, so the
        security headers and the request ID are attached here explicitly.
        """
        request_id = getattr(request.state, "request_id", "") or request_id_var.get("")
        logger.error("[%s] Unhandled error: %s", request_id, str(exc), exc_info=True)
        message = str(exc) if config.is_development else "Internal server error"
        headers = dict(SECURITY_HEADERS)
        if request_id:
            headers["X-Request-ID"] = request_id
        return _error(500, message, headers=headers)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    config: Optional[Settings] = None,
    clock: Callable[[], float] = time.time,
    shield_provider: Optional[ShieldProvider] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to use; defaults to the module singleton.
        clock: Time source for the security stores (tests pass a fake).
        shield_provider: Overrides the provider built from SHIELD_URL.
    """
    config = config or settings

    app = FastAPI(
        title="Summarizer API",
        description="AI text summarization behind a layered request-security pipeline.",
        version=__version__,
        lifespan=lifespan,
    )

    security_state = build_security_state(config, clock=clock, shield_provider=shield_provider)
    app.state.settings = config
    app.state.security = security_state
    pipeline = build_pipeline(config, security_state, clock=clock)

    # Middleware executes in REVERSE order of addition (last added = outermost).
    app.add_middleware(BodySizeLimitMiddleware, limit_bytes=config.max_body_bytes)
    app.add_middleware(SecurityPipelineMiddleware, pipeline=pipeline)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Authorization",
            "X-Request-Timestamp",
            "X-Request-Signature",
            "X-Request-Nonce",
            "X-User-Id",
            "X-Request-ID",
        ],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "X-Request-ID",
            "Retry-After",
        ],
        max_age=86400,
    )
    app.add_middleware(
        RequestLoggingMiddleware,
        trust_proxy=config.trust_proxy,
        proxy_hops=config.proxy_hops,
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app, config)

    app.include_router(summarize.router)
    app.include_router(health.router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"name": "AI Text Summarizer API", "version": __version__, "status": "running"}

    return app


app = create_app()
