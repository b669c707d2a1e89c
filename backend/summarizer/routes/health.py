"""
Summarizer API — Health Check Route
=====================================

What:  GET /api/health, unauthenticated and outside the security pipeline.
Why:   Load balancers and uptime monitors must reach it without signatures.

Status levels:
    healthy:  Gemini reachable
    degraded: Gemini unreachable or circuit open (the API still answers;
              summarize calls will return 503)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from summarizer import __version__
from summarizer.schemas.summary import HealthResponse
from summarizer.services.gemini_service import gemini_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    gemini_status = "available"
    overall = "healthy"

    if gemini_service.circuit_breaker.state == "open":
        gemini_status = "circuit_open"
        overall = "degraded"
    elif not await gemini_service.health_check():
        gemini_status = "unavailable"
        overall = "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        gemini=gemini_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
