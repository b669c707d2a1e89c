"""
Summarizer API — Summarize Route Handler
==========================================

What:  POST /api/summarize, the only protected endpoint.

Request Flow:
    1. SecurityPipelineMiddleware: origin → browser → shield → session → signature
    2. FastAPI validates the JSON body against SummarizeRequest (400 on failure)
       and the text length is checked against the app's Settings (400)
    3. SummaryService calls the AI provider and computes stats
    4. 200 with {success: true, data: {summary, stats}}

Keep this handler thin: every security decision has already been made
by the time it runs.
"""

import logging

from fastapi import APIRouter, Request

from summarizer.schemas.summary import (
    ErrorResponse,
    SummarizeRequest,
    SummarizeResponse,
    check_text_length,
)
from summarizer.services.summary_service import summary_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Summarize"])


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    responses={
        400: {"description": "Bad signature, replayed or expired request, invalid body", "model": ErrorResponse},
        401: {"description": "No session credential", "model": ErrorResponse},
        403: {"description": "Origin, browser, bot or shield rejection", "model": ErrorResponse},
        413: {"description": "Request body too large", "model": ErrorResponse},
        429: {"description": "Rate limited", "model": ErrorResponse},
        503: {"description": "AI service unavailable", "model": ErrorResponse},
    },
    summary="Summarize text",
)
async def summarize(request: Request, body: SummarizeRequest) -> SummarizeResponse:
    config = request.app.state.settings
    check_text_length(body.text, config.min_text_length, config.max_text_length)
    logger.info("Summarize request: %d chars, length=%s", len(body.text), body.length)
    return await summary_service.summarize(body.text, body.length)
