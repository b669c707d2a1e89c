"""
Summarizer API — Summary Service (Business Handler)
=====================================================

What:  Runs one summarization and computes the stats returned to the client.
Who:   Called by POST /api/summarize, only after the security pipeline
       allowed the request and the body passed validation.
"""

import logging
import time
from typing import Optional

from summarizer.schemas.summary import SummarizeResponse, SummaryData, SummaryStats
from summarizer.services.gemini_service import gemini_service
from summarizer.services.llm_base import LLMService

logger = logging.getLogger(__name__)

# Reading speed used for "time saved", words per minute.
WORDS_PER_MINUTE = 200


def _word_count(text: str) -> int:
    return len(text.split())


def compute_stats(text: str, summary: str, processing_time_ms: int) -> SummaryStats:
    original_words = _word_count(text)
    summary_words = _word_count(summary)
    reduction = round((1 - summary_words / original_words) * 100) if original_words else 0
    saved_minutes = round((original_words - summary_words) / WORDS_PER_MINUTE)
    return SummaryStats(
        original_length=len(text),
        summary_length=len(summary),
        original_words=original_words,
        summary_words=summary_words,
        reduction_percent=max(0, reduction),
        estimated_reading_time_saved=max(0, saved_minutes),
        processing_time_ms=processing_time_ms,
    )


class SummaryService:
    """
    Stateless orchestrator around an LLMService.

    Errors from the provider (LLMServiceError, CircuitBreakerOpenError)
    propagate unchanged to the global exception handlers.
    """

    def __init__(self, llm: Optional[LLMService] = None):
        self.llm = llm or gemini_service

    async def summarize(self, text: str, length: str) -> SummarizeResponse:
        start = time.perf_counter()
        summary = await self.llm.summarize(text, length)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        stats = compute_stats(text, summary, elapsed_ms)
        logger.info(
            "Summarized %d words into %d (%d%% reduction) in %dms",
            stats.original_words,
            stats.summary_words,
            stats.reduction_percent,
            elapsed_ms,
        )
        return SummarizeResponse(data=SummaryData(summary=summary, stats=stats))


summary_service = SummaryService()
