"""
Summarizer API — Google Gemini Summarization Service
======================================================

What:  Concrete LLMService that summarizes text with Google Gemini.
Who:   Instantiated once at import; called by SummaryService for each
       request that made it through the security pipeline.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter for transient failures
    2. Circuit breaker so a Gemini outage fails fast instead of piling up
    3. Provider error text is mapped to a client-safe message
"""

import logging
import time
import uuid
from typing import Optional

import google.generativeai as genai
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from summarizer.config import settings
from summarizer.exceptions import CircuitBreakerOpenError, LLMServiceError
from summarizer.services.llm_base import LLMService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker around the Gemini call.

    State Machine:
        CLOSED    → failures counted; at threshold → OPEN
        OPEN      → calls rejected with CircuitBreakerOpenError;
                    after recovery_timeout → HALF_OPEN
        HALF_OPEN → one trial call; success → CLOSED, failure → OPEN
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns:
            True if a call may proceed.

        Raises:
            CircuitBreakerOpenError while OPEN and still inside recovery_timeout.
        """
        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed < self.recovery_timeout:
                raise CircuitBreakerOpenError(
                    recovery_time=max(1, int(self.recovery_timeout - elapsed))
                )
            logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Service
# ══════════════════════════════════════════════════════════════════════════

LENGTH_INSTRUCTIONS = {
    "short": "Provide a very brief summary in 2-3 sentences, capturing only the most essential points.",
    "medium": "Provide a balanced summary in 4-6 sentences, covering the main points and key details.",
    "long": (
        "Provide a comprehensive summary in 7-10 sentences, including main points, "
        "supporting details, and important nuances."
    ),
}

SUMMARY_PROMPT = """You are an expert text summarizer. Summarize the following text.

{instruction}

Guidelines:
- Maintain the original meaning and context
- Preserve important facts, numbers, and names
- Do not add information not present in the original text

Text to summarize:
\"\"\"
{text}
\"\"\"

Summary:"""


def _client_message(error: Exception) -> str:
    """Map provider error text to a message that is safe to show users."""
    text = str(error)
    if "API key" in text:
        return "AI service configuration error"
    if "quota" in text:
        return "AI service quota exceeded. Please try again later."
    if "blocked" in text:
        return "Content could not be processed. Please try different text."
    return "Failed to generate summary. Please try again."


class GeminiService(LLMService):
    """Google Gemini implementation of LLMService."""

    def __init__(self):
        if settings.gemini_api_key and settings.gemini_api_key != "your_gemini_api_key_here":
            genai.configure(api_key=settings.gemini_api_key)

        self.model = genai.GenerativeModel(
            settings.gemini_model,
            generation_config={
                "temperature": 0.4,
                "top_p": 0.8,
                "top_k": 40,
                "max_output_tokens": 2048,
            },
        )

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiService initialized with model=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            settings.gemini_model,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    async def summarize(self, text: str, length: str) -> str:
        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        logger.info("[%s] Starting Gemini summary (%d chars, %s)", request_id, len(text), length)

        prompt = SUMMARY_PROMPT.format(
            instruction=LENGTH_INSTRUCTIONS.get(length, LENGTH_INSTRUCTIONS["medium"]),
            text=text,
        )
        try:
            summary = await self._call_gemini_with_retry(prompt, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini summarization failed: %s", request_id, str(e), exc_info=True)
            raise LLMServiceError(
                message=_client_message(e),
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        return summary

    @retry(
        retry=retry_if_exception_type(Exception),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini_with_retry(self, prompt: str, request_id: str) -> str:
        """Single Gemini call; tenacity retries it, the circuit breaker does not."""
        start_time = time.time()
        response = await self.model.generate_content_async(
            prompt,
            request_options={"timeout": 60},
        )
        summary = response.text.strip() if response.text else ""
        if not summary:
            raise ValueError("Empty response from AI model")

        logger.info(
            "[%s] Gemini summary completed in %.0fms, %d chars",
            request_id,
            (time.time() - start_time) * 1000,
            len(summary),
        )
        return summary

    async def health_check(self) -> bool:
        """Lists models: verifies key and connectivity without spending tokens."""
        try:
            models = genai.list_models()
            target = f"models/{settings.gemini_model}"
            if target not in [m.name for m in models]:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


gemini_service = GeminiService()
