"""
Summarizer API — Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions raised behind the security pipeline.
Why:   Pipeline stages report expected rejections as AccessDecision values.
       Failures that happen inside the handler (bad body, AI outage) are
       exceptions, translated to the same error envelope by the global
       handlers in main.py.

Exception Hierarchy:
    SummarizerError (base)
    ├── ValidationError          → 400 Bad Request (malformed body)
    ├── LLMServiceError          → 503 Service Unavailable (AI upstream failed)
    └── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)

    Anything else is an internal error → 500, message hidden outside development.
"""

from typing import Any, Dict, Optional


class SummarizerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SummarizerError):
    """
    Raised when the request body fails business validation.

    HTTP: 400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class LLMServiceError(SummarizerError):
    """
    Raised when the AI summarization call fails after all retries.

    HTTP: 503 Service Unavailable

    retry_after is the suggested wait before the client tries again
    (taken from the circuit breaker recovery timeout when known).
    """

    def __init__(
        self,
        message: str = "Failed to generate summary. Please try again.",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(SummarizerError):
    """
    Raised when the circuit breaker is OPEN after repeated AI failures.

    HTTP: 503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "AI service is temporarily unavailable due to repeated failures. "
            f"Please try again in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time
