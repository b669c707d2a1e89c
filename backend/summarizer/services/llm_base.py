"""
Summarizer API — Abstract LLM Service Interface
=================================================

What:  Contract for AI summarization providers.
Why:   The summary service and the health route depend on this interface,
       not on Gemini, so tests can swap in a mock and providers can change
       without touching callers.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Abstract interface for AI-powered text summarization.

    Contract:
        - summarize() returns a non-empty summary string
        - Implementations handle their own retry logic and error translation
        - Provider errors surface as LLMServiceError / CircuitBreakerOpenError
    """

    @abstractmethod
    async def summarize(self, text: str, length: str) -> str:
        """
        Summarize `text`.

        Args:
            text: Validated, sanitized input text.
            length: "short", "medium" or "long".

        Raises:
            LLMServiceError: The provider failed after all retries.
            CircuitBreakerOpenError: Too many recent failures.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the provider is reachable. Must not consume quota."""
        ...
