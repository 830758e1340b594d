"""
BookBrief Backend — Summary Provider Interface
================================================

What:  Abstract contract for the external generative-AI summarizer.
Why:   SummarizationService depends on this interface only, so the Gemini
       implementation can be swapped (or mocked in tests) without touching
       the ingestion workflow. Strategy pattern.
Who:   Implemented by GeminiSummaryProvider; consumed by SummarizationService.

Contract:
    - generate_summary() returns the provider's text, or raises
      LLMServiceError / CircuitBreakerOpenError. It never returns a fallback
      itself; choosing a fallback is the caller's policy.
    - is_configured is False when credentials are absent. Callers must not
      call generate_summary() in that case.
"""

from abc import ABC, abstractmethod


class SummaryProvider(ABC):
    """Abstract interface for AI-powered text summarization."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider has the credentials it needs."""
        ...

    @abstractmethod
    async def generate_summary(self, prompt: str) -> str:
        """
        Send a fully built prompt to the provider and return its reply.

        Args:
            prompt: Instructions plus (already truncated) book text.

        Returns:
            The raw reply text, possibly empty.

        Raises:
            LLMServiceError: provider failed or timed out after all retries.
            CircuitBreakerOpenError: too many recent failures; call skipped.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability check used by GET /health."""
        ...
