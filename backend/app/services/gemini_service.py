"""
BookBrief Backend — Google Gemini Summary Provider
====================================================

What:  SummaryProvider implementation backed by Google Gemini.
Why:   Gemini's long context window fits whole book chapters in one prompt,
       and the free tier is enough for development.
How:   Prompt → generate_content_async, wrapped in a per-attempt timeout,
       tenacity retries with exponential backoff + jitter, and a circuit
       breaker shared by all requests.
Who:   Instantiated once at import; called by SummarizationService.

Resilience Strategy:
    1. asyncio.wait_for per attempt; expiry counts as a failed attempt
    2. tenacity AsyncRetrying for transient failures
    3. Circuit breaker so a dead provider costs <1ms per request, not 3 timeouts
    Every failure surfaces as LLMServiceError / CircuitBreakerOpenError, which
    SummarizationService converts into a degraded summary.

Configuration is injected through the constructor (api_key, model, timeout,
retry and breaker settings). The module-level singleton is built from
`settings`; tests build their own instances.
"""

import asyncio
import logging
import time
import uuid
from typing import Optional

import google.generativeai as genai
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import CircuitBreakerOpenError, LLMServiceError
from app.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding the provider.

    State Machine:
        CLOSED    → failure_count reaches threshold → OPEN
        OPEN      → calls rejected with CircuitBreakerOpenError
                  → after recovery_timeout seconds → HALF_OPEN
        HALF_OPEN → one trial call; success → CLOSED, failure → OPEN

    Not thread-safe; uvicorn async workers share one process and one event loop.
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
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError while OPEN and the recovery timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (provider recovered)")
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
# Gemini Provider
# ══════════════════════════════════════════════════════════════════════════

class GeminiSummaryProvider(SummaryProvider):
    """
    Google Gemini implementation of SummaryProvider.

    Error Handling Chain:
        attempt fails or times out → tenacity retries (max_attempts, backoff)
        → all attempts fail → circuit breaker records one failure
        → LLMServiceError raised to SummarizationService (→ fallback summary)
    """

    def __init__(
        self,
        api_key: str = "",
        model_name: str = "gemini-1.5-flash",
        timeout_seconds: float = 30.0,
        max_attempts: int = 3,
        min_wait: int = 2,
        max_wait: int = 10,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.circuit_breaker = circuit_breaker or CircuitBreaker()
        self.model = None

        if self.is_configured:
            # The SDK keeps credentials in module-level state
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name)
            logger.info(
                "GeminiSummaryProvider initialized with model=%s, timeout=%.0fs, "
                "circuit_breaker(threshold=%d, recovery=%ds)",
                model_name,
                timeout_seconds,
                self.circuit_breaker.failure_threshold,
                self.circuit_breaker.recovery_timeout,
            )
        else:
            logger.info("GeminiSummaryProvider has no API key; provider disabled")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != "your_gemini_api_key_here"

    async def generate_summary(self, prompt: str) -> str:
        """
        Ask Gemini for a summary of the prompt.

        Flow:
            1. Refuse if unconfigured (LLMServiceError)
            2. Check circuit breaker (may raise CircuitBreakerOpenError)
            3. Call Gemini with per-attempt timeout and retries
            4. Record success/failure in the circuit breaker
        """
        if not self.is_configured or self.model is None:
            raise LLMServiceError(
                message="Gemini API key is not configured",
                context={"reason": "not_configured"},
            )

        request_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        logger.info("[%s] Requesting Gemini summary (%d prompt chars)", request_id, len(prompt))

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.min_wait,
                    max=self.max_wait,
                    jitter=1,
                ),
                retry=retry_if_exception_type(Exception),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    summary = await self._call_gemini(prompt, request_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Gemini summarization failed after %d attempt(s): %s: %s",
                request_id,
                self.max_attempts,
                type(e).__name__,
                str(e),
            )
            raise LLMServiceError(
                message="AI summarization failed after multiple attempts.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={
                    "request_id": request_id,
                    "attempts": self.max_attempts,
                    "error_type": type(e).__name__,
                },
            ) from e

        self.circuit_breaker.record_success()
        return summary

    async def _call_gemini(self, prompt: str, request_id: str) -> str:
        """One attempt: the actual API call, bounded by timeout_seconds."""
        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(prompt),
                timeout=self.timeout_seconds,
            )
            # .text raises ValueError when the reply was blocked; counts as a failure
            text = response.text.strip() if response.text else ""
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "[%s] Gemini call failed after %.0fms: %s",
                request_id,
                duration_ms,
                type(e).__name__ if isinstance(e, asyncio.TimeoutError) else str(e),
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "[%s] Gemini summary completed in %.0fms (%d chars)",
            request_id,
            duration_ms,
            len(text),
        )
        return text

    async def health_check(self) -> bool:
        """
        Lists available models; costs no tokens.

        Returns False when unconfigured or unreachable.
        """
        if not self.is_configured:
            return False
        try:
            models = await asyncio.to_thread(lambda: list(genai.list_models()))
            target = f"models/{self.model_name}"
            if target not in [m.name for m in models]:
                logger.warning("Configured model %s not found in available models", target)
            return True
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False


gemini_provider = GeminiSummaryProvider(
    api_key=settings.gemini_api_key,
    model_name=settings.gemini_model,
    timeout_seconds=settings.summary_timeout_seconds,
    max_attempts=settings.retry_max_attempts,
    min_wait=settings.retry_min_wait,
    max_wait=settings.retry_max_wait,
    circuit_breaker=CircuitBreaker(
        failure_threshold=settings.cb_failure_threshold,
        recovery_timeout=settings.cb_recovery_timeout,
    ),
)
