"""
BookBrief Backend — Summarization Service
===========================================

What:  Turns extracted book text into a prose summary.
Why:   One place decides between passthrough, AI summary and local fallback,
       so the workflows never deal with provider exceptions directly.
How:   Normalizes the text, short-circuits trivial input, otherwise asks the
       SummaryProvider and falls back to sentence extraction when it cannot.

Decision table:
    empty text                    → sentinel message               ok
    len ≤ passthrough threshold   → the normalized text itself      ok
    provider not configured       → local sentence summary          ok
    provider reply                → reply, trimmed                  ok
    provider error / timeout /
    open circuit / empty reply    → local sentence summary          degraded

summarize() never raises. The caller decides what "degraded" means:
initial ingestion keeps the degraded summary, regeneration reports it.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from app.config import settings
from app.exceptions import BookBriefError
from app.services.gemini_service import gemini_provider
from app.services.highlights import ELLIPSIS, normalize_whitespace
from app.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)

EMPTY_CONTENT_MESSAGE = "No content provided to summarize."

# Sentence boundary: a ., ! or ? followed by whitespace, so the period
# in "3.5" does not end a sentence.
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+")
_TERMINATORS = (".", "!", "?")


@dataclass(frozen=True)
class SummaryResult:
    """
    Outcome of a summarization call.

    Either ok (degraded=False) or degraded (degraded=True, reason set).
    A degraded result still carries a usable summary in `text`.
    """

    text: str
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, text: str) -> "SummaryResult":
        return cls(text=text)

    @classmethod
    def degraded_result(cls, text: str, reason: str) -> "SummaryResult":
        return cls(text=text, degraded=True, reason=reason)


class SummarizationService:
    """
    Provider-backed summarizer with a deterministic local fallback.

    All thresholds are constructor arguments so tests can pin them; the
    module singleton takes them from settings.
    """

    PROMPT_TEMPLATE = """You are summarizing a book for a reader deciding whether to read it.

Write a clear summary of 2-4 short paragraphs covering:
1. The central subject or plot
2. The main ideas, arguments or events
3. The tone and intended audience

Return ONLY the summary text, without headings, bullet points or commentary.

Book text:
{text}"""

    def __init__(
        self,
        provider: SummaryProvider,
        passthrough_chars: int = 280,
        input_max_chars: int = 30_000,
        fallback_sentence_count: int = 3,
        fallback_max_chars: int = 280,
    ):
        self.provider = provider
        self.passthrough_chars = passthrough_chars
        self.input_max_chars = input_max_chars
        self.fallback_sentence_count = fallback_sentence_count
        self.fallback_max_chars = fallback_max_chars

    async def summarize(self, text: str) -> SummaryResult:
        normalized = normalize_whitespace(text)

        if not normalized:
            return SummaryResult.ok(EMPTY_CONTENT_MESSAGE)

        if len(normalized) <= self.passthrough_chars:
            return SummaryResult.ok(normalized)

        if not self.provider.is_configured:
            logger.debug("No summary provider configured; using local summarizer")
            return SummaryResult.ok(self.local_summary(normalized))

        prompt = self.build_prompt(normalized)
        try:
            reply = await self.provider.generate_summary(prompt)
        except BookBriefError as e:
            logger.warning("Summary provider unavailable, using fallback: %s", e.message)
            return SummaryResult.degraded_result(self.local_summary(normalized), reason=e.message)
        except Exception as e:
            logger.error("Unexpected summary provider error, using fallback: %s", str(e), exc_info=True)
            return SummaryResult.degraded_result(
                self.local_summary(normalized),
                reason=f"Unexpected provider error ({type(e).__name__})",
            )

        summary = reply.strip() if reply else ""
        if not summary:
            logger.warning("Summary provider returned an empty reply, using fallback")
            return SummaryResult.degraded_result(
                self.local_summary(normalized),
                reason="Provider returned an empty summary",
            )
        return SummaryResult.ok(summary)

    def build_prompt(self, normalized_text: str) -> str:
        """Bounded prompt: input longer than input_max_chars is cut off."""
        if len(normalized_text) > self.input_max_chars:
            logger.info(
                "Truncating summary input from %d to %d chars",
                len(normalized_text),
                self.input_max_chars,
            )
            normalized_text = normalized_text[: self.input_max_chars]
        return self.PROMPT_TEMPLATE.format(text=normalized_text)

    def local_summary(self, normalized_text: str) -> str:
        """
        Deterministic summary: the first N sentences, or a length-bounded
        prefix when the text has no sentence boundaries.
        """
        sentences = split_sentences(normalized_text)
        if sentences:
            return " ".join(sentences[: self.fallback_sentence_count])

        if len(normalized_text) <= self.fallback_max_chars:
            return normalized_text
        cut = self.fallback_max_chars - len(ELLIPSIS)
        return normalized_text[:cut].rstrip() + ELLIPSIS


def split_sentences(text: str) -> List[str]:
    """Split on ., ! and ? terminators; returns [] when there are none."""
    pieces = (piece.strip() for piece in _SENTENCE_BREAK_RE.split(text.strip()))
    return [piece for piece in pieces if piece.endswith(_TERMINATORS)]


summarization_service = SummarizationService(
    provider=gemini_provider,
    passthrough_chars=settings.summary_passthrough_chars,
    input_max_chars=settings.summary_input_max_chars,
    fallback_sentence_count=settings.fallback_sentence_count,
    fallback_max_chars=settings.fallback_max_chars,
)
