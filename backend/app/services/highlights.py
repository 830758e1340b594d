"""
BookBrief Backend — Highlight Extraction
==========================================

What:  Derives the short highlight shown on book cards from a summary.
How:   Pure string function, no I/O. Cuts at the nicest boundary it can find
       near the length limit.

Cut preference inside the window text[:max_length]:
    1. last sentence end (. ! ?) within the final 50 chars → cut after it
    2. last space within the final 20 chars              → cut there + "..."
    3. otherwise                                          → hard cut + "..."

The ellipsis is appended AFTER the cut, so a highlight can be up to
max_length + len(ELLIPSIS) characters long.
"""

import re

ELLIPSIS = "..."

SENTENCE_WINDOW = 50
WORD_WINDOW = 20

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def extract_highlight(text: str, max_length: int = 180) -> str:
    """
    Build a bounded highlight from `text`.

    Idempotent for short results: feeding back an output that is already
    <= max_length returns it unchanged.

    Example:
        >>> len(extract_highlight("a" * 300, 180))
        183
    """
    normalized = normalize_whitespace(text)
    if not normalized:
        return ""
    if len(normalized) <= max_length:
        return normalized

    window = normalized[:max_length]

    sentence_floor = max(0, max_length - SENTENCE_WINDOW)
    sentence_end = max(window.rfind(mark) for mark in ".!?")
    if sentence_end >= sentence_floor:
        return window[: sentence_end + 1]

    word_floor = max(0, max_length - WORD_WINDOW)
    last_space = window.rfind(" ")
    if last_space >= word_floor and last_space > 0:
        return window[:last_space].rstrip() + ELLIPSIS

    return window + ELLIPSIS
