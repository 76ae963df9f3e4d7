"""
Snippet Builder

Turns a span into the human-readable sentence that contains it.
Snippets are what the UI shows, what the annotation applier
re-finds in the live document, and what the summarizer reads.
"""

from __future__ import annotations

import re

SEARCH_WINDOW = 500
MIN_SENTENCE_LEN = 30
MAX_SNIPPET_LEN = 500
ELLIPSIS = "…"

_SENTENCE_END = re.compile(r"[.!?](?:\s|$)")


def _strip_with_offset(raw: str, offset: int) -> tuple[str, int]:
    """Strip ``raw`` and shift ``offset`` by the leading whitespace removed."""
    lead = len(raw) - len(raw.lstrip())
    return raw.strip(), offset - lead


def make_snippet(text: str, start: int, end: int, window: int = 250) -> str:
    """
    Extract the sentence containing ``text[start:end]``.

    Sentence boundaries are searched within ±500 chars of the hit.
    Sentences shorter than 30 chars (usually an abbreviation broke
    the boundary search) fall back to a ±``window`` char excerpt.
    Anything longer than 500 chars is cut to ±250 chars around the
    hit, with an ellipsis on each side that was cut.
    """
    search_start = max(0, start - SEARCH_WINDOW)
    search_end = min(len(text), end + SEARCH_WINDOW)
    region = text[search_start:search_end]

    boundaries = [0]
    boundaries.extend(m.start() + 1 for m in _SENTENCE_END.finditer(region))
    boundaries.append(len(region))

    hit = start - search_start
    sentence_start, sentence_end = 0, len(region)
    for lo, hi in zip(boundaries, boundaries[1:]):
        if lo <= hit < hi:
            sentence_start, sentence_end = lo, hi
            break

    sentence, hit = _strip_with_offset(
        region[sentence_start:sentence_end], hit - sentence_start,
    )

    if len(sentence) < MIN_SENTENCE_LEN:
        fallback_start = max(0, start - window)
        fallback_end = min(len(text), end + window)
        sentence, hit = _strip_with_offset(
            text[fallback_start:fallback_end], start - fallback_start,
        )

    if len(sentence) > MAX_SNIPPET_LEN:
        half = MAX_SNIPPET_LEN // 2
        excerpt_start = max(0, hit - half)
        excerpt_end = min(len(sentence), hit + half)
        excerpt = sentence[excerpt_start:excerpt_end].strip()
        if excerpt_start > 0:
            excerpt = ELLIPSIS + excerpt
        if excerpt_end < len(sentence):
            excerpt = excerpt + ELLIPSIS
        sentence = excerpt

    return sentence


def strip_ellipsis(snippet: str) -> str:
    """Drop leading/trailing ellipsis markers added by truncation."""
    if snippet.startswith(ELLIPSIS):
        snippet = snippet[len(ELLIPSIS):]
    if snippet.endswith(ELLIPSIS):
        snippet = snippet[:-len(ELLIPSIS)]
    return snippet.strip()
