"""
Spans — Finding and Resolving Risk Hits

find_spans:    run every risk detector over the full text (no cap)
resolve_spans: merge overlapping spans, longest wins, cap the count

Offsets are half-open [start, end) into the exact text that was
scanned. Snippets are derived for display and never used for offsets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from tcdecoder.patterns import PatternBank, RiskType, pattern_bank
from tcdecoder.snippets import make_snippet


@dataclass(frozen=True)
class Span:
    """A labeled risk hit. Immutable once created."""
    type: RiskType
    start: int
    end: int            # exclusive
    matched_text: str
    snippet: str = ""

    def __post_init__(self):
        # A malformed span would corrupt the non-overlap invariant downstream.
        if not isinstance(self.type, RiskType):
            try:
                object.__setattr__(self, "type", RiskType(self.type))
            except ValueError:
                raise ValueError(f"Unknown risk type: {self.type!r}") from None
        if self.start < 0:
            raise ValueError(f"Span start must be >= 0, got {self.start}")
        if self.end <= self.start:
            raise ValueError(f"Span end ({self.end}) must be greater than start ({self.start})")
        if self.end - self.start != len(self.matched_text):
            raise ValueError(
                f"Span [{self.start}, {self.end}) does not match text of length "
                f"{len(self.matched_text)}: {self.matched_text!r}"
            )

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: Span) -> bool:
        """Closed comparison: spans that only touch at a boundary also overlap."""
        return other.start <= self.end and other.end >= self.start

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "start": self.start,
            "end": self.end,
            "matched_text": self.matched_text,
            "snippet": self.snippet,
        }


def find_spans(
    text: str,
    bank: Optional[PatternBank] = None,
    snippet_window: int = 250,
) -> list[Span]:
    """
    Run each risk detector over ``text`` and collect every match.

    Categories are visited in bank order and their spans concatenated.
    Each span carries the sentence snippet around it.
    """
    bank = bank or pattern_bank
    spans: list[Span] = []
    for risk_type, matcher in bank.matchers():
        for start, end, matched in matcher.find_all(text):
            spans.append(Span(
                type=risk_type,
                start=start,
                end=end,
                matched_text=matched,
                snippet=make_snippet(text, start, end, window=snippet_window),
            ))
    return spans


def resolve_spans(spans: Iterable[Span], max_count: int = 50) -> tuple[Span, ...]:
    """
    Deduplicate overlapping spans across all categories.

    Spans are stable-sorted by (start asc, end desc). Walking that
    order, a span overlapping the last accepted one replaces it only
    if strictly longer; on a tie the accepted span stays. The result
    is sorted, pairwise non-overlapping and at most ``max_count`` long.
    """
    if max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}")

    spans = list(spans)
    for span in spans:
        if not isinstance(span, Span):
            raise TypeError(f"Expected Span, got {type(span).__name__}")

    ordered = sorted(spans, key=lambda s: (s.start, -s.end))
    accepted: list[Span] = []

    for span in ordered:
        if not accepted:
            accepted.append(span)
            continue
        last = accepted[-1]
        if not last.overlaps(span):
            accepted.append(span)
        elif span.length > last.length:
            accepted[-1] = span

    return tuple(accepted[:max_count])
