"""
Scanner — Single Entry Point

scan(full_text) runs the whole analytical pipeline:

  find_spans -> resolve_spans -> {compute_score + select_hero, build_heatmap}

Pure and synchronous. No shared mutable state, so independent scans
can run concurrently. Empty text is not an error: it yields no spans,
Low severity, no hero and an all-zero heatmap.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Iterable, Optional

from tcdecoder.config import settings
from tcdecoder.heatmap import Heatmap, build_heatmap
from tcdecoder.logging import get_logger
from tcdecoder.patterns import Level, PatternBank, RiskType
from tcdecoder.severity import compute_score, score_to_severity, select_hero
from tcdecoder.spans import Span, find_spans, resolve_spans

logger = get_logger("scanner")

# Arbitration and class-action language is left out of the model payload;
# users act on money and exit terms.
DEFAULT_SUMMARY_RISKS: tuple[RiskType, ...] = (
    RiskType.FEES,
    RiskType.CANCELLATION,
    RiskType.AUTO_RENEWAL,
)


@dataclass(frozen=True)
class ScanResult:
    """Terminal output of one scan. Never mutated; a new scan builds a new one."""
    spans: tuple[Span, ...]
    severity: Level
    hero: Optional[str]
    heatmap: Heatmap
    score: int = 0
    score_breakdown: dict = field(default_factory=dict)
    core_version: str = settings.CORE_VERSION

    @property
    def detected_risks(self) -> list[RiskType]:
        """Distinct risk types present, in first-seen order."""
        seen: list[RiskType] = []
        for span in self.spans:
            if span.type not in seen:
                seen.append(span.type)
        return seen

    def to_dict(self) -> dict:
        return {
            "spans": [s.to_dict() for s in self.spans],
            "severity": self.severity,
            "hero": self.hero,
            "heatmap": self.heatmap.to_dict(),
            "score": self.score,
            "score_breakdown": dict(self.score_breakdown),
            "core_version": self.core_version,
        }


def scan(
    full_text: str,
    max_count: Optional[int] = None,
    bank: Optional[PatternBank] = None,
) -> ScanResult:
    """Scan ``full_text`` for risky clauses and summarize what was found."""
    start = time.perf_counter()
    max_count = settings.MAX_HIGHLIGHTS if max_count is None else max_count

    raw = find_spans(full_text, bank=bank, snippet_window=settings.SNIPPET_WINDOW)
    spans = resolve_spans(raw, max_count=max_count)

    score, breakdown = compute_score(spans, full_text)
    result = ScanResult(
        spans=spans,
        severity=score_to_severity(score),
        hero=select_hero(spans, full_text),
        heatmap=build_heatmap(full_text),
        score=score,
        score_breakdown=breakdown,
    )

    logger.debug(
        "Scan complete",
        extra={
            "raw_count": len(raw),
            "spans_count": len(spans),
            "severity": result.severity,
            "score": score,
            "heatmap_level": result.heatmap.level,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        },
    )
    return result


def summary_payload(
    result: ScanResult,
    title: str,
    risk_types: Iterable[RiskType] = DEFAULT_SUMMARY_RISKS,
) -> dict:
    """
    Build the summarizer request from a scan result.

    Only spans of ``risk_types`` are forwarded; ``detected_risks``
    lines up one-to-one with ``snippets``.
    """
    wanted = {RiskType(t) for t in risk_types}
    relevant = [s for s in result.spans if s.type in wanted]
    return {
        "title": title,
        "snippets": [s.snippet for s in relevant],
        "detected_risks": [s.type.value for s in relevant],
    }
