"""
Data-Sharing Heatmap

Counts data-sharing vocabulary across the whole text and pulls out
"who gets the data" phrases. Independent of the risk spans: it reads
the same source text but never looks at resolved hits.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tcdecoder.patterns import HEATMAP_BUCKETS, RECIPIENT_PATTERNS, Level

HIGH_THRESHOLD = 15
MEDIUM_THRESHOLD = 5
TOP_RECIPIENTS = 5


@dataclass(frozen=True)
class Recipient:
    phrase: str
    count: int


@dataclass(frozen=True)
class Heatmap:
    counts: dict[str, int]
    level: Level
    top_recipients: list[Recipient] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> dict:
        return {
            "counts": dict(self.counts),
            "level": self.level,
            "top_recipients": [
                {"phrase": r.phrase, "count": r.count} for r in self.top_recipients
            ],
        }


def _normalize_phrase(phrase: str) -> str:
    return " ".join(phrase.lower().split())


def heat_level(total: int) -> Level:
    if total >= HIGH_THRESHOLD:
        return "High"
    if total >= MEDIUM_THRESHOLD:
        return "Medium"
    return "Low"


def extract_recipients(text: str, limit: int = TOP_RECIPIENTS) -> list[Recipient]:
    """
    Rank recipient phrases by how often they were captured.

    Ties keep first-encountered order: the recipient patterns run one
    after another and dict insertion order survives the stable sort.
    """
    counts: dict[str, int] = {}
    for pattern in RECIPIENT_PATTERNS:
        for m in pattern.finditer(text):
            phrase = _normalize_phrase(m.group(1))
            if phrase:
                counts[phrase] = counts.get(phrase, 0) + 1

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [Recipient(phrase=p, count=c) for p, c in ranked[:limit]]


def build_heatmap(text: str) -> Heatmap:
    """Count every bucket independently; a phrase may land in several buckets."""
    counts = {
        bucket: sum(1 for _ in pattern.finditer(text))
        for bucket, pattern in HEATMAP_BUCKETS.items()
    }
    return Heatmap(
        counts=counts,
        level=heat_level(sum(counts.values())),
        top_recipients=extract_recipients(text),
    )
