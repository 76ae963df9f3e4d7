"""
Severity Score and Hero Line

Score = sum of fixed per-category weights over the resolved spans.
Presence counts, not frequency: ten fee spans weigh the same as one.

  auto_renewal:  +3 with a price or cadence within 160 chars, else +2
  arbitration:   +3
  class_action:  +2
  cancellation:  +1
  fees:          +1

Severity: score >= 4 High, >= 2 Medium, else Low.

The hero line is picked by priority, independent of the score:
fees, then cancellation, then auto-renewal (with price/cadence when
one is nearby). No match, no hero.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from tcdecoder.patterns import CADENCE, PRICE, Level, RiskType
from tcdecoder.spans import Span

CONTEXT_WINDOW = 160

AUTO_RENEWAL_SPECIFIC = 3
AUTO_RENEWAL_GENERIC = 2
RISK_WEIGHTS: dict[RiskType, int] = {
    RiskType.ARBITRATION: 3,
    RiskType.CLASS_ACTION: 2,
    RiskType.CANCELLATION: 1,
    RiskType.FEES: 1,
}

HERO_FEES = "💰 Fees/charges apply - review billing terms carefully."
HERO_CANCELLATION = "🔄 Cancellation restrictions found - check how to cancel."
HERO_AUTO_RENEWAL = "⚠️ Auto-renewal detected. Review cancellation terms."


@dataclass(frozen=True)
class PriceContext:
    price: Optional[str] = None
    cadence: Optional[str] = None

    @property
    def found(self) -> bool:
        return bool(self.price or self.cadence)

    def label(self) -> str:
        return "/".join(p for p in (self.price, self.cadence) if p)


def find_price_and_cadence_nearby(
    text: str, start: int, end: int, window: int = CONTEXT_WINDOW,
) -> PriceContext:
    """First price and first cadence term within ±window chars of [start, end)."""
    area = text[max(0, start - window):min(len(text), end + window)]
    price = PRICE.search(area)
    cadence = CADENCE.search(area)
    return PriceContext(
        price=price.group(0).strip() if price else None,
        cadence=cadence.group(0).strip().lower() if cadence else None,
    )


def _first(spans: Sequence[Span], risk_type: RiskType) -> Optional[Span]:
    return next((s for s in spans if s.type == risk_type), None)


def compute_score(spans: Sequence[Span], text: str) -> tuple[int, dict]:
    """
    Returns:
        (score, breakdown) where breakdown names every weight applied.
    """
    score = 0
    breakdown: dict[str, int] = {}

    # Only the first auto-renewal span is weighed.
    auto = _first(spans, RiskType.AUTO_RENEWAL)
    if auto is not None:
        near = find_price_and_cadence_nearby(text, auto.start, auto.end)
        weight = AUTO_RENEWAL_SPECIFIC if near.found else AUTO_RENEWAL_GENERIC
        breakdown[RiskType.AUTO_RENEWAL.value] = weight
        score += weight

    present = {s.type for s in spans}
    for risk_type, weight in RISK_WEIGHTS.items():
        if risk_type in present:
            breakdown[risk_type.value] = weight
            score += weight

    return score, breakdown


def score_to_severity(score: int) -> Level:
    if score >= 4:
        return "High"
    if score >= 2:
        return "Medium"
    return "Low"


def select_hero(spans: Sequence[Span], text: str) -> Optional[str]:
    """Pick the one warning line users care about most."""
    present = {s.type for s in spans}

    if RiskType.FEES in present:
        return HERO_FEES

    if RiskType.CANCELLATION in present:
        return HERO_CANCELLATION

    auto = _first(spans, RiskType.AUTO_RENEWAL)
    if auto is not None:
        near = find_price_and_cadence_nearby(text, auto.start, auto.end)
        if near.found:
            return f"Auto-renews at {near.label()}. Set a cancel reminder."
        return HERO_AUTO_RENEWAL

    return None
