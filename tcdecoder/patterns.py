"""
Pattern Bank — Read-Only Detector Definitions

Every detector the engine runs lives here as data:
  1. Risk patterns, one per RiskType (what produces highlight spans)
  2. Context patterns (price, billing cadence) used by the hero line
  3. Data-sharing vocabulary buckets for the heatmap
  4. Recipient capture patterns ("share with <phrase>")

Adding a risk category means adding a RiskPattern below. The span
finder iterates the bank; it never branches on category names.

Patterns are surface heuristics. They do not understand clause
meaning and make no claim of complete legal coverage.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Protocol


Level = Literal["Low", "Medium", "High"]

FLAGS = re.IGNORECASE


class RiskType(str, Enum):
    """Closed set of risk categories a span can carry."""

    AUTO_RENEWAL = "auto_renewal"
    CANCELLATION = "cancellation"
    ARBITRATION = "arbitration"
    CLASS_ACTION = "class_action"
    FEES = "fees"
    DATA_SHARING = "data_sharing"


class Matcher(Protocol):
    """Anything that can report (start, end, matched_text) triples for a text."""

    def find_all(self, text: str) -> list[tuple[int, int, str]]:
        ...


# ============================================================
# RISK PATTERNS
# ============================================================

@dataclass(frozen=True)
class RiskPattern:
    """
    A risk detector. Deterministic, regex-based, immutable.

    ``pattern`` is the anchor expression. When ``followed_by`` is set,
    the anchor only counts if the trailing expression occurs within
    ``max_gap`` characters after it; both are compiled into ONE
    expression with a bounded gap quantifier, so the resulting span
    covers anchor, gap and trailing term.
    """
    id: str
    risk_type: RiskType
    name: str
    description: str
    pattern: str
    followed_by: Optional[str] = None
    max_gap: int = 0
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        source = self.pattern
        if self.followed_by:
            source = rf"(?:{self.pattern})[\s\S]{{0,{self.max_gap}}}(?:{self.followed_by})"
        object.__setattr__(self, "_compiled", re.compile(source, FLAGS))

    @property
    def regex(self) -> re.Pattern:
        return self._compiled

    def find_all(self, text: str) -> list[tuple[int, int, str]]:
        """All non-overlapping matches, left to right."""
        return [(m.start(), m.end(), m.group(0)) for m in self._compiled.finditer(text)]


# Order matters: identical ranges from two categories keep the one listed first.
RISK_PATTERNS: list[RiskPattern] = [
    RiskPattern(
        id="AUTO_RENEWAL",
        risk_type=RiskType.AUTO_RENEWAL,
        name="Automatic Renewal",
        description="Subscription or term renews on its own unless the user acts.",
        pattern=(
            r"\bauto[-\s]?renew(?:al|als|s|ed|ing)?\b|"
            r"\bautomatically\s+renew(?:s|ed)?\b"
        ),
    ),
    RiskPattern(
        id="ARBITRATION",
        risk_type=RiskType.ARBITRATION,
        name="Arbitration",
        description="Disputes are routed to private arbitration instead of court.",
        pattern=r"\barbitration\b|\bAAA\b|\bJAMS\b",
    ),
    RiskPattern(
        id="CLASS_ACTION_WAIVER",
        risk_type=RiskType.CLASS_ACTION,
        name="Class Action Waiver",
        description="User gives up the right to join a class action.",
        pattern=r"\bclass\s+action\b",
        followed_by=r"\b(?:waiver|waive[sd]?|prohibit(?:ed|s)?|release|not\s+allowed)\b",
        max_gap=80,
    ),
    RiskPattern(
        id="CANCELLATION",
        risk_type=RiskType.CANCELLATION,
        name="Cancellation Terms",
        description="Conditions on cancelling or terminating the service.",
        pattern=(
            r"\bcancel(?:s|led|ed|ling|ing|lations?)?\b|"
            r"\bterminat(?:e|es|ed|ion)\b"
        ),
    ),
    RiskPattern(
        id="FEES",
        risk_type=RiskType.FEES,
        name="Fees and Charges",
        description="Fees, charges or billing obligations.",
        pattern=r"\bfees?\b|\bcharge[sd]?\b|\bbilling\b",
    ),
    RiskPattern(
        id="DATA_SHARING",
        risk_type=RiskType.DATA_SHARING,
        name="Personal Data Sharing",
        description="Personal data is shared with or sold to outside parties.",
        pattern=(
            r"\b(?:shar(?:e|es|ed|ing)|sell(?:s|ing)?|sold|disclos(?:e|es|ed|ing)|"
            r"transfer(?:s|red|ring)?)\s+(?:your\s+)?(?:personal\s+)?"
            r"(?:data|information)\b"
        ),
        followed_by=r"\b(?:third[-\s]?part(?:y|ies)|affiliates?|partners?|advertisers?)\b",
        max_gap=60,
    ),
]


# ============================================================
# CONTEXT PATTERNS (hero line and auto-renewal weighting)
# ============================================================

PRICE = re.compile(r"(?:\$|£|€)\s?\d{1,4}(?:\.\d{2})?", FLAGS)
CADENCE = re.compile(
    r"\b(?:month|mo\.?|monthly|year|yr|annual(?:ly)?|week|wk|day|daily)\b", FLAGS,
)


# ============================================================
# HEATMAP BUCKETS (data-sharing vocabulary)
# ============================================================

HEATMAP_BUCKETS: dict[str, re.Pattern] = {
    "third_party": re.compile(r"\bthird[-\s]?part(?:y|ies)\b", FLAGS),
    "share": re.compile(r"\bshar(?:e|es|ed|ing)\b", FLAGS),
    "sell": re.compile(r"\b(?:sell(?:s|ing)?|sold)\b", FLAGS),
    "affiliate": re.compile(r"\baffiliates?\b", FLAGS),
    "partner": re.compile(r"\bpartners?\b", FLAGS),
    "advertising": re.compile(r"\badvertis(?:ing|ers?)\b", FLAGS),
    "analytics": re.compile(r"\banalytic(?:s|al)\b", FLAGS),
}

# Each pattern has exactly one capture group: the recipient phrase.
RECIPIENT_PATTERNS: list[re.Pattern] = [
    re.compile(r"\bshar(?:e|es|ed|ing)\s+(?:with|to)\s+([a-z][a-z\s-]{1,40})", FLAGS),
    re.compile(r"\b(?:sell(?:s|ing)?|sold)\s+(?:to|with)\s+([a-z][a-z\s-]{1,40})", FLAGS),
    re.compile(r"\bour\s+([a-z][a-z\s-]{0,20}\s+partners)\b", FLAGS),
]


# ============================================================
# THE BANK
# ============================================================

class PatternBank:
    """
    Read-only registry of every detector.

    Instantiated once as a module singleton. Holds no mutable state,
    so concurrent scans share it without locking.
    """

    def __init__(self, risk_patterns: Optional[list[RiskPattern]] = None):
        self._risk_patterns = tuple(risk_patterns if risk_patterns is not None else RISK_PATTERNS)

    @property
    def risk_patterns(self) -> tuple[RiskPattern, ...]:
        return self._risk_patterns

    def matchers(self) -> list[tuple[RiskType, Matcher]]:
        return [(p.risk_type, p) for p in self._risk_patterns]

    def get_patterns(self) -> list[dict]:
        """Describe every detector. Used by the GET /patterns endpoint."""
        return [
            {
                "id": p.id,
                "risk_type": p.risk_type.value,
                "name": p.name,
                "description": p.description,
                "pattern": p.regex.pattern,
            }
            for p in self._risk_patterns
        ]


pattern_bank = PatternBank()
