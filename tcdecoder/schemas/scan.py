"""
API Schemas — Request and Response Models

Pydantic models for the T&C Decoder API.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field

from tcdecoder.patterns import RiskType


# ============================================================
# SCAN
# ============================================================

class ScanRequest(BaseModel):
    """POST /scan request body."""
    text: str = Field(..., max_length=500_000,
                      description="Extracted document text. Empty text is a valid, clean scan.")

    model_config = {"json_schema_extra": {"examples": [
        {"text": "This agreement automatically renews for $9.99/month unless cancelled."},
    ]}}


class SpanResponse(BaseModel):
    type: RiskType
    start: int
    end: int
    matched_text: str
    snippet: str


class RecipientResponse(BaseModel):
    phrase: str
    count: int


class HeatmapResponse(BaseModel):
    counts: dict[str, int]
    level: str
    top_recipients: list[RecipientResponse]


class ScanResponse(BaseModel):
    """POST /scan response body."""
    spans: list[SpanResponse]
    severity: str
    hero: Optional[str] = None
    heatmap: HeatmapResponse
    score: int
    score_breakdown: dict[str, int]
    core_version: str


# ============================================================
# ANALYZE (extract -> scan -> clear -> apply -> summarize)
# ============================================================

class AnalyzeRequest(BaseModel):
    """POST /analyze request body."""
    html: str = Field(..., max_length=2_000_000, description="The live page HTML.")
    title: Optional[str] = Field(None, description="Overrides the title found in the page.")
    summarize: bool = Field(False, description="Also request AI summary bullets.")


class AnalyzeResponse(BaseModel):
    """POST /analyze response body."""
    title: str
    scan: ScanResponse
    annotated_html: str
    removed: int
    applied: int
    capped: bool
    bullets: Optional[list[str]] = None
    summary_error: Optional[str] = None


# ============================================================
# SUMMARIZE
# ============================================================

class SummarizeRequest(BaseModel):
    """POST /summarize request body."""
    title: str = Field("Terms & Conditions", max_length=500)
    snippets: list[str] = Field(default_factory=list, max_length=200)
    detected_risks: list[RiskType] = Field(default_factory=list)


class SummarizeResponse(BaseModel):
    bullets: list[str]
    snippets_used: int = 0


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    core_version: str
    llm_provider: str
    model_state: str
    max_highlights: int
