"""
T&C Decoder — Risky Clause Screening for Terms & Conditions

A heuristic screening tool, not a legal-analysis engine. Surface
patterns find auto-renewal, cancellation, arbitration, class-action
waiver, fee and data-sharing language; the engine resolves them into
non-overlapping spans, scores severity, maps data-sharing vocabulary
and projects the spans back onto a live document as highlights.

Public API:
  - scan:               Full analytical pipeline, text -> ScanResult
  - find_spans:         Raw risk hits from the pattern bank
  - resolve_spans:      Overlap merging and capping
  - make_snippet:       Sentence snippet around a hit
  - build_heatmap:      Data-sharing vocabulary heatmap
  - AnnotationApplier:  clear()/apply() marks on a LiveDocument
  - HtmlDocument:       BeautifulSoup-backed LiveDocument
  - Summarizer:         Plain-language bullets via an LLM provider

Usage:
    from tcdecoder import scan, AnnotationApplier, HtmlDocument
    result = scan(text)
    applier = AnnotationApplier(HtmlDocument(html))
    applier.clear()
    applier.apply(result.spans)
"""

__version__ = "1.0.0"

from tcdecoder.patterns import RiskType, RiskPattern, PatternBank, pattern_bank
from tcdecoder.spans import Span, find_spans, resolve_spans
from tcdecoder.snippets import make_snippet
from tcdecoder.heatmap import Heatmap, Recipient, build_heatmap
from tcdecoder.severity import compute_score, score_to_severity, select_hero
from tcdecoder.scanner import ScanResult, scan, summary_payload, DEFAULT_SUMMARY_RISKS
from tcdecoder.annotate import AnnotationApplier, ApplyResult, HtmlDocument, LiveDocument
from tcdecoder.extractor import ExtractedPage, extract
from tcdecoder.summarizer import ModelLoader, ModelLoadError, Summarizer

__all__ = [
    "RiskType",
    "RiskPattern",
    "PatternBank",
    "pattern_bank",
    "Span",
    "find_spans",
    "resolve_spans",
    "make_snippet",
    "Heatmap",
    "Recipient",
    "build_heatmap",
    "compute_score",
    "score_to_severity",
    "select_hero",
    "ScanResult",
    "scan",
    "summary_payload",
    "DEFAULT_SUMMARY_RISKS",
    "AnnotationApplier",
    "ApplyResult",
    "HtmlDocument",
    "LiveDocument",
    "ExtractedPage",
    "extract",
    "ModelLoader",
    "ModelLoadError",
    "Summarizer",
]
