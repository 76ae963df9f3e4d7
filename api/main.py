"""
T&C Decoder API — Main Application

POST /scan       — Scan extracted text for risky clauses
POST /analyze    — Extract, scan and annotate an HTML page (optionally summarize)
POST /summarize  — Plain-language bullets from risky snippets
GET  /patterns   — List all detection patterns
GET  /health     — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.requests import Request

from tcdecoder import __version__
from tcdecoder.annotate import AnnotationApplier, HtmlDocument
from tcdecoder.config import settings
from tcdecoder.extractor import extract
from tcdecoder.logging import setup_logging, get_logger
from tcdecoder.patterns import pattern_bank
from tcdecoder.scanner import scan, summary_payload
from tcdecoder.summarizer import ModelLoadError, model_loader, summarizer
from tcdecoder.schemas.scan import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    ScanRequest,
    ScanResponse,
    SummarizeRequest,
    SummarizeResponse,
)

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("T&C Decoder API starting")
    yield
    logger.info("T&C Decoder API shutting down")


app = FastAPI(
    title="T&C Decoder API",
    description="Heuristic screening of Terms & Conditions for risky clauses",
    version=f"{__version__} (core {settings.CORE_VERSION})",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The request could not be completed."},
    )


# ============================================================
# ROUTES
# ============================================================

@app.post("/scan", response_model=ScanResponse)
async def scan_text(request: ScanRequest):
    """Scan text for risky clauses."""
    result = scan(request.text)
    logger.info(
        f"Scan complete: severity={result.severity}",
        extra={"spans_count": len(result.spans), "severity": result.severity},
    )
    return result.to_dict()


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_page(request: AnalyzeRequest):
    """
    One full round: extract the page text, scan it, clear old marks,
    apply new ones, and optionally summarize the user-relevant snippets.
    """
    page = extract(request.html)
    title = request.title or page.title or "Terms & Conditions"
    result = scan(page.text)

    document = HtmlDocument(request.html)
    applier = AnnotationApplier(document)
    removed = applier.clear()
    applied = applier.apply(result.spans)

    response = {
        "title": title,
        "scan": result.to_dict(),
        "annotated_html": document.html,
        "removed": removed,
        "applied": applied.applied,
        "capped": applied.capped,
    }

    if request.summarize:
        payload = summary_payload(result, title)
        try:
            summary = await summarizer.summarize(**payload)
            response["bullets"] = summary.bullets
        except Exception as e:
            # The scan and marks stand on their own; report the summary failure.
            logger.warning(
                "Summary failed during analyze",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            response["summary_error"] = "Summary temporarily unavailable."

    return response


@app.post("/summarize", response_model=SummarizeResponse)
async def summarize_snippets(request: SummarizeRequest):
    """Summarize risky snippets into plain-language bullets."""
    try:
        summary = await summarizer.summarize(
            title=request.title,
            snippets=request.snippets,
            detected_risks=request.detected_risks,
        )
    except ModelLoadError as e:
        logger.error("Summarizer model unavailable", extra={"error": str(e)})
        raise HTTPException(502, "Summarizer model unavailable.")
    except Exception as e:
        logger.error(
            "LLM provider error during summary",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        raise HTTPException(502, "LLM provider temporarily unavailable. Please try again.")
    return summary.to_dict()


@app.get("/patterns")
async def get_patterns():
    """Return every risk detector in the pattern bank."""
    patterns = pattern_bank.get_patterns()
    return {
        "core_version": settings.CORE_VERSION,
        "total_patterns": len(patterns),
        "patterns": patterns,
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check."""
    return {
        "status": "operational",
        "version": __version__,
        "core_version": settings.CORE_VERSION,
        "llm_provider": settings.LLM_PROVIDER,
        "model_state": model_loader.state,
        "max_highlights": settings.MAX_HIGHLIGHTS,
    }


# --- Body Size Limit Middleware ---
_MAX_BODY_BYTES = 4_194_304  # 4 MB


@app.middleware("http")
async def enforce_body_size_limit(request: Request, call_next):
    """Reject requests whose declared body exceeds the limit."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > _MAX_BODY_BYTES:
        return JSONResponse(status_code=413, content={"detail": "Request body too large."})
    return await call_next(request)


# --- Request Logging Middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every API request with method, path, status, duration."""
    path = request.url.path
    if path == "/health":
        return await call_next(request)

    start = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start) * 1000, 1)

    logger.info(
        f"{request.method} {path} → {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response
