"""
Summarizer — Plain-Language Bullets from Risky Snippets

Receives {title, snippets, detected_risks} and returns {bullets}.

The model is loaded through ModelLoader: at most one load in flight
per process, concurrent callers await the same pending result, and a
failed load is remembered and re-raised to every later caller until
reset() is called. Nothing retries a failed load on its own.
"""

from __future__ import annotations

import asyncio
import inspect
import re
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar, Union

from tcdecoder.config import settings
from tcdecoder.llm import LLMProvider
from tcdecoder.logging import get_logger

logger = get_logger("summarizer")

T = TypeVar("T")

MIN_SNIPPET_LEN = 30
MIN_BULLET_LEN = 15
MIN_SOURCE_BULLET_LEN = 20
MAX_BULLETS = 8

NO_CONTENT = "No content available to analyze."
NO_TERMS = "No significant terms detected in this document."
NO_SUMMARY = "Unable to generate summary from this document."
NO_POINTS = "Unable to extract key points from this document."

SYSTEM_INSTRUCTION = (
    "You explain Terms and Conditions to ordinary consumers. "
    "Write short, factual bullet points about their rights and obligations. "
    "Do not give legal advice and do not invent terms that are not in the text."
)

SUMMARY_PROMPT = """Summarize the key consumer rights and obligations in these Terms and Conditions sentences from "{title}".
Detected risk areas: {risks}

Return 5-8 bullet points, one per line, each starting with "- ".

{text}"""

_DASH_BULLETS = re.compile(r"(?:^|\n)\s*[-•*]\s+(.+?)(?=\n\s*[-•*]|\n\n|$)", re.DOTALL)
_NUMBERED_BULLETS = re.compile(r"(?:^|\n)\s*\d+\.\s+(.+?)(?=\n\s*\d+\.|\n\n|$)", re.DOTALL)
_SENTENCE_SPLIT = re.compile(r"[.!?]+")


class ModelLoadError(RuntimeError):
    """The model could not be loaded. Memoized until the loader is reset."""


# ============================================================
# MODEL LOADER (shared future with error memoization)
# ============================================================

class ModelLoader(Generic[T]):
    """Loads a model once and shares it with every caller."""

    def __init__(self, factory: Callable[[], Union[T, Awaitable[T]]], name: str = "model"):
        self._factory = factory
        self.name = name
        self._model: Optional[T] = None
        self._pending: Optional[asyncio.Future] = None
        self._error: Optional[BaseException] = None
        self._generation = 0

    @property
    def state(self) -> str:
        if self._model is not None:
            return "ready"
        if self._pending is not None:
            return "loading"
        if self._error is not None:
            return "failed"
        return "idle"

    async def _load(self, generation: int) -> T:
        start = time.perf_counter()
        try:
            model = self._factory()
            if inspect.isawaitable(model):
                model = await model
        except Exception as e:
            # A reset() during the load detaches it; its outcome is not recorded.
            if generation == self._generation:
                self._error = e
            logger.error(
                f"Loading {self.name} failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise ModelLoadError(f"Loading {self.name} failed: {e}") from e
        finally:
            if generation == self._generation:
                self._pending = None

        if generation == self._generation:
            self._model = model
        logger.info(
            f"Loaded {self.name}",
            extra={"duration_ms": round((time.perf_counter() - start) * 1000, 1)},
        )
        return model

    async def get(self) -> T:
        if self._model is not None:
            return self._model
        if self._error is not None:
            raise ModelLoadError(f"Loading {self.name} failed: {self._error}") from self._error
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load(self._generation))
        # shield: one caller being cancelled must not cancel the shared load
        return await asyncio.shield(self._pending)

    def reset(self) -> None:
        """
        Forget a loaded model, a memoized failure or an in-flight load.

        Callers already awaiting the detached load still receive its
        outcome; the next get() starts a fresh load.
        """
        self._generation += 1
        self._pending = None
        self._model = None
        self._error = None


# ============================================================
# BULLET PARSING
# ============================================================

def _clean_bullet(bullet: str) -> str:
    bullet = re.sub(r"^\s*[-•*]\s*", "", bullet)
    bullet = re.sub(r"^\d+\.\s*", "", bullet)
    return " ".join(bullet.split())


def text_to_bullets(generated: str) -> list[str]:
    """
    Turn free-form model output into at most 8 bullets.

    Tries dash/bullet markers, then numbered lists, then falls back
    to splitting sentences.
    """
    if not generated or len(generated) < MIN_SOURCE_BULLET_LEN:
        return [NO_SUMMARY]

    bullets: list[str] = []
    for pattern in (_DASH_BULLETS, _NUMBERED_BULLETS):
        for m in pattern.finditer(generated):
            text = m.group(1).strip()
            if len(text) >= MIN_SOURCE_BULLET_LEN:
                bullets.append(text)
        if bullets:
            break

    if not bullets:
        sentences = [s.strip() for s in _SENTENCE_SPLIT.split(generated)]
        bullets = [s for s in sentences if len(s) >= MIN_SOURCE_BULLET_LEN][:MAX_BULLETS]

    cleaned = [_clean_bullet(b) for b in bullets]
    cleaned = [b for b in cleaned if len(b) >= MIN_BULLET_LEN][:MAX_BULLETS]
    return cleaned or [NO_POINTS]


def combine_snippets(snippets: Sequence[str], max_chars: int) -> tuple[str, int]:
    """Join whole snippets with spaces until the next one would exceed ``max_chars``."""
    combined = ""
    used = 0
    for snippet in snippets:
        candidate = f"{combined} {snippet}" if combined else snippet
        if len(candidate) > max_chars:
            break
        combined = candidate
        used += 1
    return combined, used


# ============================================================
# SUMMARIZER
# ============================================================

@dataclass
class SummaryResult:
    bullets: list[str] = field(default_factory=list)
    snippets_used: int = 0

    def to_dict(self) -> dict:
        return {"bullets": list(self.bullets), "snippets_used": self.snippets_used}


class Summarizer:
    """Summarizes risky snippets with whatever model the loader provides."""

    def __init__(self, loader: ModelLoader[LLMProvider], max_chars: Optional[int] = None):
        self.loader = loader
        self.max_chars = settings.SUMMARY_MAX_CHARS if max_chars is None else max_chars

    async def warmup(self) -> None:
        await self.loader.get()

    async def summarize(
        self,
        title: str,
        snippets: Sequence[str],
        detected_risks: Sequence[Any] = (),
    ) -> SummaryResult:
        if not snippets:
            return SummaryResult(bullets=[NO_CONTENT])

        valid = [s.strip() for s in snippets if s and len(s) > MIN_SNIPPET_LEN]
        if not valid:
            return SummaryResult(bullets=[NO_TERMS])

        combined, used = combine_snippets(valid, self.max_chars)
        if not combined:
            return SummaryResult(bullets=[NO_TERMS])

        risks = sorted({getattr(r, "value", r) for r in detected_risks})
        prompt = SUMMARY_PROMPT.format(
            title=title or "Terms & Conditions",
            risks=", ".join(risks) if risks else "none",
            text=combined,
        )

        model = await self.loader.get()
        start = time.perf_counter()
        generated = await model.generate(
            prompt, system_instruction=SYSTEM_INSTRUCTION, temperature=0.2,
        )
        bullets = text_to_bullets(generated)

        logger.info(
            "Summary complete",
            extra={
                "snippets_count": used,
                "bullets_count": len(bullets),
                "duration_ms": round((time.perf_counter() - start) * 1000, 1),
            },
        )
        return SummaryResult(bullets=bullets, snippets_used=used)


async def _load_default_provider() -> LLMProvider:
    from tcdecoder.llm.factory import get_provider
    provider = get_provider(settings.LLM_PROVIDER)
    await provider.warmup()
    return provider


# Singleton: one loader per process
model_loader: ModelLoader[LLMProvider] = ModelLoader(_load_default_provider, name="llm provider")
summarizer = Summarizer(model_loader)
