"""
Annotation Applier — Projecting Spans onto a Live Document

Spans are computed against extracted plain text. The live document
may have been re-rendered since, so marks are placed by re-searching
CONTENT, never by stored offset:

  1. Look for the span's snippet (ellipsis stripped), case-insensitive,
     in unmarked text segments in reading order; wrap the first hit.
  2. If the snippet is gone (whitespace drift, dynamic content), look
     for the shorter matched keyword instead.
  3. If neither is found, skip the span. A miss is not an error.

Known tradeoff: the keyword fallback can mark an occurrence unrelated
to the original sentence when the keyword is common in the document.

Marks never nest. Text already inside a mark is excluded from the
search, and clear() unwraps every mark back into plain text.

Annotation rounds mutate the document and are not thread-safe: the
caller serializes clear() -> apply() per document.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from tcdecoder.config import settings
from tcdecoder.logging import get_logger
from tcdecoder.snippets import strip_ellipsis
from tcdecoder.spans import Span

logger = get_logger("annotate")

MARK_TAG = "mark"
MARK_ATTR = "data-tc"
MARK_ATTR_VAL = "risk"
STYLE_ID = "tc-decoder-highlight-style"
SKIP_TAGS = frozenset({"script", "style", "noscript", "template"})

MARK_CSS = f"""
mark[{MARK_ATTR}="{MARK_ATTR_VAL}"] {{
  background: #fff3cd;
  color: inherit;
  padding: 0 2px;
  border-radius: 2px;
  box-shadow: 0 0 0 1px rgba(0,0,0,0.04) inset;
}}
"""


# ============================================================
# LIVE DOCUMENT ABSTRACTION
# ============================================================

class LiveDocument(ABC):
    """
    A document the applier can search and mark.

    Text segments are str-like handles owned by the document; the
    applier only reads them and passes them back to ``wrap``.
    """

    @abstractmethod
    def text_segments(self) -> Iterator[str]:
        """Unmarked, visible, non-blank text segments in reading order."""
        ...

    @abstractmethod
    def wrap(self, segment: str, start: int, end: int) -> None:
        """Wrap ``segment[start:end]`` in a marker."""
        ...

    @abstractmethod
    def marks(self) -> list:
        """Every marker currently in the document."""
        ...

    @abstractmethod
    def unwrap(self, mark) -> None:
        """Replace a marker with its own text content."""
        ...

    def install_styles(self) -> None:
        """One-time marker styling. Documents without styling skip it."""


class HtmlDocument(LiveDocument):
    """HTML document backed by a BeautifulSoup tree. Marks are <mark data-tc="risk">."""

    def __init__(self, html: Union[str, BeautifulSoup], parser: str = "html.parser"):
        self.soup = html if isinstance(html, BeautifulSoup) else BeautifulSoup(html, parser)

    @property
    def root(self) -> Tag:
        return self.soup.body or self.soup

    @staticmethod
    def _is_visible(node: NavigableString) -> bool:
        if isinstance(node, PreformattedString):  # comments, doctype, CDATA
            return False
        parent = node.parent
        return parent is not None and parent.name not in SKIP_TAGS

    @staticmethod
    def _is_marked(node: NavigableString) -> bool:
        return node.find_parent(MARK_TAG, attrs={MARK_ATTR: MARK_ATTR_VAL}) is not None

    def text_segments(self) -> Iterator[NavigableString]:
        # Snapshot first: wrapping replaces nodes in the tree.
        for node in list(self.root.find_all(string=True)):
            if not self._is_visible(node) or self._is_marked(node):
                continue
            if not node.strip():
                continue
            yield node

    def wrap(self, segment: NavigableString, start: int, end: int) -> None:
        text = str(segment)
        before, target, after = text[:start], text[start:end], text[end:]
        mark = self.soup.new_tag(MARK_TAG, attrs={MARK_ATTR: MARK_ATTR_VAL})
        mark.string = target
        segment.replace_with(mark)
        if before:
            mark.insert_before(self.soup.new_string(before))
        if after:
            mark.insert_after(self.soup.new_string(after))

    def marks(self) -> list[Tag]:
        return self.soup.find_all(MARK_TAG, attrs={MARK_ATTR: MARK_ATTR_VAL})

    def unwrap(self, mark: Tag) -> None:
        parent = mark.parent
        mark.unwrap()
        if parent is not None:
            # Merge the split text nodes back together.
            parent.smooth()

    def install_styles(self) -> None:
        if self.soup.find("style", attrs={"id": STYLE_ID}) is not None:
            return
        style = self.soup.new_tag("style", attrs={"id": STYLE_ID})
        style.string = MARK_CSS
        target = self.soup.head or self.soup.html or self.soup
        target.append(style)

    def visible_text(self) -> str:
        """All visible text, marked or not, concatenated in reading order."""
        return "".join(
            str(node) for node in self.root.find_all(string=True) if self._is_visible(node)
        )

    def marked_texts(self) -> list[str]:
        return [m.get_text() for m in self.marks()]

    @property
    def html(self) -> str:
        return str(self.soup)

    def __str__(self) -> str:
        return self.html


# ============================================================
# THE APPLIER
# ============================================================

@dataclass(frozen=True)
class ApplyResult:
    applied: int
    capped: bool

    def to_dict(self) -> dict:
        return {"applied": self.applied, "capped": self.capped}


class AnnotationApplier:
    """Clears and applies risk marks on one live document."""

    def __init__(self, document: LiveDocument, max_highlights: Optional[int] = None):
        self.document = document
        self.max_highlights = (
            settings.MAX_HIGHLIGHTS if max_highlights is None else max_highlights
        )
        document.install_styles()

    def clear(self) -> int:
        """Unwrap every existing mark. Returns how many were removed."""
        removed = 0
        for mark in self.document.marks():
            self.document.unwrap(mark)
            removed += 1
        if removed:
            logger.info("Cleared annotations", extra={"removed": removed})
        return removed

    def find_and_wrap_once(self, needle: str) -> bool:
        """Wrap the first case-insensitive occurrence of ``needle`` in unmarked text."""
        if not needle:
            return False
        pattern = re.compile(re.escape(needle), re.IGNORECASE)
        for segment in self.document.text_segments():
            m = pattern.search(segment)
            if m is None:
                continue
            self.document.wrap(segment, m.start(), m.end())
            return True
        return False

    def apply(self, spans: Iterable[Span]) -> ApplyResult:
        """Mark each span's snippet (or keyword) in order, up to the cap."""
        spans = list(spans)
        applied = 0
        for span in spans:
            if applied >= self.max_highlights:
                break
            ok = self.find_and_wrap_once(strip_ellipsis(span.snippet))
            if not ok and span.matched_text:
                logger.debug(
                    "Snippet not found, falling back to keyword %r", span.matched_text,
                )
                ok = self.find_and_wrap_once(span.matched_text)
            if ok:
                applied += 1
            else:
                logger.debug("Span not found in document: %r", span.matched_text)

        result = ApplyResult(applied=applied, capped=applied >= self.max_highlights)
        logger.info(
            f"Applied {applied} highlights out of {len(spans)} spans",
            extra={"applied": applied, "capped": result.capped},
        )
        return result
