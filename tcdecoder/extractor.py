"""
Extractor — HTML to Scan Text

Produces the (title, text) pair the scanner consumes. Not a layout
engine: it drops script/style/noscript content and comments, breaks
lines at block-level elements and collapses runs of spaces. The
resulting text can drift from the live document's raw text nodes,
which is why annotation re-matches by content.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from tcdecoder.annotate import SKIP_TAGS

BLOCK_TAGS = frozenset({
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl",
    "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p",
    "pre", "section", "table", "td", "th", "tr", "ul",
})

HEAD_TAGS = frozenset({"head", "title"})

_SPACES = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\s*\n\s*")


@dataclass(frozen=True)
class ExtractedPage:
    title: str
    text: str


def _title(soup: BeautifulSoup) -> str:
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(strip=True)
    h1 = soup.find("h1")
    return h1.get_text(" ", strip=True) if h1 else ""


def _collect(node: Tag, parts: list[str]) -> None:
    """Append visible text under ``node``; block elements are fenced by newlines."""
    for child in node.children:
        if isinstance(child, Tag):
            if child.name in SKIP_TAGS or child.name in HEAD_TAGS:
                continue
            block = child.name in BLOCK_TAGS
            if block:
                parts.append("\n")
            _collect(child, parts)
            if block:
                parts.append("\n")
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            parts.append(str(child))


def extract(html: str, parser: str = "html.parser") -> ExtractedPage:
    """Pull the title and readable body text out of an HTML page."""
    soup = BeautifulSoup(html or "", parser)
    root = soup.body or soup

    parts: list[str] = []
    _collect(root, parts)

    text = _SPACES.sub(" ", "".join(parts))
    text = _BLANK_LINES.sub("\n", text).strip()
    return ExtractedPage(title=_title(soup), text=text)
