"""
Parsed Page

A typed view over a page's markup. All BeautifulSoup traversal used by
extraction lives here; the heuristics only ever see plain strings.

Two parse trees are kept:

- the *affordance* tree: invisible nodes (scripts, styles, templates)
  removed, everything else intact. Contact and pricing scans run here
  because footers and buttons matter to them.
- the *content* tree: additionally stripped of navigation, sidebars,
  footers, forms and consent banners. Its markup is what trafilatura
  reads, and its visible text is the fallback when trafilatura finds
  nothing.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
    Tag,
)


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

INVISIBLE_TAGS = ["script", "style", "noscript", "template", "svg", "canvas", "iframe", "object", "embed"]
BOILERPLATE_TAGS = ["nav", "aside", "footer", "form", "dialog"]
BOILERPLATE_ROLES = {"navigation", "contentinfo", "complementary", "banner", "dialog", "alertdialog"}
PROTECTED_TAGS = {"html", "body", "main", "article"}
CONSENT_SELECTOR = (
    '[class*="cookie"], [class*="consent"], [id*="cookie"], [id*="consent"], '
    '[class*="gdpr"], [id*="gdpr"]'
)

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "dd", "details", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
    "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
    "summary", "table", "tbody", "thead", "tfoot", "tr", "td", "th", "ul",
}

BUTTON_CLASS_HINT = re.compile(r"\b(btn|button|cta)\b|btn-|button-|cta-", re.IGNORECASE)
PRICE_HINT = re.compile(
    r"price|pricing|cost|fee|tariff|rate|plan|package|subscription|offer|arak|arlista|dij",
    re.IGNORECASE,
)

_NON_TEXT_STRINGS = (Comment, Declaration, Doctype, CData, ProcessingInstruction)
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------

def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def _tidy_paragraphs(raw: str) -> str:
    lines = [line.strip() for line in raw.split("\n")]
    text = "\n".join(lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def block_text(node: Tag) -> str:
    """
    Render a node's visible text with blank lines between block elements.

    Inline whitespace is collapsed; ``<br>`` becomes a line break. The walk
    is iterative so deeply nested (often unclosed) markup cannot exhaust
    the recursion limit.
    """
    parts: List[str] = []
    stack: List[object] = list(reversed(list(node.children)))

    while stack:
        item = stack.pop()

        if isinstance(item, NavigableString):
            if not isinstance(item, _NON_TEXT_STRINGS):
                parts.append(_WHITESPACE.sub(" ", str(item)))
            continue

        if isinstance(item, Tag):
            if item.name == "br":
                parts.append("\n")
                continue
            if item.name in BLOCK_TAGS:
                parts.append("\n\n")
                stack.append("\n\n")
            stack.extend(reversed(list(item.children)))
            continue

        # Block separator pushed above
        parts.append(str(item))

    return _tidy_paragraphs("".join(parts))


def _hint(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    return " ".join([*classes, str(tag.get("id") or "")]).strip()


def _lines(tag: Tag) -> List[str]:
    return [
        collapse_whitespace(line)
        for line in tag.get_text("\n").split("\n")
        if collapse_whitespace(line)
    ]


# ---------------------------------------------------------------------
# Parsed Page
# ---------------------------------------------------------------------

class ParsedPage:
    """
    Parsed markup with typed accessors for extraction.

    ``html.parser`` tolerates unclosed and misnested tags, but it rejects
    some malformed declarations (for example ``<![foo[bar]]>``); the
    constructor then raises ``bs4.ParserRejectedMarkup``.
    """

    def __init__(self, markup: str, url: str = "") -> None:
        self.url = url
        self._markup = markup or ""
        self._affordances = BeautifulSoup(self._markup, "html.parser")
        for tag in self._affordances(INVISIBLE_TAGS):
            if not tag.decomposed:
                tag.decompose()
        self._content: Optional[BeautifulSoup] = None

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        """Best-guess page title: <title>, then og:title, then the first <h1>."""
        title_tag = self._affordances.find("title")
        if title_tag is not None:
            title = collapse_whitespace(title_tag.get_text(" "))
            if title:
                return title

        og = self._affordances.find("meta", attrs={"property": "og:title"})
        if og is not None and og.get("content"):
            title = collapse_whitespace(str(og["content"]))
            if title:
                return title

        h1 = self._affordances.find("h1")
        if h1 is not None:
            return collapse_whitespace(h1.get_text(" "))

        return ""

    # ------------------------------------------------------------------
    # Main content
    # ------------------------------------------------------------------

    @property
    def content_root(self) -> BeautifulSoup:
        """The content tree, built on first use."""
        if self._content is None:
            self._content = self._build_content_tree()
        return self._content

    def _build_content_tree(self) -> BeautifulSoup:
        soup = BeautifulSoup(self._markup, "html.parser")

        for tag in soup(INVISIBLE_TAGS + BOILERPLATE_TAGS):
            if not tag.decomposed:
                tag.decompose()

        for tag in soup.select(CONSENT_SELECTOR):
            if not tag.decomposed and tag.name not in PROTECTED_TAGS:
                tag.decompose()

        for tag in soup.find_all(True):
            if tag.decomposed or tag.name in PROTECTED_TAGS:
                continue
            if str(tag.get("role") or "").lower() in BOILERPLATE_ROLES:
                tag.decompose()

        return soup

    def content_markup(self) -> str:
        """Serialized content tree, handed to trafilatura."""
        return str(self.content_root)

    def fallback_text(self) -> str:
        """Visible text of the whole content tree, used when trafilatura finds nothing."""
        root = self.content_root.find("body") or self.content_root
        return block_text(root)

    # ------------------------------------------------------------------
    # Contact affordances
    # ------------------------------------------------------------------

    def contact_anchors(self) -> List[Tuple[str, str]]:
        """``(href, visible label)`` for every mailto:/tel: anchor."""
        anchors: List[Tuple[str, str]] = []
        for a in self._affordances.find_all("a", href=True):
            href = str(a["href"]).strip()
            if href.lower().startswith(("mailto:", "tel:")):
                anchors.append((href, collapse_whitespace(a.get_text(" "))))
        return anchors

    def button_texts(self) -> List[str]:
        """Visible text of button-like elements (buttons, role=button, .btn/.cta links, submit inputs)."""
        texts: List[str] = []
        for tag in self._affordances.find_all(["button", "a", "input"]):
            if tag.name == "input":
                if str(tag.get("type") or "").lower() in ("submit", "button") and tag.get("value"):
                    texts.append(collapse_whitespace(str(tag["value"])))
                continue

            if (
                tag.name == "button"
                or str(tag.get("role") or "").lower() == "button"
                or BUTTON_CLASS_HINT.search(_hint(tag))
            ):
                text = collapse_whitespace(tag.get_text(" "))
                if text:
                    texts.append(text)
        return texts

    def footer_texts(self) -> List[str]:
        """Text of <footer> and role=contentinfo elements (outermost only)."""
        texts: List[str] = []
        for tag in self._affordances.find_all(True):
            is_footer = tag.name == "footer" or str(tag.get("role") or "").lower() == "contentinfo"
            if not is_footer:
                continue
            if tag.find_parent(lambda p: p.name == "footer" or str(p.get("role") or "").lower() == "contentinfo"):
                continue
            text = collapse_whitespace(tag.get_text(" "))
            if text:
                texts.append(text)
        return texts

    # ------------------------------------------------------------------
    # Pricing affordances
    # ------------------------------------------------------------------

    def price_texts(self) -> List[str]:
        """
        Candidate lines for pricing detection.

        Lines come from elements whose class/id looks price-related, then
        from every link and button on the page.
        """
        lines: List[str] = []
        for tag in self._affordances.find_all(True):
            hint = _hint(tag)
            if hint and PRICE_HINT.search(hint):
                lines.extend(_lines(tag))

        for tag in self._affordances.find_all(["a", "button"]):
            lines.extend(_lines(tag))

        return lines
