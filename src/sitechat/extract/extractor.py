"""
Content Extraction

Turns raw page markup into the text that gets chunked and embedded: the
main content found by trafilatura, followed by optional ``Contact:`` and
``Pricing:`` sections.

Extraction is best-effort. Malformed, empty or script-only markup yields
``None`` (the page is skipped) and is never an error for the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import trafilatura
from bs4 import ParserRejectedMarkup

from .document import ParsedPage
from .heuristics import (
    CONTACT_LABEL,
    PRICING_LABEL,
    append_section,
    contact_lines,
    pricing_lines,
)

logger = logging.getLogger("sitechat.extractor")


@dataclass(frozen=True)
class ExtractedContent:
    """Result of extracting one page."""
    url: str
    title: str
    main_text: str
    contact: Tuple[str, ...] = field(default_factory=tuple)
    pricing: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str:
        """Main text with the labeled sections appended."""
        text = append_section(self.main_text, CONTACT_LABEL, list(self.contact))
        return append_section(text, PRICING_LABEL, list(self.pricing))


def _as_paragraphs(text: str) -> str:
    # trafilatura emits one line per block; the chunker packs on blank lines
    lines = [line.strip() for line in text.splitlines()]
    return "\n\n".join(line for line in lines if line)


def select_main_text(page: ParsedPage) -> str:
    """
    Main content as found by trafilatura in the boilerplate-free content
    tree, or that tree's visible text when trafilatura finds nothing.
    """
    markup = page.content_markup()
    text = None
    if markup.strip():
        text = trafilatura.extract(
            markup,
            url=page.url or None,
            include_comments=False,
            include_tables=True,
            include_links=False,
        )

    if text and text.strip():
        return _as_paragraphs(text)

    return page.fallback_text()


def select_title(markup: str, page: ParsedPage) -> str:
    """trafilatura's metadata title, else the page's own <title>/og:title/<h1>."""
    metadata = trafilatura.extract_metadata(markup) if markup.strip() else None
    if metadata is not None and metadata.title and metadata.title.strip():
        return metadata.title.strip()
    return page.title


def extract_sections(page: ParsedPage) -> Tuple[List[str], List[str]]:
    """Contact and pricing lines for a page."""
    contact = contact_lines(
        page.contact_anchors(),
        page.button_texts(),
        page.footer_texts(),
    )
    pricing = pricing_lines(page.price_texts())
    return contact, pricing


def extract(markup: str, page_url: str) -> Optional[ExtractedContent]:
    """
    Extract the main narrative text of a page plus contact/pricing sections.

    Parameters
    ----------
    markup : str
        Raw HTML as fetched.

    page_url : str
        URL of the page, kept for traceability.

    Returns
    -------
    Optional[ExtractedContent]
        None when the markup is rejected or has no visible main text.
    """
    try:
        page = ParsedPage(markup, page_url)
        main_text = select_main_text(page)
        if not main_text:
            logger.debug("No main content in %s", page_url)
            return None

        contact, pricing = extract_sections(page)
        title = select_title(markup or "", page)
    except (ParserRejectedMarkup, RecursionError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("Extraction failed for %s: %s", page_url, exc)
        return None

    logger.debug(
        "Extracted %s: %d chars, %d contact lines, %d pricing lines",
        page_url,
        len(main_text),
        len(contact),
        len(pricing),
    )

    return ExtractedContent(
        url=page_url,
        title=title,
        main_text=main_text,
        contact=tuple(contact),
        pricing=tuple(pricing),
    )
