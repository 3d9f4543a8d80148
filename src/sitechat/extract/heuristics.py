"""
Contact and Pricing Heuristics

Pure functions over plain strings. ``ParsedPage`` supplies the raw inputs
(anchor targets, button labels, footer text, price-candidate lines); these
functions decide what is worth keeping and how it is rendered.

Both detectors return lines in first-seen order with duplicates removed.
``append_section`` renders a labeled block onto the main text.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import unquote


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

CONTACT_LABEL = "Contact"
PRICING_LABEL = "Pricing"

FOOTER_MAX_CHARS = 500
BUTTON_MAX_CHARS = 60
PRICE_LINE_MAX_CHARS = 180
ELLIPSIS = "…"

# English plus Hungarian equivalents
CONTACT_INTENT = re.compile(
    r"\b(contact|call|phone|e-?mail|mail us|write to us|get in touch|enquir\w*|inquir\w*"
    r"|kapcsolat\w*|hívj\w*|hívás\w*|telefon\w*|írj\w*|üzen\w*|ajánlat\w*|érdeklőd\w*)",
    re.IGNORECASE,
)

_AMOUNT = r"(?:\d{1,3}(?:[ .,\u00a0\u202f]\d{3})+|\d+)(?:[.,]\d{1,2})?"
_CURRENCY = r"(?:Ft|HUF|EUR|USD|GBP|CHF|forint|euro|€|\$|£)"

CURRENCY_AMOUNT = re.compile(
    rf"{_AMOUNT}\s?{_CURRENCY}(?![A-Za-z])|(?:€|\$|£)\s?\d",
)

RECURRING_PERIOD = re.compile(
    r"/\s?(?:month|mo|year|yr|week|wk|day|night|hour|hr|person|user|seat"
    r"|hó|hónap|év|hét|nap|éj|éjszaka|óra|fő)\b",
    re.IGNORECASE,
)

_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------

def dedupe(lines: Iterable[str]) -> List[str]:
    """Drop empty and repeated lines, keeping first-seen order."""
    seen = set()
    out: List[str] = []
    for line in lines:
        if not line or line in seen:
            continue
        seen.add(line)
        out.append(line)
    return out


def cap_length(text: str, limit: int) -> str:
    """Trim ``text`` to at most ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def append_section(text: str, label: str, lines: List[str]) -> str:
    """Append ``"\\n\\n<label>:\\n" + lines`` to ``text``; unchanged when ``lines`` is empty."""
    if not lines:
        return text
    return f"{text}\n\n{label}:\n" + "\n".join(lines)


# ---------------------------------------------------------------------
# Contact detection
# ---------------------------------------------------------------------

def parse_contact_href(href: str) -> Optional[Tuple[str, str]]:
    """
    Split a mailto:/tel: target into ``(kind, address)``.

    ``kind`` is ``"Email"`` or ``"Phone"``. Query strings on mailto links
    (``?subject=...``) are dropped. Returns None for any other scheme or an
    empty address.
    """
    href = href.strip()
    lowered = href.lower()

    if lowered.startswith("mailto:"):
        address = unquote(href[len("mailto:"):].split("?", 1)[0]).strip()
        return ("Email", address) if address else None

    if lowered.startswith("tel:"):
        address = unquote(href[len("tel:"):]).strip()
        return ("Phone", address) if address else None

    return None


def _same_text(a: str, b: str) -> bool:
    def norm(s: str) -> str:
        return _WHITESPACE.sub("", s).lower()
    return norm(a) == norm(b)


def contact_anchor_line(href: str, label: str) -> Optional[str]:
    """Render one contact anchor; the label is shown only when it adds something."""
    parsed = parse_contact_href(href)
    if parsed is None:
        return None

    kind, address = parsed
    label = label.strip()
    if label and not _same_text(label, address) and not _same_text(label, href):
        return f"{kind}: {address} ({label})"
    return f"{kind}: {address}"


def is_contact_button(text: str) -> bool:
    """Short button-like text that expresses a contact intent."""
    text = text.strip()
    return 0 < len(text) <= BUTTON_MAX_CHARS and bool(CONTACT_INTENT.search(text))


def contact_lines(
    anchors: Iterable[Tuple[str, str]],
    buttons: Iterable[str],
    footers: Iterable[str],
) -> List[str]:
    """
    Collect contact affordances.

    Parameters
    ----------
    anchors : Iterable[Tuple[str, str]]
        ``(href, label)`` pairs of mailto:/tel: anchors.

    buttons : Iterable[str]
        Visible text of button-like elements.

    footers : Iterable[str]
        Text of footer/contentinfo elements; each is truncated to
        ``FOOTER_MAX_CHARS``.

    Returns
    -------
    List[str]
        Deduplicated lines: anchors first, then buttons, then footers.
    """
    lines: List[str] = []

    for href, label in anchors:
        line = contact_anchor_line(href, label)
        if line:
            lines.append(line)

    for text in buttons:
        text = _WHITESPACE.sub(" ", text).strip()
        if is_contact_button(text):
            lines.append(f"Button: {text}")

    for text in footers:
        text = _WHITESPACE.sub(" ", text).strip()
        if text:
            lines.append(f"Footer: {text[:FOOTER_MAX_CHARS]}")

    return dedupe(lines)


# ---------------------------------------------------------------------
# Pricing detection
# ---------------------------------------------------------------------

def is_price_line(line: str) -> bool:
    """True for lines mentioning a currency amount or a recurring period such as "/month"."""
    return bool(CURRENCY_AMOUNT.search(line) or RECURRING_PERIOD.search(line))


def pricing_lines(candidates: Iterable[str]) -> List[str]:
    """
    Keep price-like lines, trimmed and capped to ``PRICE_LINE_MAX_CHARS``.

    Multi-line candidates are split so each line is judged on its own.
    """
    lines: List[str] = []
    for candidate in candidates:
        for raw in candidate.splitlines():
            line = _WHITESPACE.sub(" ", raw).strip()
            if line and is_price_line(line):
                lines.append(cap_length(line, PRICE_LINE_MAX_CHARS))
    return dedupe(lines)
