"""
Paragraph-Aware Chunker

Splits extracted text into ordered fragments of at most ``max_chars``
characters. Paragraphs (separated by blank lines) are packed together while
they fit; a paragraph longer than the bound is flushed on its own and cut
into consecutive fixed-size slices.

Guarantees: deterministic, every chunk trimmed, non-empty and no longer
than ``max_chars``.
"""

from __future__ import annotations

import re
from typing import List

DEFAULT_MAX_CHARS = 1500

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
PARAGRAPH_JOINER = "\n\n"


def chunk_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> List[str]:
    """
    Split ``text`` into bounded-length chunks.

    Parameters
    ----------
    text : str
        Extracted page text; blank lines separate paragraphs.

    max_chars : int
        Upper bound on the length of every emitted chunk.

    Returns
    -------
    List[str]
        Chunks in original order. Empty input yields an empty list.
    """
    if max_chars < 1:
        raise ValueError("max_chars must be a positive integer")

    chunks: List[str] = []
    current = ""

    def flush() -> None:
        if current.strip():
            chunks.append(current.strip())

    for paragraph in PARAGRAPH_BREAK.split(text or ""):
        if len(paragraph) > max_chars:
            flush()
            current = ""
            for start in range(0, len(paragraph), max_chars):
                piece = paragraph[start:start + max_chars].strip()
                if piece:
                    chunks.append(piece)
            continue

        if len(current + PARAGRAPH_JOINER + paragraph) > max_chars:
            flush()
            current = paragraph
        else:
            current = current + PARAGRAPH_JOINER + paragraph if current else paragraph

    flush()
    return chunks
