"""
Prompt construction for grounded answers.

The model only sees the retrieved chunks. Sources are numbered ``S1..Sn``
in rank order, and the same numbering is returned to the caller so inline
citations in the reply can be matched to URLs.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Sequence

from ..knowledge.models import Hit

NO_CONTENT_REPLY = (
    "No website content is available yet. Start an ingestion for a site "
    "and wait until it is ready, then ask again."
)

HUNGARIAN_DIACRITICS = re.compile(r"[áéíóöőúüű]", re.IGNORECASE)
HUNGARIAN_MARKERS = re.compile(r"\b(és|van|vagy|kérlek|ár|nyitvatartás)\b", re.IGNORECASE)

_SYSTEM_RULES = (
    "You are a concise support bot that answers ONLY using the provided context.",
    "If the answer is not in context, say you do not know and suggest contacting the company.",
    "Cite sources inline as [S1], [S2] etc. matching the provided Source list.",
)


def looks_hungarian(text: str) -> bool:
    return bool(HUNGARIAN_DIACRITICS.search(text) or HUNGARIAN_MARKERS.search(text))


def source_id(rank: int) -> str:
    """Citation label for the 0-based ``rank``."""
    return f"S{rank + 1}"


def build_system_prompt(question: str) -> str:
    language = (
        "Respond in Hungarian."
        if looks_hungarian(question)
        else "Respond in the user language (default English)."
    )
    return " ".join([*_SYSTEM_RULES, language])


def build_context(hits: Sequence[Hit]) -> str:
    return "\n\n".join(
        f"Source {i + 1} ({hit.document_title}):\n{hit.chunk_text}"
        for i, hit in enumerate(hits)
    )


def build_source_list(hits: Sequence[Hit]) -> str:
    return "\n".join(
        f"[{source_id(i)}] {hit.document_title} - {hit.document_url}"
        for i, hit in enumerate(hits)
    )


def build_chat_messages(question: str, hits: Sequence[Hit]) -> List[Dict[str, Any]]:
    """System + user messages for one grounded question."""
    user = (
        f"User question:\n{question}\n\n"
        f"Context:\n{build_context(hits)}\n\n"
        "When you answer, include inline citations like [S1], [S2].\n\n"
        f"Sources:\n{build_source_list(hits)}"
    )
    return [
        {"role": "system", "content": build_system_prompt(question)},
        {"role": "user", "content": user},
    ]
