"""
Knowledge Base Assembly

Pairs chunk texts with their vectors and wraps pages into documents. The
pipeline drafts every page first (extract + chunk), embeds all chunks in
order, then hands the flat vector list back here for assembly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..extract.extractor import ExtractedContent
from .chunker import DEFAULT_MAX_CHARS, chunk_text
from .models import Document, KnowledgeBase, TextChunk, Vector


class KnowledgeBaseError(ValueError):
    """Raised when chunks and vectors cannot be paired consistently."""


@dataclass(frozen=True)
class DraftDocument:
    """A chunked page waiting for its vectors."""
    id: str
    url: str
    title: str
    full_text: str
    chunks: List[str]


def draft_document(
    content: ExtractedContent,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> Optional[DraftDocument]:
    """Chunk one extracted page. Returns None when it yields no chunks."""
    full_text = content.text
    chunks = chunk_text(full_text, max_chars)
    if not chunks:
        return None

    return DraftDocument(
        id=content.url,
        url=content.url,
        title=content.title or content.url,
        full_text=full_text,
        chunks=chunks,
    )


def assemble_document(draft: DraftDocument, vectors: Sequence[Vector]) -> Document:
    if len(draft.chunks) != len(vectors):
        raise KnowledgeBaseError(
            f"{draft.url}: {len(draft.chunks)} chunks but {len(vectors)} vectors"
        )

    try:
        return Document(
            id=draft.id,
            url=draft.url,
            title=draft.title,
            full_text=draft.full_text,
            chunks=[
                TextChunk(sequence_index=i, text=text)
                for i, text in enumerate(draft.chunks)
            ],
            vectors=[list(v) for v in vectors],
        )
    except ValueError as exc:
        raise KnowledgeBaseError(str(exc)) from exc


def assemble_knowledge_base(
    drafts: Sequence[DraftDocument],
    vectors: Sequence[Vector],
) -> KnowledgeBase:
    """
    Build a knowledge base from drafts and the flat vector list.

    Parameters
    ----------
    drafts : Sequence[DraftDocument]
        Documents in crawl order.

    vectors : Sequence[Vector]
        One vector per chunk, in the order the chunks appear across
        ``drafts``.

    Raises
    ------
    KnowledgeBaseError
        On a count mismatch or mixed dimensionality.
    """
    expected = sum(len(d.chunks) for d in drafts)
    if expected != len(vectors):
        raise KnowledgeBaseError(
            f"Expected {expected} vectors for {len(drafts)} documents, got {len(vectors)}"
        )

    documents: List[Document] = []
    offset = 0
    for draft in drafts:
        count = len(draft.chunks)
        documents.append(assemble_document(draft, vectors[offset:offset + count]))
        offset += count

    try:
        return KnowledgeBase(documents=documents)
    except ValueError as exc:
        raise KnowledgeBaseError(str(exc)) from exc
