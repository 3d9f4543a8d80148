"""
Knowledge Base Data Models

Canonical, immutable representation of ingested site content:

- ``TextChunk``: one retrievable fragment of a page's extracted text
- ``Document``: one page, its chunks and the vector of each chunk
- ``KnowledgeBase``: the documents available to one session (or the default set)
- ``Hit``: one scored chunk returned by retrieval

Invariants are enforced at construction time, so any ``KnowledgeBase`` that
exists is internally consistent: every document has as many vectors as
chunks, and every vector in the knowledge base has the same dimensionality.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


Vector = List[float]


class TextChunk(BaseModel):
    """A bounded-length fragment of a document's text."""

    sequence_index: int = Field(..., ge=0, description="Position within the parent document.")
    text: str = Field(..., min_length=1, description="Chunk text (trimmed, never empty).")

    model_config = ConfigDict(extra="forbid", frozen=True)


class Document(BaseModel):
    """
    One successfully extracted page.

    ``vectors[i]`` is the embedding of ``chunks[i].text``.
    """

    id: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    title: str = ""
    full_text: str = ""
    chunks: List[TextChunk] = Field(default_factory=list)
    vectors: List[Vector] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_vectors(self) -> "Document":
        if len(self.chunks) != len(self.vectors):
            raise ValueError(
                f"Document {self.id!r} has {len(self.chunks)} chunks "
                f"but {len(self.vectors)} vectors"
            )

        dims = {len(v) for v in self.vectors}
        if 0 in dims:
            raise ValueError(f"Document {self.id!r} contains an empty vector")
        if len(dims) > 1:
            raise ValueError(f"Document {self.id!r} mixes vector dimensions {sorted(dims)}")

        return self

    @property
    def dimension(self) -> Optional[int]:
        return len(self.vectors[0]) if self.vectors else None


class KnowledgeBase(BaseModel):
    """Ordered collection of documents sharing one vector dimensionality."""

    documents: List[Document] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "KnowledgeBase":
        dims = {d.dimension for d in self.documents if d.dimension is not None}
        if len(dims) > 1:
            raise ValueError(f"Knowledge base mixes vector dimensions {sorted(dims)}")
        return self

    @classmethod
    def empty(cls) -> "KnowledgeBase":
        return cls(documents=[])

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def chunk_count(self) -> int:
        return sum(len(d.chunks) for d in self.documents)

    @property
    def dimension(self) -> Optional[int]:
        for document in self.documents:
            if document.dimension is not None:
                return document.dimension
        return None

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to retrieve from."""
        return self.chunk_count == 0


class Hit(BaseModel):
    """A chunk scored against a query vector."""

    score: float
    chunk_text: str
    document_url: str
    document_title: str

    model_config = ConfigDict(extra="forbid", frozen=True)
