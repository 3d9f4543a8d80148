"""
Similarity Retriever

Exhaustive cosine-similarity scan over every chunk of a knowledge base.
No approximate index: the knowledge bases are small (one site) and a full
scan keeps ranking exact and deterministic.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np

from .models import Hit, KnowledgeBase

EPSILON = 1e-12
DEFAULT_TOP_K = 5


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b| + EPSILON)``; zero vectors score 0."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape} vs {vb.shape}")
    return float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb) + EPSILON))


def score_chunks(query_vector: Sequence[float], knowledge_base: KnowledgeBase) -> List[Hit]:
    """One hit per chunk, in document then chunk order."""
    query = np.asarray(query_vector, dtype=np.float64)
    dimension = knowledge_base.dimension
    if dimension is not None and query.shape != (dimension,):
        raise ValueError(
            f"Query vector has shape {query.shape}, knowledge base dimension is {dimension}"
        )

    query_norm = np.linalg.norm(query)
    hits: List[Hit] = []

    for document in knowledge_base.documents:
        if not document.vectors:
            continue

        matrix = np.asarray(document.vectors, dtype=np.float64)
        scores = (matrix @ query) / (np.linalg.norm(matrix, axis=1) * query_norm + EPSILON)

        for chunk, score in zip(document.chunks, scores):
            hits.append(
                Hit(
                    score=float(score),
                    chunk_text=chunk.text,
                    document_url=document.url,
                    document_title=document.title,
                )
            )

    return hits


def rank_hits(hits: Iterable[Hit], k: int) -> List[Hit]:
    """Top ``k`` hits by descending score; ties keep encounter order."""
    if k <= 0:
        return []
    return sorted(hits, key=lambda h: h.score, reverse=True)[:k]


def retrieve(
    query_vector: Sequence[float],
    knowledge_base: KnowledgeBase,
    k: int = DEFAULT_TOP_K,
) -> List[Hit]:
    """
    Return the ``min(k, total chunks)`` chunks most similar to the query.

    Raises
    ------
    ValueError
        If the query dimensionality does not match the knowledge base.
    """
    if knowledge_base.is_empty:
        return []
    return rank_hits(score_chunks(query_vector, knowledge_base), k)
