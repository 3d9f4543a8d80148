import math

import pytest

from sitechat.knowledge.models import Document, Hit, KnowledgeBase, TextChunk
from sitechat.knowledge.retriever import cosine_similarity, rank_hits, retrieve


def _hit(score, name="doc"):
    return Hit(score=score, chunk_text=name, document_url=f"https://kb.test/{name}", document_title=name)


def _unit(score):
    """2-d unit vector whose cosine with (1, 0) is ``score``."""
    return [score, math.sqrt(1.0 - score * score)]


def _kb(*docs):
    documents = []
    for name, vectors in docs:
        documents.append(
            Document(
                id=name,
                url=f"https://kb.test/{name}",
                title=name.title(),
                chunks=[TextChunk(sequence_index=i, text=f"{name} chunk {i}") for i in range(len(vectors))],
                vectors=vectors,
            )
        )
    return KnowledgeBase(documents=documents)


class TestCosineSimilarity:

    def test_identical_and_orthogonal(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_symmetric_and_bounded(self):
        a, b = [0.3, -1.2, 4.0], [2.0, 0.5, -0.7]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_zero_vector_scores_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_dimension_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity([1.0], [1.0, 2.0])


class TestRanking:

    def test_top_k_in_descending_order(self):
        hits = [_hit(s, f"h{i}") for i, s in enumerate([0.9, 0.5, 0.95, 0.1, 0.99])]

        assert [h.score for h in rank_hits(hits, 3)] == [0.99, 0.95, 0.9]

    def test_k_larger_than_total_returns_everything(self):
        hits = [_hit(0.2), _hit(0.7)]
        assert [h.score for h in rank_hits(hits, 5)] == [0.7, 0.2]

    def test_ties_keep_encounter_order(self):
        hits = [_hit(0.5, "first"), _hit(0.8, "top"), _hit(0.5, "second")]
        assert [h.chunk_text for h in rank_hits(hits, 3)] == ["top", "first", "second"]

    def test_non_positive_k(self):
        assert rank_hits([_hit(0.5)], 0) == []


class TestRetrieve:

    def test_scans_every_document(self):
        kb = _kb(
            ("alpha", [_unit(0.9), _unit(0.5)]),
            ("beta", [_unit(0.95), _unit(0.1), _unit(0.99)]),
        )

        hits = retrieve([1.0, 0.0], kb, k=3)

        assert [round(h.score, 6) for h in hits] == [0.99, 0.95, 0.9]
        assert [h.chunk_text for h in hits] == ["beta chunk 2", "beta chunk 0", "alpha chunk 0"]
        assert hits[2].document_url == "https://kb.test/alpha"
        assert hits[2].document_title == "Alpha"

    def test_default_k_is_five(self):
        kb = _kb(("alpha", [_unit(s) for s in (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7)]))
        assert len(retrieve([1.0, 0.0], kb)) == 5

    def test_empty_knowledge_base(self):
        assert retrieve([1.0, 0.0], KnowledgeBase.empty()) == []

    def test_query_dimension_must_match(self):
        kb = _kb(("alpha", [[1.0, 0.0]]))
        with pytest.raises(ValueError):
            retrieve([1.0, 0.0, 0.0], kb)
