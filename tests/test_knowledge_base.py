"""
Knowledge base assembly and snapshot persistence.
"""

import json

import pytest

from sitechat.extract.extractor import ExtractedContent
from sitechat.knowledge.assembler import (
    KnowledgeBaseError,
    assemble_knowledge_base,
    draft_document,
)
from sitechat.knowledge.models import KnowledgeBase
from sitechat.knowledge.snapshot import SnapshotError, load_knowledge_base, save_knowledge_base


def _content(url, text, title="Page"):
    return ExtractedContent(url=url, title=title, main_text=text)


class TestAssembler:

    def test_draft_falls_back_to_url_title(self):
        draft = draft_document(_content("https://a.test/x", "Body text", title=""), 100)

        assert draft.title == "https://a.test/x"
        assert draft.id == "https://a.test/x"
        assert draft.chunks == ["Body text"]

    def test_draft_includes_appended_sections(self):
        content = ExtractedContent(
            url="https://a.test/",
            title="A",
            main_text="Body",
            contact=("Email: a@a.test",),
        )
        draft = draft_document(content, 100)

        assert draft.full_text == "Body\n\nContact:\nEmail: a@a.test"

    def test_vectors_are_distributed_in_order(self):
        drafts = [
            draft_document(_content("https://a.test/1", "one\n\ntwo"), 4),
            draft_document(_content("https://a.test/2", "three"), 10),
        ]

        kb = assemble_knowledge_base(drafts, [[1.0, 0.0], [0.0, 1.0], [1.0, 1.0]])

        assert kb.document_count == 2
        assert kb.chunk_count == 3
        assert kb.dimension == 2
        first, second = kb.documents
        assert [c.text for c in first.chunks] == ["one", "two"]
        assert first.vectors == [[1.0, 0.0], [0.0, 1.0]]
        assert second.vectors == [[1.0, 1.0]]
        assert [c.sequence_index for c in first.chunks] == [0, 1]

    def test_count_mismatch_is_rejected(self):
        drafts = [draft_document(_content("https://a.test/1", "one"), 10)]

        with pytest.raises(KnowledgeBaseError):
            assemble_knowledge_base(drafts, [[1.0], [2.0]])

    def test_mixed_dimensions_are_rejected(self):
        drafts = [
            draft_document(_content("https://a.test/1", "one"), 10),
            draft_document(_content("https://a.test/2", "two"), 10),
        ]

        with pytest.raises(KnowledgeBaseError):
            assemble_knowledge_base(drafts, [[1.0, 0.0], [1.0, 0.0, 0.0]])


class TestSnapshot:

    def test_missing_file_is_empty(self, tmp_path):
        kb = load_knowledge_base(tmp_path / "nope.json")
        assert kb.is_empty

    def test_save_then_load(self, tmp_path):
        drafts = [draft_document(_content("https://a.test/1", "one\n\ntwo", title="One"), 4)]
        kb = assemble_knowledge_base(drafts, [[0.1, 0.2], [0.3, 0.4]])
        path = tmp_path / "data" / "embeddings.json"

        save_knowledge_base(kb, path)
        records = json.loads(path.read_text(encoding="utf-8"))
        loaded = load_knowledge_base(path)

        assert records[0]["chunks"] == ["one", "two"]
        assert records[0]["text"] == "one\n\ntwo"
        assert loaded.chunk_count == 2
        assert loaded.documents[0].title == "One"
        assert loaded.documents[0].vectors == [[0.1, 0.2], [0.3, 0.4]]

    def test_records_without_text_field_load(self, tmp_path):
        path = tmp_path / "kb.json"
        path.write_text(json.dumps([
            {"id": "x", "url": "https://a.test/", "title": "A", "chunks": ["hi"], "vectors": [[1, 0]]}
        ]))

        kb = load_knowledge_base(path)

        assert kb.documents[0].vectors == [[1.0, 0.0]]

    def test_empty_array_is_empty_knowledge_base(self, tmp_path):
        path = tmp_path / "kb.json"
        save_knowledge_base(KnowledgeBase.empty(), path)

        assert path.read_text(encoding="utf-8") == "[]"
        assert load_knowledge_base(path).is_empty

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            json.dumps({"documents": []}),
            json.dumps([{"id": "x", "title": "no url", "chunks": [], "vectors": []}]),
            json.dumps([{"id": "x", "url": "https://a.test/", "chunks": ["a", "b"], "vectors": [[1.0]]}]),
        ],
    )
    def test_malformed_snapshots_raise(self, tmp_path, payload):
        path = tmp_path / "kb.json"
        path.write_text(payload)

        with pytest.raises(SnapshotError):
            load_knowledge_base(path)
