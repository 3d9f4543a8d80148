"""
Persisted default knowledge base.

The file is a JSON array of records::

    [{"id": ..., "url": ..., "title": ..., "text": ...,
      "chunks": ["...", ...], "vectors": [[...], ...]}, ...]

``text`` is written for inspection and ignored on load.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .models import Document, KnowledgeBase, TextChunk

logger = logging.getLogger("sitechat.snapshot")

PathLike = Union[str, Path]


class SnapshotError(RuntimeError):
    """Raised when a snapshot file exists but cannot be read."""


def _document_from_record(record: Any, position: int) -> Document:
    if not isinstance(record, dict):
        raise SnapshotError(f"Record {position} is not an object")

    try:
        chunks = record.get("chunks") or []
        return Document(
            id=str(record.get("id") or record["url"]),
            url=record["url"],
            title=record.get("title") or "",
            full_text="\n\n".join(chunks),
            chunks=[TextChunk(sequence_index=i, text=t) for i, t in enumerate(chunks)],
            vectors=record.get("vectors") or [],
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise SnapshotError(f"Record {position} is invalid: {exc}") from exc


def _record_from_document(document: Document) -> Dict[str, Any]:
    return {
        "id": document.id,
        "url": document.url,
        "title": document.title,
        "text": document.full_text,
        "chunks": [c.text for c in document.chunks],
        "vectors": document.vectors,
    }


def load_knowledge_base(path: PathLike) -> KnowledgeBase:
    """
    Load a snapshot. A missing file is an empty knowledge base.

    Raises
    ------
    SnapshotError
        On unreadable JSON, a non-array payload or an invalid record.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No knowledge base snapshot at %s; starting empty", path)
        return KnowledgeBase.empty()

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SnapshotError(f"Cannot read snapshot {path}: {exc}") from exc

    if not isinstance(payload, list):
        raise SnapshotError(f"Snapshot {path} must contain a JSON array")

    documents: List[Document] = [
        _document_from_record(record, i) for i, record in enumerate(payload)
    ]

    try:
        kb = KnowledgeBase(documents=documents)
    except ValueError as exc:
        raise SnapshotError(f"Snapshot {path} is inconsistent: {exc}") from exc

    logger.info(
        "Loaded knowledge base snapshot %s: %d documents, %d chunks",
        path,
        kb.document_count,
        kb.chunk_count,
    )
    return kb


def save_knowledge_base(knowledge_base: KnowledgeBase, path: PathLike) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    records = [_record_from_document(d) for d in knowledge_base.documents]
    path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")

    logger.info("Wrote %d documents to %s", len(records), path)
    return path
