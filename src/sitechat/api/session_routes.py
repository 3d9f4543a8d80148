"""
Session Routes: Website Ingestion

- ``POST /sessions`` registers a session and starts ingesting the given
  site in the background. It answers immediately with status ``scraping``.
- ``GET /sessions/{session_id}`` polls a session: ``scraping`` while the
  pipeline runs, ``ready`` with a summary once the knowledge base exists,
  ``not_found`` for unknown, failed or expired sessions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from .models import (
    IngestRequest,
    IngestResponse,
    PageRef,
    SessionStatusResponse,
    SessionSummary,
)
from .dependencies import get_ingestion_pipeline, get_session_store
from ..knowledge.models import KnowledgeBase
from ..sessions.pipeline import IngestionPipeline, spawn_ingestion
from ..sessions.store import SessionStore

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _summarize(knowledge_base: KnowledgeBase) -> SessionSummary:
    documents = knowledge_base.document_count
    chunks = knowledge_base.chunk_count
    return SessionSummary(
        documents=documents,
        chunks=chunks,
        pages=[PageRef(title=d.title, url=d.url) for d in knowledge_base.documents],
        message=f"Indexed {documents} pages into {chunks} chunks. Ask away!",
    )


@router.post(
    "",
    response_model=IngestResponse,
    summary="Start ingesting a website",
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_ingestion(
    req: IngestRequest,
    store: Annotated[SessionStore, Depends(get_session_store)],
    pipeline: Annotated[IngestionPipeline, Depends(get_ingestion_pipeline)],
) -> IngestResponse:
    session = store.create(req.url)
    spawn_ingestion(store, session.session_id, req.url, pipeline)
    return IngestResponse(session_id=session.session_id)


@router.get(
    "/{session_id}",
    response_model=SessionStatusResponse,
    response_model_exclude_none=True,
    summary="Poll ingestion status",
)
def get_session_status(
    session_id: str,
    store: Annotated[SessionStore, Depends(get_session_store)],
) -> SessionStatusResponse:
    session = store.get(session_id)

    if session is None:
        return SessionStatusResponse(session_id=session_id, status="not_found")

    if not session.is_ready or session.knowledge_base is None:
        return SessionStatusResponse(session_id=session_id, status="scraping")

    return SessionStatusResponse(
        session_id=session_id,
        status="ready",
        summary=_summarize(session.knowledge_base),
    )
