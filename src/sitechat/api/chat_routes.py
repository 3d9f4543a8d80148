"""
Chat Routes: Grounded Question Answering

Answers a question from one knowledge base: the ready knowledge base of
the given session, or the default knowledge base when no session id is
supplied.

Request Flow
------------
1. Select the knowledge base. Nothing to search means the fixed
   no-content reply, with no embedding or generation call made.
2. Embed the question.
3. Retrieve the top-K chunks by cosine similarity.
4. Ask the generation service to answer from those chunks only.
5. Return the reply with the cited sources, numbered ``S1..Sn``.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, status

from .models import ChatRequest, ChatResponse, SourceRef
from .dependencies import (
    get_default_knowledge_base,
    get_embedder,
    get_llm_client,
    get_session_store,
    get_settings,
)
from ..config import Settings
from ..embeddings.embedder import Embedder
from ..knowledge.models import Hit, KnowledgeBase
from ..knowledge.retriever import retrieve
from ..llm.client import LLMClient
from ..llm.prompts import NO_CONTENT_REPLY, build_chat_messages, source_id
from ..sessions.store import SessionStore

logger = logging.getLogger("sitechat.chat")

router = APIRouter(tags=["chat"])


# ---------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------

def _select_knowledge_base(
    session_id: Optional[str],
    store: SessionStore,
    default_kb: KnowledgeBase,
) -> Optional[KnowledgeBase]:
    """The knowledge base a question is answered from, or None if there is none."""
    if not session_id:
        return default_kb

    session = store.get(session_id)
    if session is None or not session.is_ready:
        return None
    return session.knowledge_base


def _to_sources(hits: List[Hit]) -> List[SourceRef]:
    return [
        SourceRef(
            id=source_id(i),
            title=hit.document_title,
            url=hit.document_url,
            score=round(hit.score, 3),
        )
        for i, hit in enumerate(hits)
    ]


# ---------------------------------------------------------------------
# Chat Route
# ---------------------------------------------------------------------

@router.post(
    "/chat",
    response_model=ChatResponse,
    summary="Ask a question about an ingested website",
    status_code=status.HTTP_200_OK,
)
async def chat(
    req: ChatRequest,
    embedder: Annotated[Embedder, Depends(get_embedder)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
    store: Annotated[SessionStore, Depends(get_session_store)],
    default_kb: Annotated[KnowledgeBase, Depends(get_default_knowledge_base)],
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> ChatResponse:
    """
    Answer ``req.message`` from the selected knowledge base.

    Embedding and generation failures propagate as ``UpstreamServiceError``
    and are reported as 502 by the global handler.
    """
    knowledge_base = _select_knowledge_base(req.session_id, store, default_kb)

    if knowledge_base is None or knowledge_base.is_empty:
        logger.info("No content for chat (session=%s)", req.session_id)
        return ChatResponse(reply=NO_CONTENT_REPLY, sources=[])

    if req.metadata is not None and req.metadata.user_id:
        logger.debug("Chat from user %s", req.metadata.user_id)

    query_vector = await embedder.embed_one(req.message)
    hits = retrieve(query_vector, knowledge_base, app_settings.top_k)

    reply = await llm.chat(build_chat_messages(req.message, hits))

    return ChatResponse(reply=reply, sources=_to_sources(hits))
