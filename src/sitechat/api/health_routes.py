from typing import Annotated

from fastapi import APIRouter, Depends

from ..knowledge.models import KnowledgeBase
from ..sessions.store import SessionStore
from .dependencies import get_default_knowledge_base, get_session_store

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    default_kb: Annotated[KnowledgeBase, Depends(get_default_knowledge_base)],
    store: Annotated[SessionStore, Depends(get_session_store)],
):
    return {
        "status": "ok",
        "default_documents": default_kb.document_count,
        "active_sessions": len(store),
    }
