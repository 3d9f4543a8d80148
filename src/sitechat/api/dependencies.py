from functools import lru_cache

from ..config import Settings, settings
from ..llm.client import LLMClient
from ..embeddings.embedder import Embedder
from ..knowledge.models import KnowledgeBase
from ..sessions.pipeline import IngestionPipeline
from ..sessions.store import SessionStore, session_store

# Replaced by the app lifespan once the snapshot is loaded
_default_knowledge_base: KnowledgeBase = KnowledgeBase.empty()


def set_default_knowledge_base(knowledge_base: KnowledgeBase) -> None:
    global _default_knowledge_base
    _default_knowledge_base = knowledge_base


def get_default_knowledge_base() -> KnowledgeBase:
    return _default_knowledge_base


def get_settings() -> Settings:
    return settings


def get_session_store() -> SessionStore:
    return session_store


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


@lru_cache
def get_embedder() -> Embedder:
    return Embedder()


@lru_cache
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(embedder=get_embedder())
