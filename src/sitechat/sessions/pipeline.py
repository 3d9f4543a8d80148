"""
Ingestion Pipeline

crawl -> extract -> chunk -> embed -> assemble, for one seed URL.

``build_knowledge_base`` is the pure pipeline (used by the session routes
and by the offline snapshot builder). ``run_ingestion`` binds it to a
session: success marks the session ready, any failure discards it.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import List, Optional, Set

import httpx

from ..config import settings
from ..crawl.crawler import Crawler
from ..embeddings.embedder import Embedder
from ..extract.extractor import extract
from ..knowledge.assembler import DraftDocument, assemble_knowledge_base, draft_document
from ..knowledge.models import KnowledgeBase
from .store import SessionStore

logger = logging.getLogger("sitechat.pipeline")

# Strong references to in-flight ingestion tasks
_background_tasks: Set[asyncio.Task] = set()


class IngestionError(RuntimeError):
    """Raised when a crawl produces nothing to index."""


class IngestionPipeline:
    """Builds a knowledge base from a site. Stateless between runs."""

    def __init__(
        self,
        embedder: Embedder,
        max_pages: Optional[int] = None,
        same_host_only: Optional[bool] = None,
        max_chunk_chars: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.embedder = embedder
        self.max_pages = max_pages or settings.session_max_pages
        self.same_host_only = settings.same_host_only if same_host_only is None else same_host_only
        self.max_chunk_chars = max_chunk_chars or settings.max_chunk_chars
        self._client = client

    def _crawler(self) -> Crawler:
        return Crawler(
            max_pages=self.max_pages,
            same_host_only=self.same_host_only,
            client=self._client,
        )

    async def build_knowledge_base(self, seed_url: str) -> KnowledgeBase:
        """
        Run the full pipeline for ``seed_url``.

        Raises
        ------
        IngestionError
            If no page was fetched or no page yielded any text.

        EmbeddingError
            If any embedding batch fails.
        """
        drafts: List[DraftDocument] = []
        pages = 0

        async with aclosing(self._crawler().iter_pages(seed_url)) as crawled:
            async for page in crawled:
                pages += 1
                content = await asyncio.to_thread(extract, page.markup, page.url)
                if content is None:
                    logger.info("No content extracted from %s", page.url)
                    continue

                draft = draft_document(content, self.max_chunk_chars)
                if draft is not None:
                    drafts.append(draft)

        if pages == 0:
            raise IngestionError(f"No pages could be fetched from {seed_url}")
        if not drafts:
            raise IngestionError(f"No content extracted from {pages} pages of {seed_url}")

        texts = [chunk for draft in drafts for chunk in draft.chunks]
        logger.info(
            "Embedding %d chunks from %d documents (%s)",
            len(texts),
            len(drafts),
            seed_url,
        )
        vectors = await self.embedder.embed(texts)

        return assemble_knowledge_base(drafts, vectors)


async def run_ingestion(
    store: SessionStore,
    session_id: str,
    seed_url: str,
    pipeline: IngestionPipeline,
) -> None:
    """
    Ingest ``seed_url`` into session ``session_id``.

    Never raises: a failure of any kind removes the session, which then
    polls as not found.
    """
    try:
        knowledge_base = await pipeline.build_knowledge_base(seed_url)
    except asyncio.CancelledError:
        store.discard(session_id)
        raise
    except Exception:
        logger.exception("Ingestion failed for session %s (%s)", session_id, seed_url)
        store.discard(session_id)
        return

    store.mark_ready(session_id, knowledge_base)


def spawn_ingestion(
    store: SessionStore,
    session_id: str,
    seed_url: str,
    pipeline: IngestionPipeline,
) -> asyncio.Task:
    """Start ``run_ingestion`` in the background and return its task."""
    task = asyncio.create_task(
        run_ingestion(store, session_id, seed_url, pipeline),
        name=f"ingest-{session_id}",
    )
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task
