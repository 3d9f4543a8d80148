"""
Session Store

In-memory registry of ingestion sessions and their knowledge bases.

Each session moves through a single transition::

    pending (scraping) --mark_ready--> ready
            |
            +--discard (failure / empty crawl)--> removed

and any session, whatever its status, is removed by the TTL sweep once its
age reaches ``ttl_seconds``.

Design choices
--------------
- In-memory only (no persistence across process restarts).
- Thread-safe access using a re-entrant lock.
- ``Session`` objects are immutable and replaced whole on update, so a
  reader sees either the pending session or the ready one with its
  complete knowledge base, never anything in between.
- Global singleton `session_store` for typical application use, while still
  allowing custom instances to be created for tests.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from threading import RLock
from typing import Callable, Dict, List, Optional

from ..config import settings
from ..knowledge.models import KnowledgeBase

logger = logging.getLogger("sitechat.sessions")


class SessionStatus(str, Enum):
    PENDING = "scraping"
    READY = "ready"


@dataclass(frozen=True)
class Session:
    session_id: str
    seed_url: str
    created_at: float
    status: SessionStatus = SessionStatus.PENDING
    knowledge_base: Optional[KnowledgeBase] = None

    @property
    def is_ready(self) -> bool:
        return self.status is SessionStatus.READY


class SessionStore:
    """
    In-memory store mapping session IDs to ``Session`` snapshots.

    Sessions are isolated from one another: no operation on one session id
    reads or writes another's entry.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize a new SessionStore.

        Parameters
        ----------
        ttl_seconds : float
            Age after which ``sweep`` removes a session.

        clock : Callable[[], float]
            Source of the current time in seconds. Tests pass a fake clock.
        """
        self._store: Dict[str, Session] = {}
        self._lock = RLock()
        self._clock = clock
        self.ttl_seconds = ttl_seconds

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def create(self, seed_url: str) -> Session:
        """
        Register a new pending session for ``seed_url``.

        Returns
        -------
        Session
            The new session, with a fresh random identifier.
        """
        session = Session(
            session_id=uuid.uuid4().hex,
            seed_url=seed_url,
            created_at=self._clock(),
        )
        with self._lock:
            self._store[session.session_id] = session

        logger.info("Created session %s for %s", session.session_id, seed_url)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._store.get(session_id)

    def mark_ready(self, session_id: str, knowledge_base: KnowledgeBase) -> Optional[Session]:
        """
        Attach a finished knowledge base and flip the session to ready.

        Returns None, leaving the store untouched, when the session was
        swept or discarded while its pipeline was running.
        """
        with self._lock:
            current = self._store.get(session_id)
            if current is None:
                logger.info("Session %s vanished before ingestion finished", session_id)
                return None

            ready = replace(
                current,
                status=SessionStatus.READY,
                knowledge_base=knowledge_base,
            )
            self._store[session_id] = ready

        logger.info(
            "Session %s ready: %d documents, %d chunks",
            session_id,
            knowledge_base.document_count,
            knowledge_base.chunk_count,
        )
        return ready

    def discard(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        with self._lock:
            removed = self._store.pop(session_id, None) is not None

        if removed:
            logger.info("Discarded session %s", session_id)
        return removed

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Remove every session whose age has reached ``ttl_seconds``.

        Running it twice with the same ``now`` removes nothing the second
        time.

        Returns
        -------
        int
            Number of sessions removed.
        """
        now = self._clock() if now is None else now
        with self._lock:
            expired: List[str] = [
                sid
                for sid, session in self._store.items()
                if now - session.created_at >= self.ttl_seconds
            ]
            for sid in expired:
                del self._store[sid]

        if expired:
            logger.info("Swept %d expired sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        """
        Return the number of live sessions in the store.
        """
        with self._lock:
            return len(self._store)


# Global singleton used by the application.
session_store = SessionStore(ttl_seconds=settings.session_ttl_seconds)
