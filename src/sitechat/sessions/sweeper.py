import asyncio
import logging

from .store import SessionStore

logger = logging.getLogger("sitechat.sweeper")


async def run_sweeper(store: SessionStore, interval_seconds: float) -> None:
    """Call ``store.sweep()`` every ``interval_seconds`` until cancelled."""
    logger.info(
        "Session sweeper started (interval=%ss, ttl=%ss)",
        interval_seconds,
        store.ttl_seconds,
    )
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            store.sweep()
        except Exception:
            logger.exception("Session sweep failed")
