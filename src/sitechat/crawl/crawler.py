"""
Breadth-First Site Crawler

Sequential BFS over a website, starting at a seed URL, yielding the raw
markup of every page it manages to fetch.

Key Properties
--------------
- One fetch at a time (bounded load on the target site)
- Visited set keyed by the normalized URL string
- Hard page cap: ``len(visited) < max_pages`` gates every iteration, so a
  site with infinitely many distinct URLs still terminates
- Fetch failures are logged and skipped; they never abort the crawl
- A page whose links cannot be parsed is still yielded, it just adds
  nothing to the queue
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import AsyncIterator, Deque, List, Optional, Set, Tuple

import httpx
from bs4 import ParserRejectedMarkup

from .links import normalize_url, resolve_links
from ..config import settings

logger = logging.getLogger("sitechat.crawler")


# ---------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Page:
    """A fetched page. Ephemeral: consumed by the extractor, not retained."""
    url: str
    markup: str


class FetchError(RuntimeError):
    """Raised when a single page cannot be fetched."""


# ---------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------

async def fetch_markup(client: httpx.AsyncClient, url: str) -> Tuple[str, str]:
    """
    Fetch ``url`` and return ``(final_url, markup)``.

    Raises
    ------
    FetchError
        On transport errors, non-2xx responses, or non-HTML content.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        raise FetchError(f"{type(exc).__name__}: {exc}") from exc

    if not response.is_success:
        raise FetchError(f"HTTP {response.status_code}")

    content_type = response.headers.get("content-type", "")
    if content_type and "html" not in content_type.lower():
        raise FetchError(f"non-HTML content-type: {content_type}")

    return str(response.url), response.text


# ---------------------------------------------------------------------
# Crawler
# ---------------------------------------------------------------------

class Crawler:
    """
    Breadth-first crawler bounded by a page-count cap.

    A caller-supplied ``httpx.AsyncClient`` is used as-is and left open;
    otherwise the crawler owns a client for the duration of one crawl.
    """

    def __init__(
        self,
        max_pages: int,
        same_host_only: bool = True,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be at least 1")

        self.max_pages = max_pages
        self.same_host_only = same_host_only
        self._client = client
        self.timeout = timeout if timeout is not None else settings.crawl_timeout_seconds
        self.user_agent = user_agent or settings.crawl_user_agent

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
        )

    async def iter_pages(self, seed_url: str) -> AsyncIterator[Page]:
        """Yield pages in BFS order until the queue drains or the cap is hit."""
        seed = normalize_url(seed_url)
        if seed is None:
            logger.warning("Refusing to crawl non-http(s) seed URL: %s", seed_url)
            return

        if self._client is not None:
            async for page in self._walk(self._client, seed):
                yield page
            return

        async with self._new_client() as client:
            async for page in self._walk(client, seed):
                yield page

    async def _walk(self, client: httpx.AsyncClient, seed: str) -> AsyncIterator[Page]:
        queue: Deque[str] = deque([seed])
        visited: Set[str] = set()

        while queue and len(visited) < self.max_pages:
            url = queue.popleft()
            if url in visited:
                continue
            visited.add(url)

            try:
                final_url, markup = await fetch_markup(client, url)
            except FetchError as exc:
                logger.warning("Skip %s: %s", url, exc)
                continue

            logger.info("Crawled %s (%d/%d)", url, len(visited), self.max_pages)
            yield Page(url=url, markup=markup)

            try:
                links = await asyncio.to_thread(
                    resolve_links, markup, final_url, self.same_host_only
                )
            except ParserRejectedMarkup as exc:
                logger.warning("Cannot read links on %s: %s", url, exc)
                continue
            for link in links:
                if link not in visited:
                    queue.append(link)

    async def crawl(self, seed_url: str) -> List[Page]:
        """Collect every page the crawl yields."""
        return [page async for page in self.iter_pages(seed_url)]


async def crawl(
    seed_url: str,
    max_pages: int,
    same_host_only: bool = True,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Page]:
    """Convenience wrapper: crawl ``seed_url`` and return the fetched pages."""
    crawler = Crawler(max_pages=max_pages, same_host_only=same_host_only, client=client)
    return await crawler.crawl(seed_url)
