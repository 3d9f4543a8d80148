from typing import Dict, List, Tuple

import httpx
import pytest


HOME_HTML = """
<html><head><title>Example Bakery</title></head>
<body>
  <nav>
    <a href="/about">About</a>
    <a href="/empty#top">Empty</a>
    <a href="https://other.test/">Partner</a>
    <a href="/menu.pdf">Menu (PDF)</a>
  </nav>
  <article>
    <p>Welcome to Example Bakery, where we bake bread, cakes, and pastries every single morning.</p>
  </article>
</body></html>
"""

ABOUT_HTML = """
<html><head><title>About Example Bakery</title></head>
<body>
  <article>
    <p>Our family has been running this bakery since 1987, always with local flour and butter.</p>
  </article>
  <footer><a href="mailto:hello@bakery.test">Write to us</a></footer>
</body></html>
"""

EMPTY_HTML = "<html><head><script>var x = 1;</script></head><body></body></html>"


def make_site_transport(pages: Dict[str, Tuple[int, str]]) -> httpx.MockTransport:
    """MockTransport serving ``path -> (status, html)``; unknown paths are 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        status, body = pages.get(request.url.path, (404, "not found"))
        return httpx.Response(status, html=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def bakery_pages() -> Dict[str, Tuple[int, str]]:
    return {
        "/": (200, HOME_HTML),
        "/about": (200, ABOUT_HTML),
        "/empty": (200, EMPTY_HTML),
    }


@pytest.fixture
def bakery_client(bakery_pages):
    return httpx.AsyncClient(
        transport=make_site_transport(bakery_pages),
        follow_redirects=True,
    )


class FakeEmbedder:
    """Deterministic 2-d vectors; records every call."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    async def embed(self, texts):
        self.calls.append(list(texts))
        return [[float(len(t)), 1.0] for t in texts]

    async def embed_one(self, text):
        return (await self.embed([text]))[0]


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()
