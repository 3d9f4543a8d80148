"""
Link Resolution

Pure helpers that turn the ``href`` targets of a page into absolute,
crawlable document URLs.

A target survives only if it resolves to an absolute http(s) URL, is not a
known non-document resource, and (optionally) lives on the same host as the
page it was found on. Fragments are removed so that ``/about#team`` and
``/about`` are the same crawl target. Deduplication across pages is the
crawler's job, not this module's.
"""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

CRAWLABLE_SCHEMES = ("http", "https")

NON_DOCUMENT_EXTENSION = re.compile(
    r"\.(pdf|png|jpe?g|gif|svg|webp|ico|bmp|tiff?"
    r"|zip|tar|gz|tgz|rar|7z|dmg|exe"
    r"|mp4|mp3|wav|ogg|webm|avi|mov"
    r"|css|js|mjs|map"
    r"|woff2?|ttf|otf|eot)$",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------

def normalize_url(url: str) -> Optional[str]:
    """
    Return the crawl key for an absolute URL, or None if it is not crawlable.

    The fragment is stripped and an empty path becomes ``/`` so that
    ``https://example.com`` and ``https://example.com/`` share one key.
    """
    try:
        without_fragment, _ = urldefrag(url.strip())
        parsed = urlparse(without_fragment)
    except ValueError:
        return None

    if parsed.scheme.lower() not in CRAWLABLE_SCHEMES or not parsed.netloc:
        return None

    if not parsed.path:
        parsed = parsed._replace(path="/")

    return parsed.geturl()


def same_host(url: str, other: str) -> bool:
    """True when both URLs share a host (including port)."""
    return urlparse(url).netloc.lower() == urlparse(other).netloc.lower()


def is_document_url(url: str) -> bool:
    """False for URLs whose path names an image, archive, media, style, script or font."""
    return not NON_DOCUMENT_EXTENSION.search(urlparse(url).path)


# ---------------------------------------------------------------------
# Link Resolver
# ---------------------------------------------------------------------

def extract_hrefs(markup: str) -> List[str]:
    """
    Return the raw ``href`` attribute values found in the markup, in document order.

    Raises ``bs4.ParserRejectedMarkup`` when html.parser gives up on the markup.
    """
    soup = BeautifulSoup(markup or "", "html.parser")
    return [
        str(tag["href"]).strip()
        for tag in soup.find_all(href=True)
        if str(tag["href"]).strip()
    ]


def resolve_hrefs(
    hrefs: List[str],
    base_url: str,
    same_host_only: bool = True,
) -> List[str]:
    """
    Resolve raw href values against ``base_url`` and filter them.

    Parameters
    ----------
    hrefs : List[str]
        Raw attribute values, possibly relative.

    base_url : str
        URL of the page the hrefs were found on.

    same_host_only : bool
        If True, keep only links whose host matches the base URL's host.

    Returns
    -------
    List[str]
        Absolute, fragment-free document URLs in encounter order. May contain
        duplicates.
    """
    links: List[str] = []

    for href in hrefs:
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            continue

        url = normalize_url(absolute)
        if url is None:
            continue
        if same_host_only and not same_host(url, base_url):
            continue
        if not is_document_url(url):
            continue

        links.append(url)

    return links


def resolve_links(
    markup: str,
    base_url: str,
    same_host_only: bool = True,
) -> List[str]:
    """Extract and resolve every crawlable link target in ``markup``."""
    return resolve_hrefs(extract_hrefs(markup), base_url, same_host_only)
