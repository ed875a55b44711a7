"""
Page drivers.

A page driver owns "the page": it exposes the current document as a
``QueryableTree``, reports where it is, and knows how to activate the "next"
control. The orchestrator never talks to httpx or a browser directly.
"""

import logging
from typing import List, Optional, Protocol, Sequence, Tuple
from urllib.parse import urljoin, urlparse

import httpx

from .tree import HtmlTree, QueryableTree, safe_query

logger = logging.getLogger(__name__)


DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


class Page(Protocol):
    """What the orchestrator needs from the page it is scraping."""

    @property
    def tree(self) -> QueryableTree:
        ...

    @property
    def location(self) -> str:
        ...

    async def sync(self) -> None:
        """Refresh ``tree`` and ``location`` from the underlying page."""
        ...

    async def click(self, selector: str) -> None:
        """Activate the first element matching ``selector``."""
        ...


def location_of(url: str) -> str:
    """Path plus query of ``url``; what the page fingerprint compares."""
    parsed = urlparse(url or "")
    location = parsed.path or ""
    if parsed.query:
        location += "?" + parsed.query
    return location


class StaticPage:
    """A fixed sequence of documents, e.g. saved HTML files.

    ``click`` moves to the next document when there is one; on the last
    document it changes nothing, which the orchestrator sees as a stalled
    navigation.
    """

    def __init__(self, documents: Sequence[Tuple[str, str]]):
        if not documents:
            raise ValueError("StaticPage needs at least one document")
        self._documents: List[Tuple[str, str]] = list(documents)
        self._index = 0
        self._tree = HtmlTree(self._documents[0][1])
        self.clicks = 0

    @classmethod
    def from_html(cls, html: str, url: str = "") -> "StaticPage":
        return cls([(url, html)])

    @classmethod
    def from_files(cls, paths: Sequence[str]) -> "StaticPage":
        documents = []
        for path in paths:
            with open(path, "r", encoding="utf-8") as f:
                documents.append((path, f.read()))
        return cls(documents)

    @property
    def tree(self) -> HtmlTree:
        return self._tree

    @property
    def location(self) -> str:
        return location_of(self._documents[self._index][0])

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def sync(self) -> None:
        return None

    async def click(self, selector: str) -> None:
        self.clicks += 1
        if self._index + 1 < len(self._documents):
            self._index += 1
            self._tree = HtmlTree(self._documents[self._index][1])


class HttpPage:
    """Link-following pagination over plain HTTP (httpx).

    ``click`` reads the ``href`` of the matched control and loads it, which
    covers sites whose "next" button is an ordinary link.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        headers: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.start_url = url
        self.url = url
        self.timeout = timeout
        self.headers = headers or DEFAULT_HEADERS
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None
        self._tree = HtmlTree("")

    async def __aenter__(self):
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=self.headers,
            transport=self.transport,
        )
        await self.open(self.start_url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            self.client = None

    @property
    def tree(self) -> HtmlTree:
        return self._tree

    @property
    def location(self) -> str:
        return location_of(self.url)

    async def open(self, url: str) -> None:
        if not self.client:
            raise RuntimeError("HttpPage not initialized. Use async with context manager.")
        response = await self.client.get(url)
        response.raise_for_status()
        self.url = str(response.url)
        self._tree = HtmlTree(response.text)

    async def sync(self) -> None:
        return None

    async def click(self, selector: str) -> None:
        node = safe_query(self._tree, None, selector)
        href = self._tree.attribute_of(node, "href") if node is not None else None
        if not href:
            logger.warning("Next control %r has no href to follow", selector)
            return
        await self.open(urljoin(self.url, href))
