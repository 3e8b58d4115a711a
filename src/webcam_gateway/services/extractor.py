"""Locate the first image matching a ``tag[.class|#id]`` selector in an HTML page.

Two scanners share the ``HtmlScanner`` protocol:

* ``StreamingHtmlScanner`` feeds each decoded chunk into an incremental
  ``html.parser.HTMLParser`` so the page is never held in memory as a whole.
* ``BufferedHtmlScanner`` collects the document first and queries it with
  BeautifulSoup. It is simpler to reason about and is handy in tests.

Both keep the first matching element that carries a non-empty ``src`` and
ignore later matches, but always read the stream to its end.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable
from html.parser import HTMLParser
from typing import Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from webcam_gateway.core.exceptions import AppError
from webcam_gateway.services.validation import Selector

logger = logging.getLogger(__name__)

IMAGE_SOURCE_ATTRIBUTE = "src"


class HtmlScanner(Protocol):
    async def scan(self, chunks: AsyncIterable[str], selector: Selector) -> str | None:
        """Return the raw ``src`` value of the first matching element, if any."""
        ...


class _FirstMatchParser(HTMLParser):
    def __init__(self, selector: Selector) -> None:
        super().__init__(convert_charrefs=True)
        self._selector = selector
        self.found: str | None = None
        self.candidates = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self.found is not None:
            return
        attributes = dict(attrs)
        if not self._selector.matches(tag, attributes):
            return
        self.candidates += 1
        source = (attributes.get(IMAGE_SOURCE_ATTRIBUTE) or "").strip()
        if source:
            self.found = source


class StreamingHtmlScanner:
    name = "streaming"

    async def scan(self, chunks: AsyncIterable[str], selector: Selector) -> str | None:
        parser = _FirstMatchParser(selector)
        async for chunk in chunks:
            # Keep draining after the first hit; only the parsing work is skipped.
            if parser.found is None:
                parser.feed(chunk)
        if parser.found is None:
            parser.close()
        logger.debug("Streaming scan selector=%s candidates=%d found=%s", selector, parser.candidates, parser.found)
        return parser.found


class BufferedHtmlScanner:
    name = "buffered"

    async def scan(self, chunks: AsyncIterable[str], selector: Selector) -> str | None:
        parts: list[str] = []
        async for chunk in chunks:
            parts.append(chunk)
        soup = BeautifulSoup("".join(parts), "html.parser")

        attrs: dict[str, str] = {}
        if selector.class_name is not None:
            attrs["class"] = selector.class_name
        if selector.element_id is not None:
            attrs["id"] = selector.element_id

        for element in soup.find_all(selector.tag, attrs=attrs):
            source = element.get(IMAGE_SOURCE_ATTRIBUTE)
            if isinstance(source, list):
                source = " ".join(source)
            if source and source.strip():
                return source.strip()
        return None


SCANNERS: dict[str, type[StreamingHtmlScanner] | type[BufferedHtmlScanner]] = {
    StreamingHtmlScanner.name: StreamingHtmlScanner,
    BufferedHtmlScanner.name: BufferedHtmlScanner,
}


def build_scanner(kind: str) -> HtmlScanner:
    try:
        return SCANNERS[kind]()
    except KeyError as exc:
        raise ValueError(f"Unknown HTML scanner: {kind}") from exc


async def extract_image_url(
    scanner: HtmlScanner,
    chunks: AsyncIterable[str],
    selector: Selector,
    page_url: str,
) -> str:
    source = await scanner.scan(chunks, selector)
    if source is None:
        raise AppError.no_image_found()
    return urljoin(page_url, source)
