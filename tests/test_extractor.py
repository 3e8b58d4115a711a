import asyncio

import pytest

from webcam_gateway.core.exceptions import AppError, ErrorKind
from webcam_gateway.services.extractor import (
    BufferedHtmlScanner,
    StreamingHtmlScanner,
    build_scanner,
    extract_image_url,
)
from webcam_gateway.services.validation import Selector, parse_selector

PAGE_URL = "https://example.com/page.html"


class RecordingChunks:
    """Async chunk source that remembers how far it was consumed."""

    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.consumed = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self._chunks:
            self.consumed += 1
            yield chunk


def scan(scanner, html_chunks, selector):
    return asyncio.run(scanner.scan(RecordingChunks(html_chunks), parse_selector(selector)))


@pytest.fixture(params=["streaming", "buffered"])
def scanner(request):
    return build_scanner(request.param)


def test_build_scanner_selects_implementation():
    assert isinstance(build_scanner("streaming"), StreamingHtmlScanner)
    assert isinstance(build_scanner("buffered"), BufferedHtmlScanner)
    with pytest.raises(ValueError, match="Unknown HTML scanner"):
        build_scanner("regex")


def test_first_match_wins(scanner):
    html = ['<img class="hero" src="/images/first.jpg">', '<img class="hero" src="/images/second.jpg">']
    assert scan(scanner, html, "img.hero") == "/images/first.jpg"


def test_class_qualifier_must_match(scanner):
    html = ['<img class="thumb" src="/thumb.jpg"><img class="cam hero" src="/hero.jpg">']
    assert scan(scanner, html, "img.hero") == "/hero.jpg"


def test_id_qualifier_must_match(scanner):
    html = ['<img id="logo" src="/logo.png"><img id="live" src="/live.jpg">']
    assert scan(scanner, html, "img#live") == "/live.jpg"


def test_tag_must_match(scanner):
    html = ['<div class="hero" src="/not-an-image"></div><source class="hero" src="/cam.webp">']
    assert scan(scanner, html, "source.hero") == "/cam.webp"
    assert scan(scanner, html, "img.hero") is None


def test_matching_element_without_src_is_skipped(scanner):
    html = ['<img class="hero"><img class="hero" src="  "><img class="hero" src="/real.jpg">']
    assert scan(scanner, html, "img.hero") == "/real.jpg"


def test_entities_in_src_are_decoded(scanner):
    html = ['<img src="/snap.jpg?a=1&amp;b=2">']
    assert scan(scanner, html, "img") == "/snap.jpg?a=1&b=2"


def test_no_match_returns_none(scanner):
    assert scan(scanner, ["<html><body><p>camera offline</p></body></html>"], "img") is None


def test_streaming_scanner_handles_tags_split_across_chunks():
    html = ['<html><body><im', 'g cla', 'ss="hero" sr', 'c="/split', '.jpg"></body></html>']
    assert scan(StreamingHtmlScanner(), html, "img.hero") == "/split.jpg"


@pytest.mark.parametrize("scanner_kind", ["streaming", "buffered"])
def test_stream_is_drained_after_first_match(scanner_kind):
    chunks = RecordingChunks(['<img src="/a.jpg">', "<p>more</p>", '<img src="/b.jpg">', "</body>"])
    found = asyncio.run(build_scanner(scanner_kind).scan(chunks, Selector(tag="img")))
    assert found == "/a.jpg"
    assert chunks.consumed == 4


@pytest.mark.parametrize(
    "source,expected",
    [
        ("/images/first.jpg", "https://example.com/images/first.jpg"),
        ("cams/live.jpg", "https://example.com/cams/live.jpg"),
        ("//cdn.example.net/x.jpg", "https://cdn.example.net/x.jpg"),
        ("https://other.example.org/y.jpg", "https://other.example.org/y.jpg"),
    ],
)
def test_extract_image_url_resolves_against_page(source, expected):
    html = [f'<img src="{source}">']
    found = asyncio.run(extract_image_url(StreamingHtmlScanner(), RecordingChunks(html), Selector(tag="img"), PAGE_URL))
    assert found == expected


def test_extract_image_url_raises_when_nothing_found():
    with pytest.raises(AppError) as exc:
        asyncio.run(extract_image_url(BufferedHtmlScanner(), RecordingChunks(["<p></p>"]), Selector(tag="img"), PAGE_URL))
    assert exc.value.code is ErrorKind.NO_IMAGE_FOUND
    assert exc.value.http_status == 404
