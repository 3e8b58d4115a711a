from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import SplitResult, urlunsplit

import httpx

from webcam_gateway.core.config import Settings
from webcam_gateway.core.exceptions import AppError
from webcam_gateway.services.allowlist import Allowlist, ensure_allowed_host
from webcam_gateway.services.extractor import HtmlScanner, build_scanner, extract_image_url
from webcam_gateway.services.upstream import HostGuard, UpstreamFetcher, UpstreamResponse
from webcam_gateway.services.validation import parse_selector, parse_url, require_param

logger = logging.getLogger(__name__)


class WebcamGateway:
    """Validates, allowlists and fetches webcam targets on behalf of the viewer.

    Every step runs strictly in order and the first failure short-circuits the
    rest. The only state shared between requests is the immutable base
    allowlist; the override string is read per call.
    """

    def __init__(
        self,
        *,
        allowlist: Allowlist,
        fetcher: UpstreamFetcher,
        scanner: HtmlScanner,
        allowlist_extra: str = "",
    ) -> None:
        self.allowlist = allowlist
        self.fetcher = fetcher
        self.scanner = scanner
        self.allowlist_extra = allowlist_extra

    def _host_guard(self, extra: str) -> HostGuard:
        def guard(hostname: str) -> None:
            if not self.allowlist.permits(hostname, extra):
                logger.warning("Blocked upstream redirect to non-allowlisted host=%s", hostname)
                raise AppError.forbidden_host()

        return guard

    def _authorize(self, raw_url: str, extra: str) -> SplitResult:
        url = parse_url(raw_url)
        ensure_allowed_host(url, self.allowlist, extra)
        return url

    async def open_image(self, params: Mapping[str, str]) -> UpstreamResponse:
        raw_url = require_param(params, "url")
        extra = self.allowlist_extra
        url = self._authorize(raw_url, extra)
        logger.info("Proxying image host=%s", url.hostname)
        return await self.fetcher.fetch_image(url, self._host_guard(extra))

    async def locate_image(self, params: Mapping[str, str]) -> str:
        raw_page = require_param(params, "page")
        selector = parse_selector(params.get("selector"))
        extra = self.allowlist_extra
        page_url = self._authorize(raw_page, extra)

        upstream = await self.fetcher.fetch_page(page_url, self._host_guard(extra))
        try:
            if not upstream.is_success:
                logger.warning(
                    "Upstream page returned non-success host=%s status=%s",
                    page_url.hostname,
                    upstream.status_code,
                )
                raise AppError.upstream_failed()
            found = await extract_image_url(self.scanner, upstream.iter_text(), selector, urlunsplit(page_url))
        finally:
            await upstream.aclose()

        logger.info("Located image page_host=%s selector=%s", page_url.hostname, selector)
        return found


def build_gateway(
    settings: Settings,
    *,
    allowlist: Allowlist | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WebcamGateway:
    return WebcamGateway(
        allowlist=allowlist if allowlist is not None else Allowlist.from_file(settings.allowlist_path),
        fetcher=UpstreamFetcher.from_settings(settings, transport=transport),
        scanner=build_scanner(settings.html_scanner),
        allowlist_extra=settings.allowlist_extra,
    )
