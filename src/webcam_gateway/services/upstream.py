from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar
from urllib.parse import SplitResult, urlunsplit

import httpx

from webcam_gateway.core.config import Settings
from webcam_gateway.core.exceptions import AppError
from webcam_gateway.services.validation import origin_of

logger = logging.getLogger(__name__)

HostGuard = Callable[[str], None]
T = TypeVar("T")

# Never relayed to the viewer; transport framing is redone by the ASGI server.
STRIPPED_RESPONSE_HEADERS = {
    "set-cookie",
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


class UpstreamResponse:
    """An open upstream response. Callers must ``aclose()`` it."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        max_bytes: int,
        deadline: float,
    ) -> None:
        self._client = client
        self._response = response
        self._max_bytes = max_bytes
        self._deadline = deadline

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def is_success(self) -> bool:
        return self._response.is_success

    @property
    def url(self) -> str:
        return str(self._response.url)

    def passthrough_headers(self) -> list[tuple[bytes, bytes]]:
        return [
            (key.lower(), value)
            for key, value in self._response.headers.raw
            if key.decode("latin-1").lower() not in STRIPPED_RESPONSE_HEADERS
        ]

    def _check_size(self) -> None:
        if self._response.num_bytes_downloaded > self._max_bytes:
            raise AppError.upstream_failed("Upstream response too large")

    async def _within_deadline(self, chunks: AsyncIterator[T]) -> AsyncIterator[T]:
        # Per-read httpx timeouts do not bound a slow trickle; the whole exchange shares one deadline.
        iterator = aiter(chunks)
        while True:
            try:
                async with asyncio.timeout_at(self._deadline):
                    chunk = await anext(iterator)
            except StopAsyncIteration:
                return
            except TimeoutError as exc:
                logger.warning("Upstream response timed out url=%s", self.url)
                raise AppError.upstream_failed("Upstream response timed out") from exc
            yield chunk

    async def iter_raw(self) -> AsyncIterator[bytes]:
        async for chunk in self._within_deadline(self._response.aiter_raw()):
            self._check_size()
            yield chunk

    async def iter_text(self) -> AsyncIterator[str]:
        try:
            async for chunk in self._within_deadline(self._response.aiter_text()):
                self._check_size()
                yield chunk
        except httpx.HTTPError as exc:
            logger.warning("Upstream read failed url=%s detail=%s", self.url, str(exc))
            raise AppError.upstream_failed() from exc

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class UpstreamFetcher:
    """Outbound GET with fixed identification headers and per-call-site cache hints."""

    def __init__(
        self,
        *,
        user_agent: str = "WebcamSun/1.0",
        timeout_seconds: float = 10.0,
        max_image_bytes: int = 15 * 1024 * 1024,
        max_page_bytes: int = 2 * 1024 * 1024,
        image_cache_ttl_seconds: int = 30,
        page_cache_ttl_seconds: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.max_image_bytes = max_image_bytes
        self.max_page_bytes = max_page_bytes
        self.image_cache_ttl_seconds = image_cache_ttl_seconds
        self.page_cache_ttl_seconds = page_cache_ttl_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> UpstreamFetcher:
        return cls(
            user_agent=settings.upstream_user_agent,
            timeout_seconds=settings.request_timeout_seconds,
            max_image_bytes=settings.max_image_bytes,
            max_page_bytes=settings.max_page_bytes,
            image_cache_ttl_seconds=settings.image_cache_ttl_seconds,
            page_cache_ttl_seconds=settings.page_cache_ttl_seconds,
            transport=transport,
        )

    async def fetch_image(self, url: SplitResult, host_guard: HostGuard) -> UpstreamResponse:
        return await self._open(url, host_guard, self.image_cache_ttl_seconds, self.max_image_bytes)

    async def fetch_page(self, url: SplitResult, host_guard: HostGuard) -> UpstreamResponse:
        return await self._open(url, host_guard, self.page_cache_ttl_seconds, self.max_page_bytes)

    def _request_headers(self, url: SplitResult, cache_ttl_seconds: int) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Referer": f"{origin_of(url)}/",
            "Cache-Control": f"max-age={cache_ttl_seconds}",
        }

    def _redirect_guard(self, host_guard: HostGuard) -> Callable[[httpx.Request], Awaitable[None]]:
        async def check_hop(request: httpx.Request) -> None:
            host_guard(request.url.host)

        return check_hop

    async def _open(
        self,
        url: SplitResult,
        host_guard: HostGuard,
        cache_ttl_seconds: int,
        max_bytes: int,
    ) -> UpstreamResponse:
        deadline = asyncio.get_running_loop().time() + self.timeout_seconds
        target = urlunsplit(url)
        client = httpx.AsyncClient(
            transport=self._transport,
            timeout=self.timeout_seconds,
            follow_redirects=True,
            headers=self._request_headers(url, cache_ttl_seconds),
            event_hooks={"request": [self._redirect_guard(host_guard)]},
        )
        try:
            request = client.build_request("GET", target)
            async with asyncio.timeout_at(deadline):
                response = await client.send(request, stream=True)
        except TimeoutError as exc:
            await client.aclose()
            logger.warning("Upstream fetch timed out host=%s timeout=%.1fs", url.hostname, self.timeout_seconds)
            raise AppError.upstream_failed() from exc
        except httpx.HTTPError as exc:
            await client.aclose()
            logger.warning("Upstream fetch failed host=%s detail=%s", url.hostname, str(exc))
            raise AppError.upstream_failed() from exc
        except BaseException:
            await client.aclose()
            raise

        upstream = UpstreamResponse(client, response, max_bytes, deadline)
        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            await upstream.aclose()
            logger.warning(
                "Upstream response too large host=%s content_length=%s limit=%d",
                url.hostname,
                declared,
                max_bytes,
            )
            raise AppError.upstream_failed("Upstream response too large")

        logger.info(
            "Upstream responded host=%s status=%s cache_ttl=%d",
            url.hostname,
            response.status_code,
            cache_ttl_seconds,
        )
        return upstream
