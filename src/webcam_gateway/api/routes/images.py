import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from webcam_gateway.api.dependencies import get_gateway
from webcam_gateway.api.errors import GATEWAY_ERROR_RESPONSES, call_gateway_or_error
from webcam_gateway.core.exceptions import AppError
from webcam_gateway.models import ErrorBody
from webcam_gateway.services import WebcamGateway
from webcam_gateway.services.upstream import UpstreamResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Images"])

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_URI_COMPONENT_SAFE = "!*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


async def _relay(upstream: UpstreamResponse) -> AsyncIterator[bytes]:
    try:
        async for chunk in upstream.iter_raw():
            yield chunk
    except (AppError, httpx.HTTPError) as exc:
        # Status line is already sent; the only option left is to cut the body short.
        logger.warning("Image relay aborted url=%s detail=%s", upstream.url, str(exc))


@router.get(
    "/image",
    name="proxy_image",
    summary="Proxy an allowlisted webcam image",
    description=(
        "Fetches the image at `url` and relays status, headers and body unchanged, except that upstream "
        "cookies are never forwarded."
    ),
    responses={**GATEWAY_ERROR_RESPONSES, 200: {"description": "Upstream image bytes.", "content": {"image/*": {}}}},
)
async def proxy_image(
    url: str | None = Query(default=None, description="Absolute URL of the image to proxy."),
    gateway: WebcamGateway = Depends(get_gateway),
) -> Response:
    outcome = await call_gateway_or_error(
        lambda: gateway.open_image({"url": url or ""}),
        logger=logger,
        endpoint="image",
    )
    if isinstance(outcome, JSONResponse):
        return outcome

    response = StreamingResponse(
        _relay(outcome),
        status_code=outcome.status_code,
        background=BackgroundTask(outcome.aclose),
    )
    response.raw_headers = outcome.passthrough_headers()
    return response


@router.get(
    "/html-image",
    name="html_image",
    summary="Redirect to the first image matching a selector on an allowlisted page",
    description=(
        "Scans the HTML at `page` for the first element matching `selector` (`tag`, `tag.class` or `tag#id`, "
        "default `img`) and redirects to the image endpoint with its resolved `src`, so the image goes "
        "through the same validation and allowlist checks as a direct request."
    ),
    status_code=302,
    responses={
        **GATEWAY_ERROR_RESPONSES,
        302: {"description": "Redirect into the image endpoint."},
        404: {"model": ErrorBody, "description": "No element matched the selector."},
    },
)
async def html_image(
    request: Request,
    page: str | None = Query(default=None, description="Absolute URL of the HTML page to scan."),
    selector: str | None = Query(default=None, description="tag[.class|#id] selector, defaults to img."),
    gateway: WebcamGateway = Depends(get_gateway),
) -> Response:
    params = {"page": page or ""}
    if selector:
        params["selector"] = selector
    outcome = await call_gateway_or_error(
        lambda: gateway.locate_image(params),
        logger=logger,
        endpoint="html-image",
    )
    if isinstance(outcome, JSONResponse):
        return outcome

    image_path = request.app.url_path_for("proxy_image")
    return RedirectResponse(f"{image_path}?url={encode_uri_component(outcome)}", status_code=302)
