import logging
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request

from webcam_gateway import __version__
from webcam_gateway.api import get_gateway, router
from webcam_gateway.api.errors import as_app_error, error_response
from webcam_gateway.core.config import get_settings
from webcam_gateway.core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

CORS_HEADER = "Access-Control-Allow-Origin"

OPENAPI_TAGS = [
    {"name": "Images", "description": "Allowlisted image passthrough and HTML page image extraction."},
]

settings = get_settings()
api_prefix = settings.api_prefix

app = FastAPI(
    title="Webcam Gateway",
    version=__version__,
    description=(
        "Fetches third-party webcam images on behalf of a viewer. Only allowlisted hosts are contacted, "
        "upstream cookies are stripped, and images embedded in HTML pages are located by selector and "
        "redirected back through the image endpoint."
    ),
    openapi_tags=OPENAPI_TAGS,
)
app.include_router(router, prefix=api_prefix)


def _is_gateway_path(path: str) -> bool:
    return not api_prefix or path == api_prefix or path.startswith(f"{api_prefix}/")


@app.exception_handler(Exception)
async def unclassified_error_handler(request: Request, exc: Exception):
    response = error_response(as_app_error(exc, logger=logger, endpoint=request.url.path))
    response.headers[CORS_HEADER] = "*"
    return response


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    response = await call_next(request)
    if _is_gateway_path(request.url.path):
        response.headers[CORS_HEADER] = "*"
    return response


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid4().hex[:12]
    request.state.request_id = request_id
    started = perf_counter()
    logger.info(
        "request.start id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
    )
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (perf_counter() - started) * 1000.0
        logger.exception(
            "request.error id=%s method=%s path=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            elapsed_ms,
        )
        raise
    elapsed_ms = (perf_counter() - started) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request.end id=%s method=%s path=%s status=%s duration_ms=%.2f",
        request_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


__all__ = ["app", "get_gateway"]
