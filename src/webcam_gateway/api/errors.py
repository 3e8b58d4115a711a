from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from fastapi.responses import JSONResponse

from webcam_gateway.core.exceptions import AppError, ErrorKind
from webcam_gateway.models import ErrorBody

T = TypeVar("T")

GATEWAY_ERROR_RESPONSES = {
    400: {"model": ErrorBody, "description": "Missing or malformed query parameter."},
    403: {"model": ErrorBody, "description": "Target host is not allowlisted."},
    502: {"model": ErrorBody, "description": "Upstream fetch failed or returned an unusable response."},
}


def error_body(error: AppError) -> ErrorBody:
    return ErrorBody(code=error.code, message=error.message, hint=error.hint)


def error_response(error: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=error.http_status,
        content=error_body(error).model_dump(mode="json"),
    )


def as_app_error(exc: BaseException, *, logger: logging.Logger, endpoint: str) -> AppError:
    if isinstance(exc, AppError):
        if exc.code is ErrorKind.UPSTREAM_FAILED:
            logger.warning("Upstream failure on %s endpoint: detail=%s", endpoint, exc.message)
        return exc
    logger.error("Unclassified failure on %s endpoint", endpoint, exc_info=exc)
    return AppError.upstream_failed()


async def call_gateway_or_error(
    call: Callable[[], Awaitable[T]],
    *,
    logger: logging.Logger,
    endpoint: str,
) -> T | JSONResponse:
    try:
        return await call()
    except Exception as exc:
        return error_response(as_app_error(exc, logger=logger, endpoint=endpoint))
