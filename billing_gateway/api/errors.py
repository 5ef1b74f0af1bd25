"""Map domain exceptions to HTTP error responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from billing_gateway.api.v1.schemas import ErrorDetail, ErrorResponse
from billing_gateway.domain.exceptions import CacheBackendError, InvalidRequestError, UpstreamError


def error_response(status_code: int, code: str, message: str, details: str = "") -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logging.error(
        f"Upstream error: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown"), "endpoint": exc.endpoint},
    )
    return error_response(502, "UPSTREAM_UNAVAILABLE", "Upstream billing service unavailable", str(exc))


async def cache_error_handler(request: Request, exc: CacheBackendError) -> JSONResponse:
    logging.error(
        f"Cache backend error: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return error_response(503, "CACHE_UNAVAILABLE", "Cache store unavailable", str(exc))


async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    logging.warning(
        f"Invalid request: {exc}",
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return error_response(400, exc.code, str(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(CacheBackendError, cache_error_handler)
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)
