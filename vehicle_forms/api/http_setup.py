"""Middleware and exception handlers shared by the stamping API."""

from __future__ import annotations

import logging
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vehicle_forms.api.contracts import ApiErrorResponse
from vehicle_forms.api.errors import ApiErrorCode, to_error_payload
from vehicle_forms.core.config import AppConfig
from vehicle_forms.core.errors import TemplateError
from vehicle_forms.core.logging import set_correlation_id

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
}


def _error_response(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiErrorResponse(error_code=str(error_code), message=message).model_dump(),
    )


def _request_extra(request: Request, status_code: int) -> dict[str, object]:
    return {
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
    }


def _declared_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length") or 0)
    except ValueError:
        return 0


def register_http_middleware(
    app: FastAPI, *, config: AppConfig, logger: logging.Logger
) -> None:
    """Reject oversized bodies and log every request with its correlation id."""
    max_bytes = config.security.request_max_bytes

    @app.middleware("http")
    async def request_size_limit_middleware(request: Request, call_next):
        if _declared_length(request) > max_bytes:
            logger.warning("request_too_large", extra=_request_extra(request, 413))
            return _error_response(
                413,
                ApiErrorCode.REQUEST_TOO_LARGE,
                f"Request body exceeds {max_bytes} bytes.",
            )
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        correlation_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        set_correlation_id(correlation_id)
        response = await call_next(request)
        response.headers["X-Request-ID"] = correlation_id
        response.headers.update(SECURITY_HEADERS)
        logger.info(
            "request_completed", extra=_request_extra(request, response.status_code)
        )
        return response


def register_exception_handlers(app: FastAPI, *, logger: logging.Logger) -> None:
    """Map every failure onto the ``{error_code, message}`` envelope.

    ``TemplateError`` is the only stamping failure that reaches this layer;
    degradations travel inside successful responses as warnings.
    """

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        logger.warning("http_exception", extra=_request_extra(request, exc.status_code))
        payload = to_error_payload(exc.detail, exc.status_code)
        return _error_response(exc.status_code, payload["error_code"], payload["message"])

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_exception", extra=_request_extra(request, 422))
        return _error_response(422, ApiErrorCode.VALIDATION_ERROR, str(exc))

    @app.exception_handler(TemplateError)
    async def handle_template_error(request: Request, exc: TemplateError) -> JSONResponse:
        logger.error("template_error: %s", exc, extra=_request_extra(request, 422))
        return _error_response(422, ApiErrorCode.TEMPLATE_INVALID, str(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unexpected_exception", extra=_request_extra(request, 500))
        return _error_response(
            500,
            ApiErrorCode.INTERNAL_SERVER_ERROR,
            str(exc) or "Internal server error",
        )
