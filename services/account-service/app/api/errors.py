"""Translate failures into the standard failure envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from schemas import ApiResponse

from ..domain.errors import (
    AccountError,
    AuthError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "An unexpected error occurred"


def http_error_from_domain(
    exc: AccountError, conflict_status: int = status.HTTP_409_CONFLICT
) -> HTTPException:
    """Map a domain error onto an ``HTTPException`` carrying its message."""
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ConflictError):
        status_code = conflict_status
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, AuthError):
        status_code = status.HTTP_401_UNAUTHORIZED
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=status_code, detail=exc.message)


def _failure(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    body = ApiResponse.error(message).model_dump(by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_FAILURE
    return _failure(exc.status_code, message, getattr(exc, "headers", None))


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return _failure(status.HTTP_400_BAD_REQUEST, "Invalid request")
    first = errors[0]
    cause = (first.get("ctx") or {}).get("error")
    detail = str(cause) if cause is not None else first.get("msg", "invalid value")
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {detail}" if location else detail
    return _failure(status.HTTP_400_BAD_REQUEST, message)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_FAILURE)


def install_exception_handlers(app: FastAPI) -> None:
    """Register the envelope-producing handlers on ``app``."""
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
