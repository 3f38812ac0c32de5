"""Centralized exception handlers for the FastAPI app.

Register with register_exception_handlers(app). Maps domain and framework
exceptions to HTTP responses. Every error body has the shape
{"success": false, "error": <code>, "message": <text>}.
"""

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from classconnect.core.config import get_settings
from classconnect.domain.exceptions import (
    ClassConnectException,
    ProviderError,
    ResetLinkException,
)

logger = logging.getLogger(__name__)

# Map domain error_code to HTTP status
_ERROR_CODE_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "MISSING_FIELD": 400,
    "AUTH_ERROR": 401,
    "USER_NOT_FOUND": 401,
    "INVALID_ROLE": 403,
    "NOT_ACTIVE_REP": 403,
    "INVALID_OR_EXPIRED_TOKEN": 400,
    "TOKEN_EXPIRED": 400,
    "STALE_REQUEST": 400,
    "NO_LONGER_ACTIVE_REP": 400,
    "WEAK_PASSWORD": 400,
    "SAME_PASSWORD": 400,
    "DUPLICATE_EMAIL": 409,
    "SLOT_OCCUPIED": 409,
    "REP_NOT_ACTIVE": 409,
    "CONCURRENT_MODIFICATION": 409,
    "AUTHENTICATION_ERROR": 401,
    "PERMISSION_DENIED": 403,
    "RESOURCE_NOT_FOUND": 404,
    "PROVIDER_ERROR": 502,
    "SERVICE_UNAVAILABLE": 503,
}


def status_for(exc: ClassConnectException) -> int:
    """HTTP status for a domain exception (400 when the code is unmapped)."""
    return _ERROR_CODE_STATUS.get(exc.error_code, 400)


def _classconnect_exception_handler(
    request: Request, exc: ClassConnectException
) -> JSONResponse:
    """Return JSON from ClassConnectException.to_dict() with appropriate status code."""
    if isinstance(exc, ProviderError):
        logger.error(
            "Provider failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.provider_code,
        )
    elif isinstance(exc, ResetLinkException):
        # Body is the same for every kind; keep the real one server-side.
        logger.info("Reset link rejected on %s: %s", request.url.path, exc.error_code)
    headers = {"WWW-Authenticate": "Bearer"} if exc.error_code == "AUTHENTICATION_ERROR" else None
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict(), headers=headers)


def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 400 with validation error details (field locations and messages only)."""
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": details,
        },
    )


def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Return JSON for Starlette HTTP exceptions (status + detail)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": "HTTP_ERROR", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _upstream_exception_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """Document-store transport or HTTP failure: 502, details stay in the logs."""
    logger.error(
        "Upstream request failed on %s %s: %s",
        request.method,
        request.url.path,
        type(exc).__name__,
    )
    return JSONResponse(status_code=502, content=ProviderError().to_dict())


def _generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return 500; include detail only when debug is True."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)
    settings = get_settings()
    detail: Any = str(exc) if settings.debug else "Internal server error"
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Internal server error", "error": detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app.

    Call once after creating the app. Handlers: ClassConnectException (and
    subclasses), RequestValidationError, StarletteHTTPException,
    httpx.HTTPError, generic Exception.
    """
    app.add_exception_handler(ClassConnectException, _classconnect_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(httpx.HTTPError, _upstream_exception_handler)
    app.add_exception_handler(Exception, _generic_exception_handler)
