"""
Exception types and the JSON error responses they map to.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when settings are not complete enough to build a backend client."""


class InvalidObjectName(ValueError):
    """Raised when an object name is empty or blank."""


class UnsupportedFormatError(ValueError):
    """Raised when base64 content does not match a known file signature."""


class ApiError(Exception):
    """An error carrying the HTTP status and message returned to the caller."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def signing_error(exc: Exception) -> ApiError:
    """Map a URL signing failure to the response the caller sees."""
    message = str(exc)
    lowered = message.lower()
    if "token expired" in lowered:
        return ApiError(401, "Token expired")
    if "no keys" in lowered:
        return ApiError(500, "No keys available")
    return ApiError(500, message)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg')}")
    return error_response(422, "; ".join(messages) or "Invalid request")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return error_response(500, str(exc))
