"""Error types and the JSON error handlers shared by every endpoint."""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error with a public message and HTTP status."""

    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class UpstreamError(Exception):
    """The upstream API answered with a non-success status."""

    def __init__(self, status_code: int, detail: str, payload: Any = None):
        super().__init__(f"Upstream returned {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.payload = payload


class UpstreamUnavailable(Exception):
    """The upstream API could not be reached or returned an unreadable body."""


def error_response(status_code: int, message: str, code: Optional[str] = None, headers=None) -> JSONResponse:
    body = {"error": message}
    if code:
        body["code"] = code
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message, exc.code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        message = "Method not allowed"
    elif isinstance(exc.detail, str):
        message = exc.detail
    else:
        message = "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return error_response(400, message)


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Render every error as a JSON {"error": ...} body."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
