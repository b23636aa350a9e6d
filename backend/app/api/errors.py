"""Exception handlers that render every failure in the response envelope."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from backend.app.limiter import RATE_LIMIT_MESSAGE
from backend.app.schemas.common import ApiResponse

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "authorName")
MISSING_REQUIRED_MESSAGE = "Title and author name are required"
TOO_LONG_MESSAGE = "Title or author name too long"
MAX_REPORTED_ERRORS = 5


def _error_response(status_code: int, error: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.failure(error).model_dump(),
        headers=headers,
    )


def validation_message(errors: list[dict[str, Any]]) -> str:
    """Collapse pydantic errors into one client-facing sentence."""
    for error in errors:
        field = error["loc"][-1] if error.get("loc") else None
        if field not in REQUIRED_FIELDS:
            continue
        if error["type"] in ("missing", "string_too_short"):
            return MISSING_REQUIRED_MESSAGE
        if error["type"] == "string_too_long":
            return TOO_LONG_MESSAGE

    parts = []
    for error in errors[:MAX_REPORTED_ERRORS]:
        loc = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _error_response(exc.status_code, detail, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(400, validation_message(list(exc.errors())))

    @app.exception_handler(RateLimitExceeded)
    async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        logger.warning("Rate limit hit on %s: %s", request.url.path, exc.detail)
        response = _error_response(429, RATE_LIMIT_MESSAGE)
        return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch unhandled exceptions and return a clean JSON 500 instead of a stack trace."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error")
