"""
Exception handlers — turn every failure into the JSON error envelope.

    {"success": false, "message": "...", "code": "..."}
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import config
from utils.errors import AppError, DatabaseUnavailableError

logger = logging.getLogger(__name__)


def error_body(message: str, code: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message, "code": code}
    body.update(extra)
    return body


def is_connection_error(exc: BaseException) -> bool:
    """True for failures that mean the database is unreachable."""
    return isinstance(exc, (OperationalError, InterfaceError, ConnectionError, TimeoutError))


def _describe_validation(exc: RequestValidationError) -> str:
    fields = []
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            return "Invalid JSON body"
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        if loc:
            fields.append(".".join(loc))
    if not fields:
        return "Invalid request body"
    return "Missing or invalid fields: " + ", ".join(dict.fromkeys(fields))


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.code))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(_describe_validation(exc), "validation_error"),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        body = error_body("Route not found", "route_not_found", path=request.url.path)
    else:
        body = error_body(str(exc.detail), "http_error")
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Database unavailable during %s %s", request.method, request.url.path)
    unavailable = DatabaseUnavailableError()
    return JSONResponse(
        status_code=unavailable.status_code,
        content=error_body(unavailable.message, unavailable.code),
    )


def unexpected_error_response(request: Request, exc: Exception) -> JSONResponse:
    """500 envelope; the exception text is only echoed in development."""
    if is_connection_error(exc):
        logger.exception("Database unavailable during %s %s", request.method, request.url.path)
        unavailable = DatabaseUnavailableError()
        return JSONResponse(
            status_code=unavailable.status_code,
            content=error_body(unavailable.message, unavailable.code),
        )

    logger.exception("Unhandled error during %s %s", request.method, request.url.path)
    extra = {"error": str(exc)} if config.is_development else {}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "internal_error", **extra),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(OperationalError, database_error_handler)
    app.add_exception_handler(InterfaceError, database_error_handler)
