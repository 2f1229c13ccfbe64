"""Exception handlers for FastAPI app with concise JSON responses."""

import logging as pylog
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import BodyParserError

log = pylog.getLogger("uvicorn.error")


def body_parser_error_response(
    exc: BodyParserError,
    *,
    method: str,
    path: str,
    req_id: Optional[str] = None,
) -> JSONResponse:
    """Log a pipeline failure and render it in the common error envelope."""
    if exc.exception:
        # Infrastructure fault: name the cause, skip the stack trace
        cause = exc.err.__class__.__name__ if exc.err is not None else "-"
        log.error(
            "BodyParserError %s %s -> %s err=%s msg=%s req_id=%s",
            method,
            path,
            exc.status_code,
            cause,
            exc.message,
            req_id,
        )
    else:
        log.warning(
            "BodyParserError %s %s -> %s msg=%s req_id=%s",
            method,
            path,
            exc.status_code,
            exc.message,
            req_id,
        )
    content = {"error": {**exc.to_dict(), "path": path, "request_id": req_id}}
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": req_id} if req_id else None,
    )


async def body_parser_exception_handler(request: Request, exc: BodyParserError):
    """Handle pipeline errors raised from inside routes or dependencies."""
    return body_parser_error_response(
        exc,
        method=request.method,
        path=request.url.path,
        req_id=getattr(request.state, "request_id", None),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle Starlette HTTP exceptions uniformly."""
    req_id = getattr(request.state, "request_id", None)
    # Optionally suppress noisy 404 logs from scans
    try:
        settings = request.app.state.settings
        suppress_404 = getattr(settings, "suppress_404_logs", False)
    except AttributeError:
        suppress_404 = False

    if not (suppress_404 and exc.status_code == 404):
        log.warning(
            "HTTPException %s %s -> %s req_id=%s",
            request.method,
            request.url.path,
            exc.status_code,
            req_id,
        )
    content = {
        "error": {
            "status": exc.status_code,
            "detail": exc.detail,
            "path": request.url.path,
            "request_id": req_id,
        }
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": req_id} if req_id else None,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI validation errors with minimal noise."""
    req_id = getattr(request.state, "request_id", None)
    log.warning(
        "ValidationError %s %s -> 422 req_id=%s errors=%s",
        request.method,
        request.url.path,
        req_id,
        exc.errors(),
    )
    content = {
        "error": {
            "status": 422,
            "detail": "Request validation failed",
            "errors": exc.errors(),
            "path": request.url.path,
            "request_id": req_id,
        }
    }
    # Validation contexts may carry the raw body as bytes; encode safely
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": req_id} if req_id else None,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch-all handler for unexpected exceptions."""
    req_id = getattr(request.state, "request_id", None)
    log.error(
        "UnhandledError %s %s -> 500 err=%s req_id=%s",
        request.method,
        request.url.path,
        exc.__class__.__name__,
        req_id,
    )
    content = {
        "error": {
            "status": 500,
            "detail": "Internal server error",
            "path": request.url.path,
            "request_id": req_id,
        }
    }
    return JSONResponse(
        status_code=500,
        content=jsonable_encoder(content),
        headers={"X-Request-ID": req_id} if req_id else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the app."""
    app.add_exception_handler(BodyParserError, body_parser_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
