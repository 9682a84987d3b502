"""
File Manager Error Normalizer

Exception handlers turning every raised failure into a JSON error body:

    FileManagerError        → status from STATUS_BY_KIND, {"error", "code"}
    RequestValidationError  → 400
    HTTPException           → its own status (unknown routes, bad methods)
    anything else           → 500 "Internal server error"

Backend error details are only exposed when DEBUG is on.
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from file_manager.errors import ErrorKind, FileManagerError

logger = structlog.get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.BACKEND: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_body(message: str, code: str, detail=None) -> dict:
    body = {"error": message, "code": code}
    if detail:
        body["detail"] = detail
    return body


def error_response(exc: FileManagerError, debug: bool = False) -> JSONResponse:
    """JSON error response for a domain error; detail is only exposed in debug."""
    return JSONResponse(
        status_code=STATUS_BY_KIND[exc.kind],
        content=_error_body(exc.message, exc.code, exc.detail if debug else None),
    )


async def file_manager_error_handler(request: Request, exc: FileManagerError) -> JSONResponse:
    if exc.kind is ErrorKind.BACKEND:
        logger.error("request_backend_error", error=exc.message, detail=exc.detail)
    else:
        logger.info("request_rejected", code=exc.code, error=exc.message)

    return error_response(exc, debug=request.app.state.settings.DEBUG)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("request_invalid", errors=exc.errors())
    detail = str(exc.errors()) if request.app.state.settings.DEBUG else None
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Invalid request", "invalid_request", detail),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), "http_error"),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request_unhandled_exception", error_type=type(exc).__name__, exc_info=exc)
    detail = repr(exc) if request.app.state.settings.DEBUG else None
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error", "internal_error", detail),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FileManagerError, file_manager_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
