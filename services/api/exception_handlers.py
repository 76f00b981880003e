"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import (
    PdfStoreError,
    ValidationError,
    PayloadTooLargeError,
    NotFoundError,
)
from services.api.schemas import ErrorResponse


# request fields whose absence has a dedicated message
_FIELD_MESSAGES = {
    "pdf": "No PDF file provided",
    "pdfData": "No PDF data provided",
}


def status_for(exc: PdfStoreError) -> int:
    """Map an exception type to its HTTP status code."""
    if isinstance(exc, PayloadTooLargeError):
        return 413
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def pdfstore_exception_handler(request: Request, exc: PdfStoreError) -> JSONResponse:
    """Handle PDF store exceptions."""
    status_code = status_for(exc)

    log = logger.error if status_code >= 500 else logger.info
    log(
        "{method} {path} failed: {type} - {message}",
        method=request.method,
        path=request.url.path,
        type=type(exc).__name__,
        message=exc.message,
        details=exc.details,
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.message, details=exc.details or None).model_dump(),
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests as 400 with the common error body."""
    errors = exc.errors()
    message = "Invalid request"
    for error in errors:
        loc = error.get("loc") or ()
        if loc and loc[-1] in _FIELD_MESSAGES:
            message = _FIELD_MESSAGES[loc[-1]]
            break
    summary = [{key: error.get(key) for key in ("loc", "msg", "type")} for error in errors]
    return await pdfstore_exception_handler(
        request, ValidationError(message, {"errors": jsonable_encoder(summary)})
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with a generic 500 body."""
    logger.opt(exception=exc).error("Unhandled exception on {path}", path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error", details={"reason": str(exc)}).model_dump(),
    )


__all__ = [
    "pdfstore_exception_handler",
    "request_validation_exception_handler",
    "status_for",
    "unhandled_exception_handler",
]
