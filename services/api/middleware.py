"""Request size limiting and security header middleware."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared body size exceeds a limit.

    Only the ``Content-Length`` header is inspected; the body is never read
    here.
    """

    def __init__(self, app: Any, *, max_bytes: int) -> None:
        """Initialize size limiter.

        Args:
            app: FastAPI application.
            max_bytes: Largest accepted request body in bytes.
        """
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None

        if size is not None and size > self.max_bytes:
            logger.info(
                "Rejected {method} {path}: body of {size} bytes exceeds {limit}",
                method=request.method,
                path=request.url.path,
                size=size,
                limit=self.max_bytes,
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": "Request body exceeds allowed size",
                    "details": {"size": size, "max_bytes": self.max_bytes},
                },
            )
        return await call_next(request)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request method and path to every log record emitted while handling it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        with logger.contextualize(method=request.method, path=request.url.path):
            return await call_next(request)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        # PDFs are embedded by the serving site, so framing stays same-origin
        response.headers["X-Frame-Options"] = "SAMEORIGIN"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


__all__ = ["RequestContextMiddleware", "RequestSizeLimitMiddleware", "SecurityHeadersMiddleware"]
