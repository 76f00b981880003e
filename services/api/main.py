from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from core.document_service import DocumentService
from core.exceptions import PdfStoreError
from core.logging_config import setup_logging
from core.settings import Settings, get_settings
from core.storage import DocumentStore, create_store
from services.api.exception_handlers import (
    pdfstore_exception_handler,
    request_validation_exception_handler,
    unhandled_exception_handler,
)
from services.api.middleware import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    SecurityHeadersMiddleware,
)
from services.api.routes import router, s3_router


# multipart framing and base64 inflation on top of the raw document limit
_BODY_OVERHEAD_BYTES = 1024 * 1024


def create_app(settings: Settings | None = None, store: DocumentStore | None = None) -> FastAPI:
    settings = settings or get_settings()

    setup_logging(
        level=settings.logging.level,
        json_format=settings.logging.json_format,
        log_file=settings.logging.file,
    )

    store = store or create_store(settings.storage)

    app = FastAPI(
        title="PDF Store API",
        version="0.1.0",
        description="Upload, serve and administer stored PDF documents",
    )
    app.state.settings = settings
    app.state.store = store
    app.state.document_service = DocumentService(store, settings.upload)

    max_body = settings.upload.max_bytes * 4 // 3 + _BODY_OVERHEAD_BYTES
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=max_body)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - add LAST so it executes FIRST
    allow_all = "*" in settings.server.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.server.cors_origins,
        allow_credentials=not allow_all,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.on_event("startup")
    async def _log_startup() -> None:
        logger.info(
            "PDF store API initialised with backend={backend} location={location}",
            backend=settings.storage.backend,
            location=store.describe(),
        )

    @app.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.add_exception_handler(PdfStoreError, pdfstore_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)
    if settings.storage.backend == "s3":
        app.include_router(s3_router)

    return app


__all__ = ["create_app"]
