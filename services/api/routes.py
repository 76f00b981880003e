from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse, Response
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from core.document_service import DocumentService
from core.documents import (
    CACHE_CONTROL,
    PDF_CONTENT_TYPE,
    DocumentMetadata,
    decode_pdf_payload,
    format_timestamp,
    inline_disposition,
    utc_now,
)
from core.exceptions import StorageError, ValidationError
from core.settings import Settings
from core.storage import DocumentStore
from services.api.dependencies import get_document_service, get_settings_dep, get_store
from services.api.schemas import (
    DeleteResponse,
    DocumentListResponse,
    StatusResponse,
    StorageCheckResponse,
    UploadBase64Request,
    UploadResponse,
)


router = APIRouter()
s3_router = APIRouter()


_BACKEND_LABELS = {
    "filesystem": "local filesystem",
    "s3": "AWS S3",
}


def _public_url(request: Request, document_id: str) -> str:
    return str(request.url_for("serve_pdf", document_id=document_id))


def _upload_response(request: Request, metadata: DocumentMetadata) -> UploadResponse:
    return UploadResponse(
        success=True,
        url=_public_url(request, metadata.id),
        id=metadata.id,
        metadata=metadata.to_public(),
    )


@router.get("/", response_model=StatusResponse, tags=["meta"])
def root_status(
    settings: Annotated[Settings, Depends(get_settings_dep)],
    store: Annotated[DocumentStore, Depends(get_store)],
) -> StatusResponse:
    backend = settings.storage.backend
    return StatusResponse(
        status=f"PDF Storage Server Running on {_BACKEND_LABELS.get(backend, backend)}",
        timestamp=format_timestamp(utc_now()),
        backend=backend,
        location=store.describe(),
    )


@s3_router.get("/test-s3", response_model=StorageCheckResponse, tags=["meta"])
def test_s3(
    settings: Annotated[Settings, Depends(get_settings_dep)],
    store: Annotated[DocumentStore, Depends(get_store)],
) -> Any:
    bucket = settings.storage.bucket or ""
    try:
        store.check()
    except StorageError as exc:
        logger.error("S3 connection check failed for {bucket}: {error}", bucket=bucket, error=exc.details)
        return JSONResponse(
            status_code=500,
            content={
                "error": "S3 connection failed",
                "message": exc.details.get("reason", exc.message),
                "bucket": bucket,
            },
        )
    return StorageCheckResponse(status="S3 connection successful", bucket=bucket)


@router.post("/upload-pdf", response_model=UploadResponse, tags=["documents"])
def upload_pdf(
    request: Request,
    service: Annotated[DocumentService, Depends(get_document_service)],
    pdf: Annotated[UploadFile | None, File(description="PDF document")] = None,
    original_name: Annotated[str | None, Form(alias="originalName")] = None,
    buyer_name: Annotated[str | None, Form(alias="buyerName")] = None,
) -> UploadResponse:
    if pdf is None:
        raise ValidationError("No PDF file provided")
    try:
        data = pdf.file.read()
    finally:
        pdf.file.close()
    metadata = service.upload(data, original_name=original_name, buyer_name=buyer_name)
    return _upload_response(request, metadata)


_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_base64_payload(request: Request) -> UploadBase64Request:
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type in _FORM_CONTENT_TYPES:
        form = await request.form()
        fields: Any = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        body = await request.body()
        try:
            fields = json.loads(body) if body.strip() else {}
        except ValueError as exc:
            raise ValidationError("Request body is not valid JSON", {"reason": str(exc)}) from exc
        if not isinstance(fields, dict):
            fields = {}

    try:
        return UploadBase64Request.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError("No PDF data provided", {"reason": str(exc)}) from exc


@router.post(
    "/upload-pdf-base64",
    response_model=UploadResponse,
    tags=["documents"],
    openapi_extra={
        "requestBody": {
            "content": {
                "application/json": {"schema": UploadBase64Request.model_json_schema(by_alias=True)},
                "application/x-www-form-urlencoded": {
                    "schema": UploadBase64Request.model_json_schema(by_alias=True)
                },
            },
        },
    },
)
async def upload_pdf_base64(
    request: Request,
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> UploadResponse:
    payload = await _read_base64_payload(request)
    if not payload.pdf_data:
        raise ValidationError("No PDF data provided")
    data = decode_pdf_payload(payload.pdf_data)
    metadata = await run_in_threadpool(
        service.upload,
        data,
        original_name=payload.original_name,
        buyer_name=payload.buyer_name,
    )
    return _upload_response(request, metadata)


@router.get("/pdf/{document_id}", name="serve_pdf", tags=["documents"])
def serve_pdf(
    document_id: str,
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> Response:
    document = service.open(document_id)
    return Response(
        content=document.data,
        media_type=PDF_CONTENT_TYPE,
        headers={
            "Content-Disposition": inline_disposition(document.filename),
            "Cache-Control": CACHE_CONTROL,
        },
    )


@router.get("/pdf/{document_id}/info", tags=["documents"])
def pdf_info(
    document_id: str,
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> dict[str, Any]:
    return service.info(document_id).to_public()


@router.get("/admin/pdfs", response_model=DocumentListResponse, tags=["admin"])
def list_pdfs(
    request: Request,
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> DocumentListResponse:
    pdfs = [
        {**record.to_public(), "url": _public_url(request, record.id)}
        for record in service.list_recent()
    ]
    return DocumentListResponse(pdfs=pdfs, total=len(pdfs))


@router.delete("/admin/pdf/{document_id}", response_model=DeleteResponse, tags=["admin"])
def delete_pdf(
    document_id: str,
    service: Annotated[DocumentService, Depends(get_document_service)],
) -> DeleteResponse:
    deleted_id = service.delete(document_id)
    return DeleteResponse(success=True, message="PDF deleted successfully", id=deleted_id)


__all__ = ["router", "s3_router"]
