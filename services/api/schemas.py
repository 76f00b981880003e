from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class UploadBase64Request(BaseModel):
    pdf_data: str | None = Field(None, alias="pdfData")
    buyer_name: str | None = Field(None, alias="buyerName")
    original_name: str | None = Field(None, alias="originalName")

    class Config:
        populate_by_name = True


class UploadResponse(BaseModel):
    success: bool = True
    url: str
    id: str
    metadata: dict[str, Any]


class DocumentListResponse(BaseModel):
    pdfs: list[dict[str, Any]]
    total: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str = "PDF deleted successfully"
    id: str


class StatusResponse(BaseModel):
    status: str
    timestamp: str
    backend: str
    location: str


class StorageCheckResponse(BaseModel):
    status: str
    bucket: str


class ErrorResponse(BaseModel):
    error: str
    details: dict[str, Any] | None = None


__all__ = [
    "UploadBase64Request",
    "UploadResponse",
    "DocumentListResponse",
    "DeleteResponse",
    "StatusResponse",
    "StorageCheckResponse",
    "ErrorResponse",
]
