"""Upload, retrieval, listing and deletion of stored PDFs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from loguru import logger

from core.documents import (
    PDF_CONTENT_TYPE,
    DocumentMetadata,
    build_metadata,
    new_document_id,
    normalize_document_id,
    utc_now,
)
from core.exceptions import PayloadTooLargeError, PdfStoreError, ValidationError
from core.settings import UploadSettings
from core.storage import DocumentStore


@dataclass
class StoredDocument:
    id: str
    data: bytes
    filename: str


def _sort_key(record: DocumentMetadata) -> datetime:
    value = record.upload_date
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DocumentService:
    def __init__(
        self,
        store: DocumentStore,
        settings: UploadSettings | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.settings = settings or UploadSettings()
        self.clock = clock

    def upload(self, data: bytes, original_name: str | None = None, buyer_name: str | None = None) -> DocumentMetadata:
        """Store ``data`` as a new document and return its metadata.

        The blob is written before the metadata. If the metadata write fails
        the blob stays behind; nothing is rolled back.
        """
        if not data:
            raise ValidationError("No PDF file provided")
        if len(data) > self.settings.max_bytes:
            raise PayloadTooLargeError(
                "PDF exceeds the maximum upload size",
                {"size": len(data), "max_bytes": self.settings.max_bytes},
            )

        metadata = build_metadata(
            new_document_id(),
            file_size=len(data),
            original_name=original_name,
            buyer_name=buyer_name,
            uploaded_at=self.clock(),
            default_original_name=self.settings.default_original_name,
            default_buyer_name=self.settings.default_buyer_name,
        )
        self.store.put_blob(metadata.id, data, PDF_CONTENT_TYPE, metadata.original_name)
        self.store.put_metadata(metadata)
        logger.info(
            "Stored PDF {id} ({size} bytes) for buyer {buyer}",
            id=metadata.id,
            size=metadata.file_size,
            buyer=metadata.buyer_name,
        )
        return metadata

    def open(self, document_id: str) -> StoredDocument:
        document_id = normalize_document_id(document_id)
        data = self.store.get_blob(document_id)

        filename = self.settings.fallback_filename
        try:
            filename = self.store.get_metadata(document_id).original_name or filename
        except PdfStoreError as exc:
            logger.info("No metadata found for {id}, using default filename ({error})", id=document_id, error=exc.message)
        return StoredDocument(id=document_id, data=data, filename=filename)

    def info(self, document_id: str) -> DocumentMetadata:
        return self.store.get_metadata(normalize_document_id(document_id))

    def list_recent(self) -> list[DocumentMetadata]:
        records = self.store.list_metadata()
        return sorted(records, key=_sort_key, reverse=True)

    def delete(self, document_id: str) -> str:
        document_id = normalize_document_id(document_id)
        self.store.delete_pair(document_id)
        logger.info("Deleted PDF {id}", id=document_id)
        return document_id


__all__ = ["DocumentService", "StoredDocument"]
