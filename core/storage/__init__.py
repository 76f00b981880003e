"""Storage abstraction (S3 or local filesystem) for PDF blobs and their metadata."""

from __future__ import annotations

from typing import Protocol

from core.documents import DocumentMetadata
from core.exceptions import ConfigurationError
from core.settings import StorageSettings


class DocumentStore(Protocol):
    def put_blob(self, document_id: str, data: bytes, content_type: str, filename: str) -> None:
        ...

    def put_metadata(self, metadata: DocumentMetadata) -> None:
        ...

    def get_blob(self, document_id: str) -> bytes:
        ...

    def get_metadata(self, document_id: str) -> DocumentMetadata:
        ...

    def list_metadata(self) -> list[DocumentMetadata]:
        ...

    def delete_pair(self, document_id: str) -> None:
        ...

    def check(self) -> None:  # raises StorageError when unreachable
        ...

    def describe(self) -> str:
        ...


def create_store(settings: StorageSettings) -> DocumentStore:
    """Build the store variant selected by ``settings.backend``."""
    if settings.backend == "filesystem":
        from core.storage.local import FilesystemDocumentStore

        return FilesystemDocumentStore(settings.root)
    if settings.backend == "s3":
        from core.storage.s3 import S3DocumentStore

        if not settings.bucket:
            raise ConfigurationError("S3 bucket is not configured", {"setting": "storage.bucket"})
        return S3DocumentStore(
            settings.bucket,
            prefix=settings.prefix,
            region=settings.region,
            endpoint_url=settings.endpoint_url,
            list_limit=settings.list_limit,
        )
    raise ConfigurationError(f"Unknown storage backend: {settings.backend}", {"backend": str(settings.backend)})


__all__ = ["DocumentStore", "create_store"]
