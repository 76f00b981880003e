from __future__ import annotations

import os
import tempfile
from pathlib import Path

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from core.documents import DocumentKeys, DocumentMetadata
from core.exceptions import NotFoundError, PartialDeleteError, StorageError


class FilesystemDocumentStore:
    """Keeps ``<id>.pdf`` and ``<id>.json`` side by side in one directory."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _paths(self, document_id: str) -> tuple[Path, Path]:
        keys = DocumentKeys.for_filesystem(document_id)
        return self.root / keys.blob, self.root / keys.metadata

    def _write(self, path: Path, data: bytes) -> None:
        # write to a sibling temp file first so readers never see a torn file
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fp:
                fp.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to write {path.name}", {"reason": str(exc)}) from exc

    def put_blob(self, document_id: str, data: bytes, content_type: str, filename: str) -> None:
        blob_path, _ = self._paths(document_id)
        self._write(blob_path, data)

    def put_metadata(self, metadata: DocumentMetadata) -> None:
        _, metadata_path = self._paths(metadata.id)
        self._write(metadata_path, metadata.to_json().encode("utf-8"))

    def get_blob(self, document_id: str) -> bytes:
        blob_path, _ = self._paths(document_id)
        try:
            return blob_path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError("PDF not found", {"id": document_id}) from exc
        except OSError as exc:
            raise StorageError("Failed to read PDF", {"reason": str(exc)}) from exc

    def get_metadata(self, document_id: str) -> DocumentMetadata:
        _, metadata_path = self._paths(document_id)
        try:
            payload = metadata_path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise NotFoundError("PDF metadata not found", {"id": document_id}) from exc
        except OSError as exc:
            raise StorageError("Failed to read PDF metadata", {"reason": str(exc)}) from exc
        try:
            return DocumentMetadata.model_validate_json(payload)
        except PydanticValidationError as exc:
            raise StorageError("Stored PDF metadata is invalid", {"id": document_id, "reason": str(exc)}) from exc

    def list_metadata(self) -> list[DocumentMetadata]:
        try:
            candidates = sorted(self.root.glob("*.json"))
        except OSError as exc:
            raise StorageError("Failed to list PDFs", {"reason": str(exc)}) from exc

        records: list[DocumentMetadata] = []
        for path in candidates:
            try:
                records.append(DocumentMetadata.model_validate_json(path.read_text(encoding="utf-8")))
            except (OSError, PydanticValidationError) as exc:
                logger.warning("Skipping unreadable metadata {path}: {error}", path=str(path), error=str(exc))
        return records

    def delete_pair(self, document_id: str) -> None:
        failures: dict[str, str] = {}
        for path in self._paths(document_id):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                failures[path.name] = str(exc)
        if failures:
            raise PartialDeleteError("Failed to delete PDF", {"id": document_id, "failed": failures})

    def check(self) -> None:
        if not self.root.is_dir() or not os.access(self.root, os.W_OK):
            raise StorageError("Storage directory is not writable", {"root": str(self.root)})

    def describe(self) -> str:
        return str(self.root)


__all__ = ["FilesystemDocumentStore"]
