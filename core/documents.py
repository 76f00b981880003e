"""Document identifiers, storage keys and the sidecar metadata record."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from urllib.parse import quote
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_serializer

from core.exceptions import NotFoundError, ValidationError


PDF_CONTENT_TYPE = "application/pdf"
METADATA_CONTENT_TYPE = "application/json"
CACHE_CONTROL = "public, max-age=31536000"

BLOB_PREFIX = "pdfs"
METADATA_PREFIX = "metadata"

_DATA_URL_PREFIX = re.compile(r"^data:application/pdf;base64,")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    return str(uuid4())


def normalize_document_id(value: str) -> str:
    """Return the canonical form of an inbound document id.

    Anything that does not parse as a UUID cannot have been issued by this
    service, so it is reported as not found rather than as a bad request.
    """
    try:
        return str(UUID(value))
    except (TypeError, ValueError) as exc:
        raise NotFoundError("PDF not found", {"id": str(value)}) from exc


@dataclass(frozen=True)
class DocumentKeys:
    blob: str
    metadata: str

    @classmethod
    def for_object_store(cls, document_id: str, prefix: str = "") -> "DocumentKeys":
        base = f"{prefix}/" if prefix else ""
        return cls(
            blob=f"{base}{BLOB_PREFIX}/{document_id}.pdf",
            metadata=f"{base}{METADATA_PREFIX}/{document_id}.json",
        )

    @classmethod
    def for_filesystem(cls, document_id: str) -> "DocumentKeys":
        return cls(blob=f"{document_id}.pdf", metadata=f"{document_id}.json")


class DocumentMetadata(BaseModel):
    """Sidecar record stored next to every PDF blob."""

    id: str
    original_name: str = Field(alias="originalName")
    buyer_name: str = Field(alias="buyerName")
    upload_date: datetime = Field(alias="uploadDate")
    file_size: int = Field(alias="fileSize", ge=0)
    content_type: str = Field(PDF_CONTENT_TYPE, alias="contentType")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_serializer("upload_date")
    def _serialize_upload_date(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_public(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def build_metadata(
    document_id: str,
    *,
    file_size: int,
    original_name: str | None,
    buyer_name: str | None,
    uploaded_at: datetime,
    default_original_name: str,
    default_buyer_name: str,
) -> DocumentMetadata:
    return DocumentMetadata(
        id=document_id,
        original_name=original_name or default_original_name,
        buyer_name=buyer_name or default_buyer_name,
        upload_date=uploaded_at,
        file_size=file_size,
        content_type=PDF_CONTENT_TYPE,
    )


def inline_disposition(filename: str) -> str:
    """Build an ``inline`` Content-Disposition value for ``filename``.

    Header values must be latin-1 and free of control characters. When the
    name needs changing to satisfy that, the plain ``filename`` parameter
    carries a sanitised fallback and RFC 5987 ``filename*`` the exact name.
    """
    fallback = _CONTROL_CHARS.sub("_", filename)
    exact = fallback == filename
    try:
        fallback.encode("latin-1")
    except UnicodeEncodeError:
        fallback = fallback.encode("ascii", "replace").decode("ascii")
        exact = False

    escaped = fallback.replace("\\", "\\\\").replace('"', '\\"')
    value = f'inline; filename="{escaped}"'
    if not exact:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


def decode_pdf_payload(data: str) -> bytes:
    """Decode a base64 PDF payload, optionally given as a data URL."""
    stripped = _DATA_URL_PREFIX.sub("", data.strip(), count=1)
    try:
        return base64.b64decode("".join(stripped.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("PDF data is not valid base64", {"reason": str(exc)}) from exc


__all__ = [
    "PDF_CONTENT_TYPE",
    "METADATA_CONTENT_TYPE",
    "CACHE_CONTROL",
    "DocumentKeys",
    "DocumentMetadata",
    "build_metadata",
    "decode_pdf_payload",
    "format_timestamp",
    "inline_disposition",
    "new_document_id",
    "normalize_document_id",
    "utc_now",
]
