"""Custom exception hierarchy for the PDF store."""

from __future__ import annotations

from typing import Any


class PdfStoreError(Exception):
    """Base exception for all PDF store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PdfStoreError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(PdfStoreError):
    """Raised when required request input is missing or malformed."""
    pass


class PayloadTooLargeError(ValidationError):
    """Raised when an uploaded document exceeds the configured size limit."""
    pass


class NotFoundError(PdfStoreError):
    """Raised when no blob or metadata exists for a document id."""
    pass


class StorageError(PdfStoreError):
    """Raised when a backing store operation fails."""
    pass


class PartialDeleteError(StorageError):
    """Raised when only part of a blob/metadata pair could be deleted."""
    pass


__all__ = [
    "PdfStoreError",
    "ConfigurationError",
    "ValidationError",
    "PayloadTooLargeError",
    "NotFoundError",
    "StorageError",
    "PartialDeleteError",
]
