"""Tests for custom exception hierarchy and HTTP status mapping."""

import pytest

from core.exceptions import (
    PdfStoreError,
    ConfigurationError,
    ValidationError,
    PayloadTooLargeError,
    NotFoundError,
    StorageError,
    PartialDeleteError,
)
from services.api.exception_handlers import status_for


def test_pdfstore_error_base():
    """Test base PdfStoreError."""
    error = PdfStoreError("Test error", {"key": "value"})
    assert str(error) == "Test error"
    assert error.message == "Test error"
    assert error.details == {"key": "value"}


def test_details_default_to_empty_dict():
    error = StorageError("Failed to list PDFs")
    assert error.details == {}


def test_configuration_error():
    """Test ConfigurationError."""
    error = ConfigurationError("Config missing", {"setting": "storage.bucket"})
    assert isinstance(error, PdfStoreError)
    assert error.message == "Config missing"


def test_partial_delete_is_storage_error():
    error = PartialDeleteError("Failed to delete PDF", {"failed": {"a.json": "denied"}})
    assert isinstance(error, StorageError)
    assert isinstance(error, PdfStoreError)


def test_payload_too_large_is_validation_error():
    assert issubclass(PayloadTooLargeError, ValidationError)


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (ValidationError("No PDF file provided"), 400),
        (PayloadTooLargeError("too big"), 413),
        (NotFoundError("PDF not found"), 404),
        (StorageError("Failed to upload PDF"), 500),
        (PartialDeleteError("Failed to delete PDF"), 500),
        (ConfigurationError("bad"), 500),
    ],
)
def test_status_mapping(error, expected):
    assert status_for(error) == expected
