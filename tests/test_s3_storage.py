"""S3-specific behaviour, exercised against moto."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from core.documents import DocumentMetadata, new_document_id
from core.exceptions import NotFoundError, PartialDeleteError, StorageError
from core.storage.s3 import S3DocumentStore
from tests.utils_storage import BUCKET


def _metadata(document_id: str) -> DocumentMetadata:
    return DocumentMetadata(
        id=document_id,
        original_name="Agreement.pdf",
        buyer_name="Buyer",
        upload_date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        file_size=3,
    )


def test_blob_object_carries_serving_headers(s3_client, s3_store, sample_pdf):
    document_id = new_document_id()
    s3_store.put_blob(document_id, sample_pdf, "application/pdf", "Agreement.pdf")

    head = s3_client.head_object(Bucket=BUCKET, Key=f"pdfs/{document_id}.pdf")
    assert head["ContentType"] == "application/pdf"
    assert head["ContentDisposition"] == 'inline; filename="Agreement.pdf"'
    assert head["CacheControl"] == "public, max-age=31536000"


def test_metadata_object_is_pretty_json(s3_client, s3_store):
    document_id = new_document_id()
    s3_store.put_metadata(_metadata(document_id))

    obj = s3_client.get_object(Bucket=BUCKET, Key=f"metadata/{document_id}.json")
    body = obj["Body"].read().decode("utf-8")
    assert obj["ContentType"] == "application/json"
    assert body.startswith("{\n  ")
    assert json.loads(body)["originalName"] == "Agreement.pdf"


def test_prefix_is_applied_to_keys(s3_client, sample_pdf):
    store = S3DocumentStore(BUCKET, prefix="tenant", client=s3_client)
    document_id = new_document_id()
    store.put_blob(document_id, sample_pdf, "application/pdf", "a.pdf")
    store.put_metadata(_metadata(document_id))

    keys = {item["Key"] for item in s3_client.list_objects_v2(Bucket=BUCKET)["Contents"]}
    assert keys == {f"tenant/pdfs/{document_id}.pdf", f"tenant/metadata/{document_id}.json"}
    assert [record.id for record in store.list_metadata()] == [document_id]


def test_listing_stops_at_list_limit(s3_client):
    store = S3DocumentStore(BUCKET, list_limit=2, client=s3_client)
    for _ in range(3):
        store.put_metadata(_metadata(new_document_id()))

    assert len(store.list_metadata()) == 2


def test_listing_skips_unparseable_metadata(s3_client, s3_store):
    good = new_document_id()
    s3_store.put_metadata(_metadata(good))
    s3_client.put_object(Bucket=BUCKET, Key=f"metadata/{new_document_id()}.json", Body=b"{broken")

    assert [record.id for record in s3_store.list_metadata()] == [good]


def test_check_fails_for_missing_bucket(s3_client):
    store = S3DocumentStore("no-such-bucket", client=s3_client)

    with pytest.raises(StorageError) as excinfo:
        store.check()
    assert excinfo.value.details["bucket"] == "no-such-bucket"


def test_operations_on_missing_bucket_raise_storage_error(s3_client, sample_pdf):
    store = S3DocumentStore("no-such-bucket", client=s3_client)

    with pytest.raises(StorageError):
        store.put_blob(new_document_id(), sample_pdf, "application/pdf", "a.pdf")
    with pytest.raises(StorageError):
        store.list_metadata()


def test_blob_disposition_sanitises_control_characters(s3_client, s3_store, sample_pdf):
    document_id = new_document_id()
    s3_store.put_blob(document_id, sample_pdf, "application/pdf", "a.pdf\r\nX-Injected: 1")

    head = s3_client.head_object(Bucket=BUCKET, Key=f"pdfs/{document_id}.pdf")
    assert head["ContentDisposition"].startswith('inline; filename="a.pdf__X-Injected: 1"')
    assert "\n" not in head["ContentDisposition"]


class BlobDeleteDenied:
    """Client wrapper whose deletes of PDF objects are refused."""

    def __init__(self, client):
        self._client = client

    def __getattr__(self, name):
        return getattr(self._client, name)

    def delete_object(self, **kwargs):
        if kwargs["Key"].startswith("pdfs/"):
            raise ClientError(
                {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}},
                "DeleteObject",
            )
        return self._client.delete_object(**kwargs)


def test_delete_reports_only_the_failed_key(s3_client, sample_pdf):
    store = S3DocumentStore(BUCKET, client=BlobDeleteDenied(s3_client))
    document_id = new_document_id()
    store.put_blob(document_id, sample_pdf, "application/pdf", "Agreement.pdf")
    store.put_metadata(_metadata(document_id))

    with pytest.raises(PartialDeleteError) as exc_info:
        store.delete_pair(document_id)

    failed = exc_info.value.details["failed"]
    assert set(failed) == {f"pdfs/{document_id}.pdf"}
    assert "AccessDenied" in failed[f"pdfs/{document_id}.pdf"]
    assert store.get_blob(document_id) == sample_pdf
    with pytest.raises(NotFoundError):
        store.get_metadata(document_id)
