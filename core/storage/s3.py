from __future__ import annotations

from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from core.documents import (
    CACHE_CONTROL,
    METADATA_CONTENT_TYPE,
    METADATA_PREFIX,
    DocumentKeys,
    DocumentMetadata,
    inline_disposition,
)
from core.exceptions import NotFoundError, PartialDeleteError, StorageError


_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def _is_missing(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3DocumentStore:
    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        list_limit: int = 1000,
        client=None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.list_limit = list_limit
        if client is None:
            session = boto3.session.Session(region_name=region) if region else boto3.session.Session()
            client = session.client("s3", endpoint_url=endpoint_url)
        self.client = client

    def _keys(self, document_id: str) -> DocumentKeys:
        return DocumentKeys.for_object_store(document_id, self.prefix)

    def _metadata_prefix(self) -> str:
        return f"{self.prefix}/{METADATA_PREFIX}/" if self.prefix else f"{METADATA_PREFIX}/"

    def _read(self, key: str) -> bytes:
        response = self.client.get_object(Bucket=self.bucket, Key=key)
        body = response["Body"]
        try:
            return body.read()
        finally:
            body.close()

    def put_blob(self, document_id: str, data: bytes, content_type: str, filename: str) -> None:
        key = self._keys(document_id).blob
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ContentDisposition=inline_disposition(filename),
                CacheControl=CACHE_CONTROL,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to upload PDF", {"key": key, "reason": str(exc)}) from exc

    def put_metadata(self, metadata: DocumentMetadata) -> None:
        key = self._keys(metadata.id).metadata
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=metadata.to_json().encode("utf-8"),
                ContentType=METADATA_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to upload PDF metadata", {"key": key, "reason": str(exc)}) from exc

    def get_blob(self, document_id: str) -> bytes:
        key = self._keys(document_id).blob
        try:
            return self._read(key)
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFoundError("PDF not found", {"id": document_id}) from exc
            raise StorageError("Failed to serve PDF", {"key": key, "reason": str(exc)}) from exc
        except BotoCoreError as exc:
            raise StorageError("Failed to serve PDF", {"key": key, "reason": str(exc)}) from exc

    def get_metadata(self, document_id: str) -> DocumentMetadata:
        key = self._keys(document_id).metadata
        try:
            payload = self._read(key)
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFoundError("PDF metadata not found", {"id": document_id}) from exc
            raise StorageError("Failed to get PDF metadata", {"key": key, "reason": str(exc)}) from exc
        except BotoCoreError as exc:
            raise StorageError("Failed to get PDF metadata", {"key": key, "reason": str(exc)}) from exc
        try:
            return DocumentMetadata.model_validate_json(payload)
        except PydanticValidationError as exc:
            raise StorageError("Stored PDF metadata is invalid", {"key": key, "reason": str(exc)}) from exc

    def _metadata_keys(self) -> list[str]:
        paginator = self.client.get_paginator("list_objects_v2")
        pages = paginator.paginate(
            Bucket=self.bucket,
            Prefix=self._metadata_prefix(),
            PaginationConfig={"MaxItems": self.list_limit, "PageSize": min(self.list_limit, 1000)},
        )
        keys: list[str] = []
        for page in pages:
            keys.extend(item["Key"] for item in page.get("Contents", []))
        return keys[: self.list_limit]

    def list_metadata(self) -> list[DocumentMetadata]:
        try:
            keys = self._metadata_keys()
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("Failed to list PDFs", {"reason": str(exc)}) from exc

        records: list[DocumentMetadata] = []
        for key in keys:
            try:
                records.append(DocumentMetadata.model_validate_json(self._read(key)))
            except (ClientError, BotoCoreError, PydanticValidationError) as exc:
                logger.warning("Skipping unreadable metadata {key}: {error}", key=key, error=str(exc))
        return records

    def delete_pair(self, document_id: str) -> None:
        keys = self._keys(document_id)
        failures: dict[str, str] = {}
        for key in (keys.blob, keys.metadata):
            try:
                self.client.delete_object(Bucket=self.bucket, Key=key)
            except (ClientError, BotoCoreError) as exc:
                failures[key] = str(exc)
        if failures:
            raise PartialDeleteError("Failed to delete PDF", {"id": document_id, "failed": failures})

    def check(self) -> None:
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError("S3 connection failed", {"bucket": self.bucket, "reason": str(exc)}) from exc

    def describe(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}" if self.prefix else f"s3://{self.bucket}"


__all__ = ["S3DocumentStore"]
