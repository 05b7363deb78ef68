"""
Blob storage backends.

The ThumbnailGenerator only needs three capabilities, captured by the
BlobStore protocol:

  read(url)                          -> bytes, or None if the object is gone
  ensure_container(name)             -> idempotent create-if-absent
  upload(container, key, data, ...)  -> write, overwriting by default

S3BlobStore (boto3) treats containers as buckets.  AzureBlobStore wraps an
azure-storage-blob BlobServiceClient.  Storage errors are not caught here
except where they encode an expected state (missing object, existing
container); everything else propagates to the generator.
"""
from __future__ import annotations

import logging
from contextlib import closing
from typing import Protocol

import boto3
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from botocore.exceptions import ClientError

from thumbnailer.config import Settings
from thumbnailer.exceptions import BlobAlreadyExists, ConfigurationError
from thumbnailer.thumbnail.constants import StorageBackend
from thumbnailer.thumbnail.service import parse_blob_url

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


class BlobStore(Protocol):
    def read(self, url: str) -> bytes | None: ...

    def ensure_container(self, name: str) -> None: ...

    def upload(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str,
        overwrite: bool = True,
    ) -> None: ...


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


# ── S3 ───────────────────────────────────────────────────────────────────────

class S3BlobStore:
    def __init__(self, client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> S3BlobStore:
        kwargs = {"region_name": settings.aws_region}
        if settings.aws_access_key_id:
            kwargs["aws_access_key_id"] = settings.aws_access_key_id
            kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        if settings.s3_endpoint_url:
            kwargs["endpoint_url"] = settings.s3_endpoint_url
        return cls(boto3.client("s3", **kwargs))

    def read(self, url: str) -> bytes | None:
        location = parse_blob_url(url)
        try:
            response = self._client.get_object(Bucket=location.container, Key=location.key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                logger.warning("S3 object not found: s3://%s/%s", location.container, location.key)
                return None
            raise
        with closing(response["Body"]) as body:
            return body.read()

    def ensure_container(self, name: str) -> None:
        try:
            self._client.head_bucket(Bucket=name)
            return
        except ClientError as exc:
            if _error_code(exc) not in _NOT_FOUND_CODES:
                raise

        kwargs: dict = {"Bucket": name}
        region = self._client.meta.region_name
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            self._client.create_bucket(**kwargs)
            logger.info("Created bucket %s", name)
        except ClientError as exc:
            # Another invocation created it between head and create
            if _error_code(exc) != "BucketAlreadyOwnedByYou":
                raise

    def upload(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str,
        overwrite: bool = True,
    ) -> None:
        if not overwrite and self._exists(container, key):
            raise BlobAlreadyExists(container, key)
        self._client.put_object(
            Bucket=container,
            Key=key,
            Body=data,
            ContentType=content_type,
        )

    def _exists(self, container: str, key: str) -> bool:
        try:
            self._client.head_object(Bucket=container, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return False
            raise
        return True


# ── Azure ────────────────────────────────────────────────────────────────────

class AzureBlobStore:
    def __init__(self, service: BlobServiceClient) -> None:
        self._service = service

    @classmethod
    def from_settings(cls, settings: Settings) -> AzureBlobStore:
        return cls(
            BlobServiceClient.from_connection_string(settings.azure_storage_connection_string)
        )

    def read(self, url: str) -> bytes | None:
        location = parse_blob_url(url)
        blob = self._service.get_blob_client(container=location.container, blob=location.key)
        try:
            return blob.download_blob().readall()
        except ResourceNotFoundError:
            logger.warning("Azure blob not found: %s/%s", location.container, location.key)
            return None

    def ensure_container(self, name: str) -> None:
        try:
            self._service.create_container(name)
            logger.info("Created container %s", name)
        except ResourceExistsError:
            logger.debug("Container %s already exists", name)

    def upload(
        self,
        container: str,
        key: str,
        data: bytes,
        *,
        content_type: str,
        overwrite: bool = True,
    ) -> None:
        blob = self._service.get_blob_client(container=container, blob=key)
        try:
            blob.upload_blob(
                data,
                overwrite=overwrite,
                content_settings=ContentSettings(content_type=content_type),
            )
        except ResourceExistsError as exc:
            raise BlobAlreadyExists(container, key) from exc


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.storage_backend is StorageBackend.S3:
        return S3BlobStore.from_settings(settings)
    if settings.storage_backend is StorageBackend.AZURE:
        return AzureBlobStore.from_settings(settings)
    raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")
