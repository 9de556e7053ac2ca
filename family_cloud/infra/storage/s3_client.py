"""S3-compatible storage client implementation.

This module provides the storage client used against MinIO. It speaks the
plain S3 API, so AWS S3 and other S3-compatible services work as well.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from family_cloud.infra.storage.client import (
    ObjectHead,
    ObjectInfo,
    ObjectNotFoundError,
    ObjectStream,
    StorageError,
)

if TYPE_CHECKING:
    from family_cloud.common.config import Settings

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def _wrap(message: str, exc: Exception) -> StorageError:
    if _error_code(exc) in NOT_FOUND_CODES:
        return ObjectNotFoundError(f"{message}: {exc}")
    return StorageError(f"{message}: {exc}")


def _strip_etag(etag: str | None) -> str | None:
    if not etag:
        return None
    return etag.strip('"')


class S3StorageClient:
    """S3-compatible object storage client.

    Uses boto3 for all storage operations. Requests are bounded by the
    configured connect/read timeouts and are attempted
    ``STORAGE_MAX_ATTEMPTS`` times in total.
    """

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Application settings containing MinIO configuration.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            connect_timeout=settings.STORAGE_CONNECT_TIMEOUT,
            read_timeout=settings.STORAGE_READ_TIMEOUT,
            retries={
                "mode": "standard",
                "total_max_attempts": int(settings.STORAGE_MAX_ATTEMPTS),
            },
        )

        return boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            region_name=settings.MINIO_REGION,
            aws_access_key_id=settings.MINIO_ACCESS_KEY,
            aws_secret_access_key=settings.MINIO_SECRET_KEY,
            use_ssl=bool(settings.MINIO_USE_SSL),
            config=config,
        )

    def bucket_exists(self, *, bucket: str) -> bool:
        """Check bucket existence with a HEAD bucket request."""
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                return False
            raise StorageError(f"Failed to check bucket: {exc}") from exc
        except Exception as exc:
            raise StorageError(f"Failed to check bucket: {exc}") from exc
        return True

    def create_bucket(self, *, bucket: str) -> None:
        """Create a bucket in the configured region."""
        params: dict[str, Any] = {"Bucket": bucket}
        region = (self._settings.MINIO_REGION or "").strip()
        # us-east-1 is the implicit location and must not be sent explicitly
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._client.create_bucket(**params)
        except Exception as exc:
            raise StorageError(f"Failed to create bucket: {exc}") from exc

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """Upload an in-memory payload with a single PUT."""
        try:
            self._client.put_object(
                Bucket=bucket,
                Key=object_key,
                Body=data,
                ContentLength=len(data),
                ContentType=content_type,
            )
        except Exception as exc:
            raise _wrap("Failed to upload object", exc) from exc

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content."""
        try:
            response = self._client.head_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _wrap("Failed to get object metadata", exc) from exc

        size = response.get("ContentLength")
        return ObjectHead(
            size_bytes=int(size) if size is not None else 0,
            etag=response.get("ETag"),
            content_type=response.get("ContentType"),
        )

    def iter_objects(self, *, bucket: str, prefix: str = "") -> Iterator[ObjectInfo]:
        """Walk every list_objects_v2 page without a delimiter."""
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix or ""):
                for obj in page.get("Contents", []):
                    yield ObjectInfo(
                        name=obj["Key"],
                        size=int(obj.get("Size") or 0),
                        etag=_strip_etag(obj.get("ETag")),
                        last_modified=obj.get("LastModified"),
                    )
        except Exception as exc:
            raise _wrap("Failed to list objects", exc) from exc

    def get_object(
        self, *, bucket: str, object_key: str, chunk_size: int
    ) -> ObjectStream:
        """Open the object body; chunks are read lazily from the response."""
        try:
            response = self._client.get_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise _wrap("Failed to get object", exc) from exc

        body = response["Body"]

        def chunks() -> Iterator[bytes]:
            try:
                yield from body.iter_chunks(chunk_size=chunk_size)
            except Exception as exc:
                raise StorageError(f"Failed to read object body: {exc}") from exc

        length = response.get("ContentLength")
        return ObjectStream(
            chunks=chunks(),
            content_type=response.get("ContentType"),
            content_length=int(length) if length is not None else None,
            close=body.close,
        )

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage."""
        try:
            self._client.delete_object(Bucket=bucket, Key=object_key)
        except Exception as exc:
            raise StorageError(f"Failed to delete object: {exc}") from exc
