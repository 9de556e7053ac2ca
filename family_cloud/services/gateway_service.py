"""Gateway service for bucket and object operations.

This module provides the application service layer between the HTTP routers
and the storage client: bucket bootstrap, timestamped uploads, recursive
listing, streamed downloads and deletes against the configured bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from family_cloud.infra.storage.client import (
    ObjectInfo,
    ObjectStream,
    StorageClient,
    StorageError,
)
from family_cloud.services.object_keys import ObjectKeyFactory

DEFAULT_CONTENT_TYPE = "application/octet-stream"

logger = logging.getLogger(__name__)


class MissingInputError(ValueError):
    """Raised when a required request field is absent."""


@dataclass(frozen=True, slots=True)
class BucketResult:
    """Outcome of a create-if-absent bucket call."""

    bucket: str
    created: bool


@dataclass(frozen=True, slots=True)
class UploadData:
    """Input data for a whole-buffer upload."""

    data: bytes | None
    filename: str | None
    name: str | None = None
    content_type: str | None = None


@dataclass(frozen=True, slots=True)
class UploadResult:
    """Location of a stored object."""

    bucket: str
    object_key: str


@dataclass(frozen=True, slots=True)
class DownloadHandle:
    """An opened object ready to be streamed to the client."""

    object_key: str
    content_type: str | None
    content_length: int | None
    stream: ObjectStream

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield the body and always release the connection.

        Once the first chunk has been sent the response headers are gone,
        so a read failure here can only be logged and re-raised to abort
        the connection.
        """
        try:
            yield from self.stream.chunks
        except StorageError:
            logger.exception(
                "download_aborted object_key=%s",
                self.object_key,
                extra={"extra": {"object_key": self.object_key}},
            )
            raise
        finally:
            self.stream.close()


class GatewayService:
    """Application service for the gateway's bucket and object operations.

    Holds the storage client, the fixed target bucket and the key factory.
    It is constructed once per application and shared by all requests.
    """

    def __init__(
        self,
        storage_client: StorageClient,
        *,
        bucket: str,
        key_factory: ObjectKeyFactory | None = None,
        chunk_size: int = 64 * 1024,
    ) -> None:
        self._storage = storage_client
        self._bucket = bucket
        self._keys = key_factory or ObjectKeyFactory()
        self._chunk_size = chunk_size

    @property
    def bucket(self) -> str:
        return self._bucket

    def create_bucket(self, name: str | None) -> BucketResult:
        """Create ``name`` unless it already exists.

        Raises:
            MissingInputError: If no bucket name was supplied.
            StorageError: If the existence check or the creation fails.
        """
        if not name:
            raise MissingInputError("name required")
        exists = self._storage.bucket_exists(bucket=name)
        if not exists:
            self._storage.create_bucket(bucket=name)
        return BucketResult(bucket=name, created=not exists)

    def default_bucket_exists(self) -> bool:
        return self._storage.bucket_exists(bucket=self._bucket)

    def ensure_default_bucket(self) -> BucketResult:
        result = self.create_bucket(self._bucket)
        if result.created:
            logger.info("bucket_created bucket=%s", result.bucket)
        else:
            logger.info("bucket_exists bucket=%s", result.bucket)
        return result

    def upload(self, data: UploadData) -> UploadResult:
        """Store an uploaded buffer under a fresh timestamped key.

        The override ``name`` wins over the original filename when it is
        non-empty.

        Raises:
            MissingInputError: If no (or an empty) payload was supplied.
            StorageError: If the storage engine rejects the upload.
        """
        if not data.data:
            raise MissingInputError("file required")
        filename = data.name or data.filename or ""
        object_key = self._keys.build(filename)
        self._storage.put_object(
            bucket=self._bucket,
            object_key=object_key,
            data=data.data,
            content_type=data.content_type or DEFAULT_CONTENT_TYPE,
        )
        return UploadResult(bucket=self._bucket, object_key=object_key)

    def iter_objects(self, prefix: str | None = None) -> Iterator[ObjectInfo]:
        return self._storage.iter_objects(bucket=self._bucket, prefix=prefix or "")

    def list_objects(self, prefix: str | None = None) -> list[ObjectInfo]:
        """Collect the full listing before anything is returned."""
        return list(self.iter_objects(prefix))

    def open_download(self, object_key: str) -> DownloadHandle:
        """Open ``object_key`` for streaming.

        The content type comes from a best-effort HEAD request and falls back
        to the one reported by the GET when HEAD fails.

        Raises:
            StorageError: If the body cannot be opened.
        """
        content_type: str | None = None
        try:
            content_type = self._storage.head_object(
                bucket=self._bucket, object_key=object_key
            ).content_type
        except StorageError as exc:
            logger.debug("head_object_failed object_key=%s error=%s", object_key, exc)

        stream = self._storage.get_object(
            bucket=self._bucket,
            object_key=object_key,
            chunk_size=self._chunk_size,
        )
        return DownloadHandle(
            object_key=object_key,
            content_type=content_type or stream.content_type,
            content_length=stream.content_length,
            stream=stream,
        )

    def delete(self, object_key: str) -> str:
        self._storage.delete_object(bucket=self._bucket, object_key=object_key)
        return object_key
