"""Storage client protocol and data types.

This module defines the interface the gateway needs from an object storage
backend: bucket existence and creation, whole-buffer uploads, recursive
listing, streamed downloads and deletes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterator, Protocol


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class ObjectNotFoundError(StorageError):
    """Raised when the requested bucket or object does not exist."""


def _noop() -> None:
    return None


@dataclass(frozen=True, slots=True)
class ObjectHead:
    """Metadata from a HEAD object request."""

    size_bytes: int
    etag: str | None
    content_type: str | None


@dataclass(frozen=True, slots=True)
class ObjectInfo:
    """One entry of an object listing."""

    name: str
    size: int
    etag: str | None
    last_modified: datetime | None


@dataclass(slots=True)
class ObjectStream:
    """An opened object body.

    ``chunks`` is consumed once; ``close`` releases the underlying
    connection and must be called whether or not the body was fully read.
    """

    chunks: Iterator[bytes]
    content_type: str | None = None
    content_length: int | None = None
    close: Callable[[], None] = field(default=_noop)


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Every method raises StorageError (or ObjectNotFoundError) on failure.
    """

    def bucket_exists(self, *, bucket: str) -> bool:
        """Return whether the bucket exists."""
        ...

    def create_bucket(self, *, bucket: str) -> None:
        """Create a bucket.

        Args:
            bucket: Name of the bucket to create.

        Raises:
            StorageError: If the bucket cannot be created.
        """
        ...

    def put_object(
        self,
        *,
        bucket: str,
        object_key: str,
        data: bytes,
        content_type: str,
    ) -> None:
        """Store a whole in-memory payload under ``object_key``.

        Args:
            bucket: Target bucket name.
            object_key: Object key in the bucket.
            data: Payload to store.
            content_type: MIME type recorded with the object.

        Raises:
            StorageError: If the upload fails.
        """
        ...

    def head_object(self, *, bucket: str, object_key: str) -> ObjectHead:
        """Get object metadata without downloading the content.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If the operation fails.
        """
        ...

    def iter_objects(self, *, bucket: str, prefix: str = "") -> Iterator[ObjectInfo]:
        """Lazily list every object whose key starts with ``prefix``.

        The listing is recursive: keys containing ``/`` are returned as-is
        rather than being folded into common prefixes. Errors may surface
        while the iterator is being consumed.

        Raises:
            StorageError: If a listing page cannot be fetched.
        """
        ...

    def get_object(
        self, *, bucket: str, object_key: str, chunk_size: int
    ) -> ObjectStream:
        """Open an object body for streaming.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            StorageError: If the object cannot be opened, or later while
                the returned chunks are being read.
        """
        ...

    def delete_object(self, *, bucket: str, object_key: str) -> None:
        """Delete an object from storage.

        Raises:
            StorageError: If the operation fails.
        """
        ...
