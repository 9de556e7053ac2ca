"""Object storage abstraction layer.

This module provides a protocol-based abstraction for object storage backends,
with a boto3 implementation for MinIO and other S3-compatible services.
"""

from .client import (
    ObjectHead,
    ObjectInfo,
    ObjectNotFoundError,
    ObjectStream,
    StorageClient,
    StorageError,
)

__all__ = [
    "ObjectHead",
    "ObjectInfo",
    "ObjectNotFoundError",
    "ObjectStream",
    "StorageClient",
    "StorageError",
]
