from .gateway_service import (
    BucketResult,
    DownloadHandle,
    GatewayService,
    MissingInputError,
    UploadData,
    UploadResult,
)
from .object_keys import ObjectKeyFactory

__all__ = [
    "BucketResult",
    "DownloadHandle",
    "GatewayService",
    "MissingInputError",
    "ObjectKeyFactory",
    "UploadData",
    "UploadResult",
]
