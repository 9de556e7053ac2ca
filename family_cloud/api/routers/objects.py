"""Object API router.

Upload, listing, download and delete endpoints for the configured bucket.
Storage calls are blocking, so each one is handed to the thread pool and
the handler awaits it.
"""

from __future__ import annotations

from urllib.parse import quote

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    status,
)
from fastapi.responses import StreamingResponse
from starlette.concurrency import iterate_in_threadpool, run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from family_cloud.api.deps import get_gateway
from family_cloud.api.schemas import DeleteOut, ObjectOut, ObjectsPage, UploadOut
from family_cloud.infra.storage.client import StorageError
from family_cloud.services.gateway_service import (
    GatewayService,
    MissingInputError,
    UploadData,
)

router = APIRouter()

# characters encodeURIComponent leaves alone
_FILENAME_SAFE = "-_.!~*'()"


def _content_disposition(object_key: str) -> str:
    return f'attachment; filename="{quote(object_key, safe=_FILENAME_SAFE)}"'


def _download_headers(object_key: str, content_length: int | None) -> dict[str, str]:
    headers = {"Content-Disposition": _content_disposition(object_key)}
    if content_length is not None:
        headers["Content-Length"] = str(content_length)
    return headers


@router.post(
    "/upload",
    response_model=UploadOut,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description=(
        "Store the multipart field `file` under `<timestamp>_<name>`, where "
        "`name` defaults to the uploaded filename."
    ),
)
async def upload_object(
    file: UploadFile | str | None = File(default=None),
    name: str | None = Form(default=None),
    gateway: GatewayService = Depends(get_gateway),
) -> UploadOut:
    # a plain text part named "file" counts as no file at all
    if not isinstance(file, StarletteUploadFile):
        file = None
    payload = await file.read() if file is not None else None
    data = UploadData(
        data=payload,
        filename=file.filename if file is not None else None,
        name=name,
        content_type=file.content_type if file is not None else None,
    )
    try:
        result = await run_in_threadpool(gateway.upload, data)
    except MissingInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return UploadOut(bucket=result.bucket, object=result.object_key)


@router.get(
    "/objects",
    response_model=ObjectsPage,
    summary="List objects",
    description="List every object in the bucket, optionally filtered by key prefix.",
)
async def list_objects(
    prefix: str = Query(default=""),
    gateway: GatewayService = Depends(get_gateway),
) -> ObjectsPage:
    try:
        objects = await run_in_threadpool(gateway.list_objects, prefix)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return ObjectsPage(
        bucket=gateway.bucket,
        objects=[ObjectOut.model_validate(obj) for obj in objects],
    )


@router.get(
    "/object/{name:path}",
    response_class=StreamingResponse,
    summary="Download object",
    description="Stream the object body as an attachment.",
    responses={200: {"content": {"application/octet-stream": {}}}},
)
async def download_object(
    name: str,
    gateway: GatewayService = Depends(get_gateway),
) -> StreamingResponse:
    try:
        handle = await run_in_threadpool(gateway.open_download, name)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "object not found", "details": str(exc)},
        ) from exc

    return StreamingResponse(
        iterate_in_threadpool(handle.iter_chunks()),
        media_type=handle.content_type,
        headers=_download_headers(name, handle.content_length),
    )


@router.delete(
    "/object/{name:path}",
    response_model=DeleteOut,
    summary="Delete object",
    description="Remove the object. Deleting a missing key is not an error.",
)
async def delete_object(
    name: str,
    gateway: GatewayService = Depends(get_gateway),
) -> DeleteOut:
    try:
        deleted = await run_in_threadpool(gateway.delete, name)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return DeleteOut(deleted=deleted)
