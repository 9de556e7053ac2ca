"""Bucket API router."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException, status
from starlette.concurrency import run_in_threadpool

from family_cloud.api.deps import get_gateway
from family_cloud.api.schemas import BucketCreate, BucketOut
from family_cloud.infra.storage.client import StorageError
from family_cloud.services.gateway_service import GatewayService, MissingInputError

router = APIRouter()


@router.post(
    "/bucket",
    response_model=BucketOut,
    summary="Create bucket",
    description="Create a bucket unless it already exists. Safe to repeat.",
)
async def create_bucket(
    payload: BucketCreate | None = Body(default=None),
    gateway: GatewayService = Depends(get_gateway),
) -> BucketOut:
    name = payload.name if payload is not None else None
    try:
        result = await run_in_threadpool(gateway.create_bucket, name)
    except MissingInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return BucketOut(bucket=result.bucket, created=result.created)
