"""Pydantic schemas for the gateway API.

Request and response models for the bucket, upload, listing and delete
endpoints. Downloads return raw bytes and have no schema.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class HealthOut(BaseModel):
    ok: bool = True


class BucketCreate(BaseModel):
    """Request body for creating a bucket."""

    name: str | None = None


class BucketOut(BaseModel):
    """Response model for bucket creation."""

    bucket: str
    created: bool


class UploadOut(BaseModel):
    """Response model for a stored upload."""

    bucket: str
    object: str


class ObjectOut(BaseModel):
    """A single entry of an object listing."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    size: int
    etag: str | None = None
    last_modified: datetime | None = None


class ObjectsPage(BaseModel):
    """Response model for a full (unpaginated) listing."""

    bucket: str
    objects: list[ObjectOut]


class DeleteOut(BaseModel):
    deleted: str
