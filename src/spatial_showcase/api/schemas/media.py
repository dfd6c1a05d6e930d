"""Pydantic schemas for media metadata endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MediaCreateRequest(BaseModel):
    """Metadata for media already stored elsewhere.

    Exactly one of ``project_id`` and ``portfolio_id`` must be given.
    """

    type: str = Field(min_length=1, max_length=50)
    url: str = Field(min_length=1, max_length=500)
    project_id: str | None = None
    portfolio_id: str | None = None
    thumbnail_url: str | None = None
    filename: str | None = None
    name: str | None = None
    title: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    order_index: int = 0


class MediaUpdateRequest(BaseModel):
    name: str | None = None
    title: str | None = None
    order_index: int | None = None


class MediaResponse(BaseModel):
    id: str
    project_id: str | None
    portfolio_id: str | None
    type: str
    url: str
    thumbnail_url: str | None
    filename: str | None
    name: str | None
    title: str | None
    file_size: int | None
    mime_type: str | None
    metadata: dict[str, Any] = Field(validation_alias=AliasChoices("extra", "metadata"))
    order_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MediaEnvelope(BaseModel):
    media: MediaResponse
