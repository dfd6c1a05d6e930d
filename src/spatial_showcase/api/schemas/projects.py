"""Pydantic schemas for project endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreateRequest(BaseModel):
    portfolio_id: str
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order_index: int = 0
    panel_count: int = Field(default=1, ge=1)


class ProjectUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    order_index: int | None = None
    panel_count: int | None = Field(default=None, ge=1)


class ProjectResponse(BaseModel):
    id: str
    portfolio_id: str
    title: str
    description: str | None
    order_index: int
    panel_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectEnvelope(BaseModel):
    project: ProjectResponse


class ProjectListEnvelope(BaseModel):
    projects: list[ProjectResponse]
