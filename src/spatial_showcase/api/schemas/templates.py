"""Pydantic schemas for the template catalog."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: str | None
    category: str
    preview_image_url: str | None
    config: dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class TemplateEnvelope(BaseModel):
    template: TemplateResponse


class TemplateListEnvelope(BaseModel):
    templates: list[TemplateResponse]
