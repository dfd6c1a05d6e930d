"""Template catalog routes; public and read-only."""

from __future__ import annotations

from fastapi import APIRouter

from spatial_showcase.api.dependencies import Services
from spatial_showcase.api.schemas.templates import (
    TemplateEnvelope,
    TemplateListEnvelope,
    TemplateResponse,
)
from spatial_showcase.services.templates import get_template, list_templates

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=TemplateListEnvelope, summary="List active templates")
async def list_active_templates(services: Services) -> TemplateListEnvelope:
    templates = await list_templates(services.database)
    return TemplateListEnvelope(
        templates=[TemplateResponse.model_validate(t) for t in templates]
    )


@router.get("/{template_id}", response_model=TemplateEnvelope, summary="Get a template")
async def get_active_template(template_id: str, services: Services) -> TemplateEnvelope:
    template = await get_template(services.database, template_id)
    return TemplateEnvelope(template=TemplateResponse.model_validate(template))
