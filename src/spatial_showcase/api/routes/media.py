"""Media metadata routes.

File bytes are stored by an external uploader; these routes only record and
manage the metadata rows.
"""

from __future__ import annotations

from fastapi import APIRouter, status

from spatial_showcase.api.dependencies import CurrentIdentity, OptionalIdentity, Services
from spatial_showcase.api.schemas.common import MessageResponse
from spatial_showcase.api.schemas.media import (
    MediaCreateRequest,
    MediaEnvelope,
    MediaResponse,
    MediaUpdateRequest,
)

router = APIRouter(prefix="/media", tags=["media"])


@router.post(
    "",
    response_model=MediaEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Record media",
)
async def create_media(
    request: MediaCreateRequest, identity: CurrentIdentity, services: Services
) -> MediaEnvelope:
    media = await services.content.create_media(
        identity,
        media_type=request.type,
        url=request.url,
        project_id=request.project_id,
        portfolio_id=request.portfolio_id,
        thumbnail_url=request.thumbnail_url,
        filename=request.filename,
        name=request.name,
        title=request.title,
        file_size=request.file_size,
        mime_type=request.mime_type,
        extra=request.metadata,
        order_index=request.order_index,
    )
    return MediaEnvelope(media=MediaResponse.model_validate(media))


@router.get("/{media_id}", response_model=MediaEnvelope, summary="Get media")
async def get_media(
    media_id: str, identity: OptionalIdentity, services: Services
) -> MediaEnvelope:
    media = await services.content.get_media(identity, media_id)
    return MediaEnvelope(media=MediaResponse.model_validate(media))


@router.put("/{media_id}", response_model=MediaEnvelope, summary="Update media")
async def update_media(
    media_id: str,
    request: MediaUpdateRequest,
    identity: CurrentIdentity,
    services: Services,
) -> MediaEnvelope:
    media = await services.content.update_media(
        identity, media_id, request.model_dump(exclude_unset=True)
    )
    return MediaEnvelope(media=MediaResponse.model_validate(media))


@router.delete("/{media_id}", response_model=MessageResponse, summary="Delete media")
async def delete_media(
    media_id: str, identity: CurrentIdentity, services: Services
) -> MessageResponse:
    await services.content.delete_media(identity, media_id)
    return MessageResponse(message="Media deleted successfully")
