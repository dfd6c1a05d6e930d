"""Analytics ingestion route."""

from __future__ import annotations

from dataclasses import replace

from fastapi import APIRouter

from spatial_showcase.api.dependencies import Metadata, OptionalIdentity, Services
from spatial_showcase.api.schemas.analytics import TrackEventRequest
from spatial_showcase.api.schemas.common import MessageResponse

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/track", response_model=MessageResponse, summary="Track an event")
async def track_event(
    request: TrackEventRequest,
    identity: OptionalIdentity,
    metadata: Metadata,
    services: Services,
) -> MessageResponse:
    """Queue the event and answer without waiting for the write."""
    services.recorder.record(
        request.portfolio_id,
        request.event_type,
        request.event_data,
        replace(metadata, device_type=request.device_type or "unknown"),
    )
    return MessageResponse(message="Event tracked successfully")
