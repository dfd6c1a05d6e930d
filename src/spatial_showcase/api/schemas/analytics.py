"""Pydantic schemas for analytics ingestion."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TrackEventRequest(BaseModel):
    portfolio_id: str = Field(min_length=1)
    event_type: str = Field(min_length=1, max_length=50)
    event_data: dict[str, Any] = Field(default_factory=dict)
    device_type: str | None = None
