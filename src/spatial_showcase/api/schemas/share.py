"""Pydantic schemas for share-link endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from spatial_showcase.api.schemas.portfolios import PortfolioResponse
from spatial_showcase.services.share_links import MAX_EXPIRES_IN_DAYS


class ShareGenerateRequest(BaseModel):
    """Options for a newly issued link; ignored while a link is active."""

    expires_in_days: float | None = Field(default=None, gt=0, le=MAX_EXPIRES_IN_DAYS)
    # Accepted for forward compatibility; links are not password protected yet.
    password: str | None = None


class ShareLinkResponse(BaseModel):
    share_url: str = Field(alias="shareUrl")
    token: str
    expires_at: datetime | None = Field(alias="expiresAt")

    model_config = ConfigDict(populate_by_name=True)


class SharedPortfolioEnvelope(BaseModel):
    portfolio: PortfolioResponse
