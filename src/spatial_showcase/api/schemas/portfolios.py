"""Pydantic schemas for portfolio endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PortfolioCreateRequest(BaseModel):
    """Request body for creating a portfolio."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    template_id: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = False


class PortfolioUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    template_id: str | None = None
    settings: dict[str, Any] | None = None
    is_public: bool | None = None


class PortfolioResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None
    template_id: str
    settings: dict[str, Any]
    is_public: bool
    created_at: datetime
    updated_at: datetime
    owner_name: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OwnerPortfolioResponse(PortfolioResponse):
    """Portfolio as seen by its owner, including the inline share token.

    The inline token never expires, so it is only returned on owner-only
    routes and never on public or shared reads.
    """

    share_token: str | None


class PortfolioEnvelope(BaseModel):
    portfolio: PortfolioResponse


class OwnerPortfolioEnvelope(BaseModel):
    portfolio: OwnerPortfolioResponse


class PortfolioListEnvelope(BaseModel):
    portfolios: list[OwnerPortfolioResponse]
