"""ORM model for the portfolio template catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from spatial_showcase.data.db import Base
from spatial_showcase.data.models._common import utcnow


class Template(Base):
    """A viewer layout a portfolio can reference through ``template_id``.

    Attributes:
        id: Stable slug, e.g. ``creative-portfolio``.
        category: One of ``portfolio``, ``gallery`` or ``showcase``.
        config: Scenes, layout, colors and features consumed by the viewer.
        is_active: Inactive templates are hidden from the catalog.
    """

    __tablename__ = "templates"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="portfolio")
    preview_image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
