"""ORM model representing a user's portfolio.

A portfolio is the root of the ownership hierarchy: projects, media, share
links and analytics events all resolve to the portfolio's ``user_id``.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatial_showcase.data.db import Base
from spatial_showcase.data.models._common import new_id, utcnow

if TYPE_CHECKING:
    from spatial_showcase.data.models.project import Project
    from spatial_showcase.data.models.share_link import ShareLink
    from spatial_showcase.data.models.user import User

DEFAULT_TEMPLATE_ID = "creative-portfolio"


class Portfolio(Base):
    """A user's portfolio.

    ``share_token`` is the legacy inline token that predates
    :class:`ShareLink`. It never expires and is only consulted as a fallback
    when redeeming.
    """

    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    template_id: Mapped[str] = mapped_column(
        String(100), nullable=False, default=DEFAULT_TEMPLATE_ID
    )
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    share_token: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    user: Mapped[User] = relationship("User", back_populates="portfolios")
    projects: Mapped[list[Project]] = relationship(
        "Project",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    share_links: Mapped[list[ShareLink]] = relationship(
        "ShareLink",
        back_populates="portfolio",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
