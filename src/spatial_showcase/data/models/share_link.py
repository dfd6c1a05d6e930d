"""ORM model for portfolio share links."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spatial_showcase.data.db import Base
from spatial_showcase.data.models._common import new_id, utcnow

if TYPE_CHECKING:
    from spatial_showcase.data.models.portfolio import Portfolio


class ShareLink(Base):
    """A share token granting anonymous read access to one portfolio.

    A link is active while ``expires_at`` is null or in the future. Several
    links may exist per portfolio over time; the newest active one is
    canonical.

    Attributes:
        token: Unique random token embedded in share URLs.
        expires_at: Expiry instant, or None for a link that never expires.
        password_hash: Reserved for password-protected links; not checked.
        view_count: Reserved counter; views are recorded as analytics events.
    """

    __tablename__ = "share_links"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    portfolio_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("portfolios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    portfolio: Mapped[Portfolio] = relationship("Portfolio", back_populates="share_links")
