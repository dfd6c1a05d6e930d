"""ORM models package for database tables.

This package provides SQLAlchemy ORM models representing database tables:
- User: Account that owns portfolios
- Portfolio: Top of the ownership hierarchy, optionally public
- Project: Child of a portfolio
- Media: Attached to a project or directly to a portfolio
- ShareLink: Revocable, optionally expiring share token for a portfolio
- AnalyticsEvent: Append-only view/interaction fact for a portfolio
- Template: Read-only catalog of viewer layouts

All models inherit from the shared Base declarative class defined in data.db.
"""

from spatial_showcase.data.db import Base
from spatial_showcase.data.models.analytics_event import AnalyticsEvent
from spatial_showcase.data.models.media import Media
from spatial_showcase.data.models.portfolio import Portfolio
from spatial_showcase.data.models.project import Project
from spatial_showcase.data.models.share_link import ShareLink
from spatial_showcase.data.models.template import Template
from spatial_showcase.data.models.user import User

__all__ = [
    "AnalyticsEvent",
    "Base",
    "Media",
    "Portfolio",
    "Project",
    "ShareLink",
    "Template",
    "User",
]
