"""Route handlers for the API."""

from spatial_showcase.api.routes import (
    analytics,
    auth,
    health,
    media,
    portfolios,
    projects,
    share,
    templates,
)

__all__ = [
    "analytics",
    "auth",
    "health",
    "media",
    "portfolios",
    "projects",
    "share",
    "templates",
]
