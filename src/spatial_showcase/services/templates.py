"""Portfolio template catalog.

The catalog is read-only over the API. :func:`seed_default_templates` inserts
the built-in templates on startup without touching rows that already exist.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import Template
from spatial_showcase.exceptions import NotFound

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: tuple[dict[str, Any], ...] = (
    {
        "id": "creative-portfolio",
        "name": "Creative Portfolio",
        "description": (
            "A versatile template perfect for artists, designers, and creatives. "
            "Features a main hall with gallery rooms and project showcases."
        ),
        "category": "portfolio",
        "preview_image_url": "/templates/creative-portfolio-preview.jpg",
        "config": {
            "scenes": ["main_hall", "gallery", "projects", "about", "contact"],
            "layout": "hub-and-spoke",
            "colors": {"primary": "#6366f1", "secondary": "#8b5cf6", "background": "#1e1e2e"},
            "features": ["gallery", "projects", "about", "contact"],
        },
    },
    {
        "id": "photography-gallery",
        "name": "Photography Gallery",
        "description": (
            "Designed for photographers and visual artists. "
            "Emphasizes large image displays with minimal distractions."
        ),
        "category": "gallery",
        "preview_image_url": "/templates/photography-gallery-preview.jpg",
        "config": {
            "scenes": ["main_hall", "gallery", "photo_gallery", "about"],
            "layout": "gallery-focused",
            "colors": {"primary": "#000000", "secondary": "#ffffff", "background": "#0a0a0a"},
            "features": ["gallery", "photo_gallery", "about"],
        },
    },
    {
        "id": "project-showcase",
        "name": "Project Showcase",
        "description": (
            "Ideal for developers, architects, and professionals showcasing their work. "
            "Highlights projects with detailed descriptions."
        ),
        "category": "showcase",
        "preview_image_url": "/templates/project-showcase-preview.jpg",
        "config": {
            "scenes": ["main_hall", "projects", "innovation_lab", "about", "contact"],
            "layout": "project-focused",
            "colors": {"primary": "#3b82f6", "secondary": "#10b981", "background": "#111827"},
            "features": ["projects", "innovation_lab", "about", "contact"],
        },
    },
)


async def seed_default_templates(database: Database) -> int:
    """Insert any missing built-in templates and return how many were added."""
    async with database.session() as session:
        existing = set(await session.scalars(select(Template.id)))
        missing = [data for data in DEFAULT_TEMPLATES if data["id"] not in existing]
        session.add_all(Template(**data) for data in missing)
    if missing:
        logger.info("Seeded %d default templates", len(missing))
    return len(missing)


async def list_templates(database: Database) -> list[Template]:
    """Return active templates ordered by name."""
    async with database.session() as session:
        result = await session.scalars(
            select(Template).where(Template.is_active.is_(True)).order_by(Template.name.asc())
        )
        return list(result)


async def get_template(database: Database, template_id: str) -> Template:
    """Return an active template.

    Raises:
        NotFound: Unknown or inactive template.
    """
    async with database.session() as session:
        template = await session.scalar(
            select(Template).where(Template.id == template_id, Template.is_active.is_(True))
        )
    if template is None:
        raise NotFound("Template not found")
    return template
