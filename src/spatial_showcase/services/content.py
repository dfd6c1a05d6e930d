"""Portfolio, project and media CRUD guarded by the ownership resolver.

Each operation authorizes inside the same session it mutates in, so the
ownership check and the change share one transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, inspect, select

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import Media, Portfolio, Project, User
from spatial_showcase.data.models.portfolio import DEFAULT_TEMPLATE_ID
from spatial_showcase.exceptions import NotFound, ValidationFailed
from spatial_showcase.services.credentials import Identity
from spatial_showcase.services.ownership import Access, OwnershipResolver, ResourceKind

logger = logging.getLogger(__name__)

__all__ = ["ContentService"]

# Fields that can be updated on each model
_PORTFOLIO_FIELDS = ("title", "description", "template_id", "settings", "is_public")
_PROJECT_FIELDS = ("title", "description", "order_index", "panel_count")
_MEDIA_FIELDS = ("name", "title", "order_index")


def _apply_changes(obj: Any, changes: Mapping[str, Any], allowed: tuple[str, ...]) -> None:
    updates = {key: value for key, value in changes.items() if key in allowed}
    if not updates:
        raise ValidationFailed("No fields to update")

    columns = inspect(type(obj)).columns
    null_fields = sorted(
        key for key, value in updates.items() if value is None and not columns[key].nullable
    )
    if null_fields:
        raise ValidationFailed(f"Fields cannot be null: {', '.join(null_fields)}")
    for key, value in updates.items():
        setattr(obj, key, value)


class ContentService:
    """CRUD collaborators for the resource hierarchy."""

    def __init__(self, database: Database, resolver: OwnershipResolver) -> None:
        self._database = database
        self._resolver = resolver

    # Portfolios

    async def list_portfolios(self, identity: Identity) -> list[Portfolio]:
        async with self._database.session() as session:
            result = await session.scalars(
                select(Portfolio)
                .where(Portfolio.user_id == identity.user_id)
                .order_by(Portfolio.updated_at.desc())
            )
            return list(result)

    async def create_portfolio(
        self,
        identity: Identity,
        *,
        title: str,
        description: str | None = None,
        template_id: str | None = None,
        settings: Mapping[str, Any] | None = None,
        is_public: bool = False,
    ) -> Portfolio:
        if not title or not title.strip():
            raise ValidationFailed("Title is required")

        async with self._database.session() as session:
            owner = await session.get(User, identity.user_id)
            if owner is None:
                raise NotFound("User not found")
            portfolio = Portfolio(
                user_id=identity.user_id,
                title=title,
                description=description,
                template_id=template_id or DEFAULT_TEMPLATE_ID,
                settings=dict(settings or {}),
                is_public=is_public,
            )
            session.add(portfolio)
        logger.info("Created portfolio %s for user %s", portfolio.id, identity.user_id)
        return portfolio

    async def get_portfolio(
        self, identity: Identity | None, portfolio_id: str
    ) -> tuple[Portfolio, str | None]:
        """Return the portfolio and its owner's display name.

        Owners can always read; anyone can read a public portfolio.
        """
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.READ, session=session
            )
            row = (
                await session.execute(
                    select(Portfolio, User.name)
                    .join(User, Portfolio.user_id == User.id)
                    .where(Portfolio.id == portfolio_id)
                )
            ).first()
        if row is None:
            raise NotFound("Portfolio not found")
        return row[0], row[1]

    async def update_portfolio(
        self, identity: Identity, portfolio_id: str, changes: Mapping[str, Any]
    ) -> Portfolio:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.WRITE, session=session
            )
            portfolio = await session.get(Portfolio, portfolio_id)
            if portfolio is None:
                raise NotFound("Portfolio not found")
            _apply_changes(portfolio, changes, _PORTFOLIO_FIELDS)
            await session.flush()
        logger.info("Updated portfolio %s", portfolio_id)
        return portfolio

    async def delete_portfolio(self, identity: Identity, portfolio_id: str) -> None:
        """Delete the portfolio; projects, media, links and events cascade."""
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.WRITE, session=session
            )
            await session.execute(delete(Portfolio).where(Portfolio.id == portfolio_id))
        logger.info("Deleted portfolio %s", portfolio_id)

    # Projects

    async def list_projects(self, identity: Identity | None, portfolio_id: str) -> list[Project]:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.READ, session=session
            )
            result = await session.scalars(
                select(Project)
                .where(Project.portfolio_id == portfolio_id)
                .order_by(Project.order_index.asc(), Project.created_at.asc())
            )
            return list(result)

    async def get_project(self, identity: Identity | None, project_id: str) -> Project:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PROJECT, project_id, Access.READ, session=session
            )
            project = await session.get(Project, project_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    async def create_project(
        self,
        identity: Identity,
        portfolio_id: str,
        *,
        title: str,
        description: str | None = None,
        order_index: int = 0,
        panel_count: int = 1,
    ) -> Project:
        if not portfolio_id or not title:
            raise ValidationFailed("Portfolio ID and title are required")

        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.WRITE, session=session
            )
            project = Project(
                portfolio_id=portfolio_id,
                title=title,
                description=description,
                order_index=order_index,
                panel_count=panel_count,
            )
            session.add(project)
        return project

    async def update_project(
        self, identity: Identity, project_id: str, changes: Mapping[str, Any]
    ) -> Project:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PROJECT, project_id, Access.WRITE, session=session
            )
            project = await session.get(Project, project_id)
            if project is None:
                raise NotFound("Project not found")
            _apply_changes(project, changes, _PROJECT_FIELDS)
            await session.flush()
        return project

    async def delete_project(self, identity: Identity, project_id: str) -> None:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.PROJECT, project_id, Access.WRITE, session=session
            )
            await session.execute(delete(Project).where(Project.id == project_id))

    # Media

    async def create_media(
        self,
        identity: Identity,
        *,
        media_type: str,
        url: str,
        project_id: str | None = None,
        portfolio_id: str | None = None,
        **fields: Any,
    ) -> Media:
        """Record media metadata under exactly one parent."""
        if not media_type or not (project_id or portfolio_id):
            raise ValidationFailed("Type and project_id or portfolio_id are required")
        if project_id and portfolio_id:
            raise ValidationFailed("Media belongs to either a project or a portfolio, not both")

        if project_id:
            kind, parent_id = ResourceKind.PROJECT, project_id
        else:
            kind, parent_id = ResourceKind.PORTFOLIO, portfolio_id

        async with self._database.session() as session:
            await self._resolver.authorize(identity, kind, parent_id, Access.WRITE, session=session)
            media = Media(
                project_id=project_id,
                portfolio_id=portfolio_id,
                type=media_type,
                url=url,
                **fields,
            )
            session.add(media)
        return media

    async def get_media(self, identity: Identity | None, media_id: str) -> Media:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.MEDIA, media_id, Access.READ, session=session
            )
            media = await session.get(Media, media_id)
        if media is None:
            raise NotFound("Media not found")
        return media

    async def update_media(
        self, identity: Identity, media_id: str, changes: Mapping[str, Any]
    ) -> Media:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.MEDIA, media_id, Access.WRITE, session=session
            )
            media = await session.get(Media, media_id)
            if media is None:
                raise NotFound("Media not found")
            _apply_changes(media, changes, _MEDIA_FIELDS)
            await session.flush()
        return media

    async def delete_media(self, identity: Identity, media_id: str) -> None:
        async with self._database.session() as session:
            await self._resolver.authorize(
                identity, ResourceKind.MEDIA, media_id, Access.WRITE, session=session
            )
            await session.execute(delete(Media).where(Media.id == media_id))
