"""Ownership resolution across the portfolio → project → media hierarchy.

Every resource resolves to exactly one owning user through its portfolio.
Each lookup is a single joined query so authorization latency is bounded
regardless of resource kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import Media, Portfolio, Project
from spatial_showcase.exceptions import Forbidden, NotFound
from spatial_showcase.services.credentials import Identity

logger = logging.getLogger(__name__)


class ResourceKind(StrEnum):
    PORTFOLIO = "portfolio"
    PROJECT = "project"
    MEDIA = "media"


class Access(StrEnum):
    READ = "read"
    WRITE = "write"


_NOT_FOUND_MESSAGES = {
    ResourceKind.PORTFOLIO: "Portfolio not found",
    ResourceKind.PROJECT: "Project not found",
    ResourceKind.MEDIA: "Media not found",
}


@dataclass(frozen=True)
class Ownership:
    """Result of resolving a resource to its owning user.

    Attributes:
        kind: Kind of the resolved resource.
        resource_id: Id of the resolved resource.
        owner_id: Id of the owning user.
        portfolio_id: Portfolio the ownership was derived through.
        is_public: Whether that portfolio is publicly readable.
    """

    kind: ResourceKind
    resource_id: str
    owner_id: str
    portfolio_id: str
    is_public: bool


def _portfolio_query(resource_id: str) -> Select:
    return select(Portfolio.id, Portfolio.user_id, Portfolio.is_public).where(
        Portfolio.id == resource_id
    )


def _project_query(resource_id: str) -> Select:
    return (
        select(Portfolio.id, Portfolio.user_id, Portfolio.is_public)
        .select_from(Project)
        .join(Portfolio, Project.portfolio_id == Portfolio.id)
        .where(Project.id == resource_id)
    )


def _media_query(resource_id: str) -> Select:
    direct = aliased(Portfolio)
    via_project = aliased(Portfolio)
    return (
        select(
            direct.id,
            direct.user_id,
            direct.is_public,
            via_project.id,
            via_project.user_id,
            via_project.is_public,
        )
        .select_from(Media)
        .outerjoin(direct, Media.portfolio_id == direct.id)
        .outerjoin(Project, Media.project_id == Project.id)
        .outerjoin(via_project, Project.portfolio_id == via_project.id)
        .where(Media.id == resource_id)
    )


class OwnershipResolver:
    """Resolve owners and enforce owner-only / public-read access."""

    def __init__(self, database: Database, timeout: float | None = None) -> None:
        self._database = database
        self._timeout = timeout

    async def lookup(
        self,
        kind: ResourceKind,
        resource_id: str,
        *,
        session: AsyncSession | None = None,
    ) -> Ownership:
        """Resolve ``resource_id`` with one round trip.

        Raises:
            NotFound: If the row does not exist, or media has no parent.
        """
        kind = ResourceKind(kind)
        async with self._database.scope(session, self._timeout) as active:
            if kind is ResourceKind.PORTFOLIO:
                row = (await active.execute(_portfolio_query(resource_id))).first()
                parent = tuple(row) if row is not None else None
            elif kind is ResourceKind.PROJECT:
                row = (await active.execute(_project_query(resource_id))).first()
                parent = tuple(row) if row is not None else None
            else:
                row = (await active.execute(_media_query(resource_id))).first()
                parent = _pick_media_parent(resource_id, row)

        if parent is None:
            raise NotFound(_NOT_FOUND_MESSAGES[kind])

        portfolio_id, owner_id, is_public = parent
        return Ownership(
            kind=kind,
            resource_id=resource_id,
            owner_id=owner_id,
            portfolio_id=portfolio_id,
            is_public=bool(is_public),
        )

    async def resolve_owner(
        self,
        kind: ResourceKind,
        resource_id: str,
        *,
        session: AsyncSession | None = None,
    ) -> str:
        """Return the id of the user owning the resource."""
        ownership = await self.lookup(kind, resource_id, session=session)
        return ownership.owner_id

    async def authorize(
        self,
        identity: Identity | None,
        kind: ResourceKind,
        resource_id: str,
        access: Access = Access.WRITE,
        *,
        session: AsyncSession | None = None,
    ) -> Ownership:
        """Check that ``identity`` may access the resource.

        Existence is checked first so missing resources are reported as
        ``NotFound`` to every caller. Public portfolios (and their children)
        are readable by anyone, anonymous callers included; writes always
        require ownership.

        Raises:
            NotFound: The resource does not exist.
            Forbidden: The caller is not the owner.
        """
        ownership = await self.lookup(kind, resource_id, session=session)

        if access is Access.READ and ownership.is_public:
            return ownership
        if identity is None or identity.user_id != ownership.owner_id:
            raise Forbidden("Access denied")
        return ownership


def _pick_media_parent(media_id: str, row) -> tuple[str, str, bool] | None:
    """Choose the portfolio a media row belongs to.

    The portfolio-direct relation wins over the project-derived one.
    """
    if row is None:
        return None
    direct_id, direct_owner, direct_public, via_id, via_owner, via_public = row
    if direct_owner is not None:
        if via_owner is not None and via_owner != direct_owner:
            logger.warning(
                "Media %s resolves to different owners via portfolio %s and project "
                "portfolio %s; using the portfolio",
                media_id,
                direct_id,
                via_id,
            )
        return direct_id, direct_owner, direct_public
    if via_owner is not None:
        return via_id, via_owner, via_public
    logger.warning("Media %s has no parent portfolio or project", media_id)
    return None
