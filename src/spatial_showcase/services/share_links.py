"""Share-link issuance and redemption.

A portfolio is in one of two states, derived from its ``share_links`` rows at
call time:

- no active link: no row with ``expires_at`` null or in the future;
- active link: at least one such row; the newest is canonical.

The portfolio's legacy inline ``share_token`` never expires and is only used
as a fallback when redeeming. A token that also exists as a ``share_links``
row (the first issued link is backfilled inline) redeems only while that row
is active.

Issuing is idempotent while a link is active. Two concurrent issues for a
portfolio without an active link may both insert; both tokens stay valid.
Token collisions (a unique violation on ``share_links.token``) are retried a
bounded number of times with a fresh token.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.elements import ColumnElement

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import Portfolio, ShareLink, User
from spatial_showcase.data.models._common import as_utc, utcnow
from spatial_showcase.exceptions import (
    Conflict,
    Fatal,
    NotFound,
    OperationTimeout,
    ValidationFailed,
)
from spatial_showcase.services.analytics import EVENT_VIEW, AnalyticsRecorder, RequestMetadata
from spatial_showcase.services.credentials import Identity
from spatial_showcase.services.ownership import Access, OwnershipResolver, ResourceKind

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
REDEEM_NOT_FOUND = "Portfolio not found or share link expired"
MAX_EXPIRES_IN_DAYS = 3650


def generate_token() -> str:
    """Return a new 64-character hex share token."""
    return secrets.token_hex(TOKEN_BYTES)


def build_share_url(base_url: str, token: str) -> str:
    """Compose the viewer URL for ``token``.

    The token travels in the hash fragment so it is handled client side.
    The local viewer on port 8081 is always served over HTTPS.
    """
    base = base_url.rstrip("/")
    if "localhost:8081" in base and base.startswith("http://"):
        base = "https://" + base[len("http://") :]
    return f"{base}/#token={token}"


def _short(token: str) -> str:
    return f"{token[:8]}..."


@dataclass(frozen=True)
class IssuedLink:
    """An active share link returned by :meth:`ShareLinkManager.issue`.

    Attributes:
        token: The share token.
        expires_at: Expiry instant (UTC) or None if the link never expires.
        created: True if this call inserted the link, False if it was reused.
    """

    token: str
    expires_at: datetime | None
    created: bool


@dataclass(frozen=True)
class SharedPortfolio:
    """A portfolio reached through a share token."""

    portfolio: Portfolio
    owner_name: str | None


class ShareLinkManager:
    """Issue, reuse and redeem portfolio share links."""

    def __init__(
        self,
        database: Database,
        resolver: OwnershipResolver,
        recorder: AnalyticsRecorder,
        *,
        max_attempts: int = 3,
        step_timeout: float = 2.0,
        issue_timeout: float = 5.0,
        token_factory: Callable[[], str] = generate_token,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._database = database
        self._resolver = resolver
        self._recorder = recorder
        self.max_attempts = max_attempts
        self.step_timeout = step_timeout
        self.issue_timeout = issue_timeout
        self._token_factory = token_factory
        self._clock = clock

    def _active(self, now: datetime) -> ColumnElement[bool]:
        return or_(ShareLink.expires_at.is_(None), ShareLink.expires_at > now)

    async def issue(
        self,
        portfolio_id: str,
        identity: Identity,
        expires_in_days: float | None = None,
    ) -> IssuedLink:
        """Return the portfolio's active link, creating one if there is none.

        Raises:
            NotFound: The portfolio does not exist.
            Forbidden: ``identity`` does not own the portfolio.
            OperationTimeout: The operation exceeded its time budget.
            Fatal: No unique token could be allocated.
            ValidationFailed: ``expires_in_days`` is not in (0, MAX_EXPIRES_IN_DAYS].
        """
        if expires_in_days is not None and not 0 < expires_in_days <= MAX_EXPIRES_IN_DAYS:
            raise ValidationFailed(
                f"expires_in_days must be greater than 0 and at most {MAX_EXPIRES_IN_DAYS}"
            )
        try:
            async with asyncio.timeout(self.issue_timeout):
                return await self._issue(portfolio_id, identity, expires_in_days)
        except TimeoutError as exc:
            logger.error(
                "Share link generation for portfolio %s exceeded %.1fs",
                portfolio_id,
                self.issue_timeout,
            )
            raise OperationTimeout("Request timeout - share link generation took too long") from exc

    async def _issue(
        self,
        portfolio_id: str,
        identity: Identity,
        expires_in_days: float | None,
    ) -> IssuedLink:
        async with self._database.session(self.step_timeout) as session:
            await self._resolver.authorize(
                identity, ResourceKind.PORTFOLIO, portfolio_id, Access.WRITE, session=session
            )

        existing = await self.active_link(portfolio_id)
        if existing is not None:
            logger.info(
                "Reusing share token %s for portfolio %s", _short(existing.token), portfolio_id
            )
            return IssuedLink(existing.token, as_utc(existing.expires_at), created=False)

        expires_at = (
            self._clock() + timedelta(days=expires_in_days) if expires_in_days else None
        )
        token = await self._insert_with_retry(portfolio_id, expires_at)
        await self._backfill_legacy_token(portfolio_id, token)
        logger.info("Issued share token %s for portfolio %s", _short(token), portfolio_id)
        return IssuedLink(token, expires_at, created=True)

    async def active_link(self, portfolio_id: str) -> ShareLink | None:
        """Return the newest active link for the portfolio, if any."""
        async with self._database.session(self.step_timeout) as session:
            return await session.scalar(
                select(ShareLink)
                .where(ShareLink.portfolio_id == portfolio_id, self._active(self._clock()))
                .order_by(ShareLink.created_at.desc())
                .limit(1)
            )

    async def _insert_with_retry(self, portfolio_id: str, expires_at: datetime | None) -> str:
        for attempt in range(1, self.max_attempts + 1):
            token = self._token_factory()
            try:
                await self._insert(portfolio_id, token, expires_at)
            except Conflict:
                logger.warning(
                    "Share token collision for portfolio %s (attempt %d/%d), regenerating",
                    portfolio_id,
                    attempt,
                    self.max_attempts,
                )
                continue
            return token

        logger.error(
            "Gave up allocating a share token for portfolio %s after %d attempts",
            portfolio_id,
            self.max_attempts,
        )
        raise Fatal("Could not allocate a unique share token")

    async def _insert(self, portfolio_id: str, token: str, expires_at: datetime | None) -> None:
        try:
            async with self._database.session(self.step_timeout) as session:
                session.add(ShareLink(portfolio_id=portfolio_id, token=token, expires_at=expires_at))
        except IntegrityError as exc:
            if await self._token_taken(token):
                raise Conflict("Share token already exists") from exc
            # The only other constraint is the portfolio foreign key.
            raise NotFound("Portfolio not found") from exc

    async def _token_taken(self, token: str) -> bool:
        async with self._database.session(self.step_timeout) as session:
            found = await session.scalar(select(ShareLink.id).where(ShareLink.token == token))
        return found is not None

    async def _backfill_legacy_token(self, portfolio_id: str, token: str) -> None:
        """Copy ``token`` onto the portfolio if it has no inline token yet.

        Best effort: the share link row is already committed and stays the
        source of truth, so failures are only logged.
        """
        try:
            async with self._database.session(self.step_timeout) as session:
                await session.execute(
                    update(Portfolio)
                    .where(Portfolio.id == portfolio_id, Portfolio.share_token.is_(None))
                    .values(share_token=token, updated_at=Portfolio.updated_at)
                )
        except Exception:
            logger.exception("Error updating share_token for portfolio %s", portfolio_id)

    async def redeem(
        self, token: str, metadata: RequestMetadata | None = None
    ) -> SharedPortfolio:
        """Resolve ``token`` to its portfolio and record a view.

        Expired and unknown tokens raise the same :class:`NotFound`.
        """
        if not token:
            raise NotFound(REDEEM_NOT_FOUND)

        async with self._database.session(self.step_timeout) as session:
            portfolio_id = await session.scalar(
                select(ShareLink.portfolio_id)
                .where(ShareLink.token == token, self._active(self._clock()))
                .limit(1)
            )
            if portfolio_id is None:
                # A backfilled inline token follows its share link's expiry.
                portfolio_id = await session.scalar(
                    select(Portfolio.id).where(
                        Portfolio.share_token == token,
                        ~exists(select(ShareLink.id).where(ShareLink.token == token)),
                    )
                )
            if portfolio_id is None:
                logger.info("Share token %s not found", _short(token))
                raise NotFound(REDEEM_NOT_FOUND)

            row = (
                await session.execute(
                    select(Portfolio, User.name)
                    .join(User, Portfolio.user_id == User.id)
                    .where(Portfolio.id == portfolio_id)
                )
            ).first()
            if row is None:
                raise NotFound(REDEEM_NOT_FOUND)

        portfolio, owner_name = row
        self._recorder.record(
            portfolio.id,
            EVENT_VIEW,
            {"source": "share_link", "token": token},
            metadata,
        )
        logger.info("Share token %s redeemed for portfolio %s", _short(token), portfolio.id)
        return SharedPortfolio(portfolio=portfolio, owner_name=owner_name)
