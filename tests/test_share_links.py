"""Tests for share-link issuance and redemption."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import AnalyticsEvent, Portfolio, ShareLink
from spatial_showcase.data.models._common import as_utc
from spatial_showcase.exceptions import (
    Fatal,
    Forbidden,
    NotFound,
    OperationTimeout,
    ValidationFailed,
)
from spatial_showcase.services.analytics import AnalyticsRecorder, RequestMetadata
from spatial_showcase.services.credentials import Identity
from spatial_showcase.services.ownership import OwnershipResolver
from spatial_showcase.services.share_links import (
    MAX_EXPIRES_IN_DAYS,
    REDEEM_NOT_FOUND,
    ShareLinkManager,
    build_share_url,
    generate_token,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class SlowResolver(OwnershipResolver):
    async def authorize(self, *args, **kwargs):
        await asyncio.sleep(1)
        return await super().authorize(*args, **kwargs)


def tokens(*values: str) -> Callable[[], str]:
    return iter(values).__next__


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder(database: Database) -> AnalyticsRecorder:
    return AnalyticsRecorder(database)


def make_manager(database: Database, recorder: AnalyticsRecorder, **kwargs) -> ShareLinkManager:
    kwargs.setdefault("step_timeout", 10.0)
    kwargs.setdefault("issue_timeout", 30.0)
    resolver = kwargs.pop("resolver", None) or OwnershipResolver(database)
    return ShareLinkManager(database, resolver, recorder, **kwargs)


@pytest.fixture
def manager(database: Database, recorder: AnalyticsRecorder, clock: FakeClock) -> ShareLinkManager:
    return make_manager(database, recorder, clock=clock)


async def count_events(database: Database, portfolio_id: str, event_type: str = "view") -> int:
    async with database.session() as session:
        return await session.scalar(
            select(func.count())
            .select_from(AnalyticsEvent)
            .where(
                AnalyticsEvent.portfolio_id == portfolio_id,
                AnalyticsEvent.event_type == event_type,
            )
        )


async def load_portfolio(database: Database, portfolio_id: str) -> Portfolio:
    async with database.session() as session:
        return await session.get(Portfolio, portfolio_id)


class TestHelpers:
    def test_generated_tokens_are_long_random_hex(self) -> None:
        first, second = generate_token(), generate_token()
        assert len(first) == 64
        int(first, 16)
        assert first != second

    def test_share_url_uses_hash_fragment(self) -> None:
        assert build_share_url("https://viewer.example/", "abc") == "https://viewer.example/#token=abc"

    def test_local_viewer_is_forced_to_https(self) -> None:
        url = build_share_url("http://localhost:8081", "abc")
        assert url == "https://localhost:8081/#token=abc"

    def test_other_http_hosts_are_kept(self) -> None:
        assert build_share_url("http://localhost:3000", "abc").startswith("http://localhost:3000")

    def test_manager_requires_at_least_one_attempt(self) -> None:
        database = Database("sqlite+aiosqlite://")
        with pytest.raises(ValueError):
            make_manager(database, AnalyticsRecorder(database), max_attempts=0)


class TestIssue:
    @pytest.mark.asyncio
    async def test_issue_is_idempotent_while_active(self, manager: ShareLinkManager, seed) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        identity = Identity(user_id=owner.id)

        first = await manager.issue(portfolio.id, identity, expires_in_days=7)
        second = await manager.issue(portfolio.id, identity, expires_in_days=30)

        assert first.created is True
        assert second.created is False
        assert second.token == first.token
        assert second.expires_at == first.expires_at

    @pytest.mark.asyncio
    async def test_expiry_is_computed_from_days(
        self, manager: ShareLinkManager, seed, clock: FakeClock
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)

        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id), expires_in_days=2)

        assert issued.expires_at == clock.now + timedelta(days=2)

    @pytest.mark.asyncio
    async def test_without_days_the_link_never_expires(
        self, manager: ShareLinkManager, seed
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)

        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id))

        assert issued.expires_at is None

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, manager: ShareLinkManager, seed) -> None:
        owner = await seed.user()
        other = await seed.user()
        portfolio = await seed.portfolio(owner, is_public=True)

        with pytest.raises(Forbidden):
            await manager.issue(portfolio.id, Identity(user_id=other.id))
        assert await manager.active_link(portfolio.id) is None

    @pytest.mark.asyncio
    async def test_missing_portfolio(self, manager: ShareLinkManager) -> None:
        with pytest.raises(NotFound):
            await manager.issue("missing", Identity(user_id="anyone"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, -1, MAX_EXPIRES_IN_DAYS + 1, 1e12])
    async def test_out_of_range_expiry_is_rejected(
        self, manager: ShareLinkManager, seed, days: float
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)

        with pytest.raises(ValidationFailed, match="expires_in_days"):
            await manager.issue(portfolio.id, Identity(user_id=owner.id), expires_in_days=days)

        assert await manager.active_link(portfolio.id) is None

    @pytest.mark.asyncio
    async def test_expired_link_is_replaced(
        self, manager: ShareLinkManager, seed, clock: FakeClock
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        identity = Identity(user_id=owner.id)
        first = await manager.issue(portfolio.id, identity, expires_in_days=1)

        clock.advance(days=2)
        second = await manager.issue(portfolio.id, identity, expires_in_days=1)

        assert second.created is True
        assert second.token != first.token

    @pytest.mark.asyncio
    async def test_newest_active_link_is_canonical(self, manager: ShareLinkManager, seed) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        now = datetime.now(UTC)
        await seed.share_link(portfolio, "older", created_at=now - timedelta(days=3))
        await seed.share_link(portfolio, "newer", created_at=now - timedelta(days=1))

        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id))

        assert issued.token == "newer"
        assert issued.created is False

    @pytest.mark.asyncio
    async def test_backfills_legacy_token_once(
        self, manager: ShareLinkManager, database: Database, seed, clock: FakeClock
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        identity = Identity(user_id=owner.id)
        before = await load_portfolio(database, portfolio.id)

        first = await manager.issue(portfolio.id, identity, expires_in_days=1)
        clock.advance(days=2)
        await manager.issue(portfolio.id, identity, expires_in_days=1)

        after = await load_portfolio(database, portfolio.id)
        assert after.share_token == first.token
        assert as_utc(after.updated_at) == as_utc(before.updated_at)

    @pytest.mark.asyncio
    async def test_existing_legacy_token_is_kept(
        self, manager: ShareLinkManager, database: Database, seed
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner, share_token="legacy-token")

        await manager.issue(portfolio.id, Identity(user_id=owner.id))

        reloaded = await load_portfolio(database, portfolio.id)
        assert reloaded.share_token == "legacy-token"

    @pytest.mark.asyncio
    async def test_token_collision_is_retried(
        self,
        database: Database,
        recorder: AnalyticsRecorder,
        seed,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        owner = await seed.user()
        taken = await seed.portfolio(owner)
        portfolio = await seed.portfolio(owner)
        await seed.share_link(taken, "dup", expires_at=datetime.now(UTC) - timedelta(days=1))
        manager = make_manager(database, recorder, token_factory=tokens("dup", "fresh"))

        with caplog.at_level(logging.WARNING):
            issued = await manager.issue(portfolio.id, Identity(user_id=owner.id))

        assert issued.token == "fresh"
        assert "collision" in caplog.text

    @pytest.mark.asyncio
    async def test_collision_exhaustion_is_fatal(
        self, database: Database, recorder: AnalyticsRecorder, seed
    ) -> None:
        owner = await seed.user()
        taken = await seed.portfolio(owner)
        portfolio = await seed.portfolio(owner)
        await seed.share_link(taken, "dup", expires_at=datetime.now(UTC) - timedelta(days=1))
        manager = make_manager(
            database, recorder, max_attempts=3, token_factory=lambda: "dup"
        )

        with pytest.raises(Fatal):
            await manager.issue(portfolio.id, Identity(user_id=owner.id))

        async with database.session() as session:
            count = await session.scalar(
                select(func.count()).select_from(ShareLink).where(ShareLink.portfolio_id == portfolio.id)
            )
        assert count == 0

    @pytest.mark.asyncio
    async def test_slow_issue_times_out(
        self, database: Database, recorder: AnalyticsRecorder, seed
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        manager = make_manager(
            database, recorder, resolver=SlowResolver(database), issue_timeout=0.05
        )

        with pytest.raises(OperationTimeout, match="share link generation"):
            await manager.issue(portfolio.id, Identity(user_id=owner.id))
        assert await manager.active_link(portfolio.id) is None

    @pytest.mark.asyncio
    async def test_concurrent_issues_leave_portfolio_usable(
        self,
        manager: ShareLinkManager,
        recorder: AnalyticsRecorder,
        database: Database,
        seed,
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        identity = Identity(user_id=owner.id)

        results = await asyncio.gather(
            *(manager.issue(portfolio.id, identity) for _ in range(20))
        )
        issued_tokens = {result.token for result in results}

        for token in issued_tokens:
            shared = await manager.redeem(token)
            assert shared.portfolio.id == portfolio.id
        await recorder.drain()

        reloaded = await load_portfolio(database, portfolio.id)
        assert reloaded.share_token in issued_tokens


class TestRedeem:
    @pytest.mark.asyncio
    async def test_redeem_records_one_view(
        self,
        manager: ShareLinkManager,
        recorder: AnalyticsRecorder,
        database: Database,
        seed,
    ) -> None:
        owner = await seed.user("Ada")
        portfolio = await seed.portfolio(owner, title="Work")
        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id))

        shared = await manager.redeem(
            issued.token, RequestMetadata(user_agent="pytest", ip_address="10.0.0.1")
        )
        await recorder.drain()

        assert shared.portfolio.id == portfolio.id
        assert shared.portfolio.title == "Work"
        assert shared.owner_name == "Ada"
        assert await count_events(database, portfolio.id) == 1

        async with database.session() as session:
            event = await session.scalar(select(AnalyticsEvent))
        assert event.event_data == {"source": "share_link", "token": issued.token}
        assert event.user_agent == "pytest"
        assert event.ip_address == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_expired_and_unknown_tokens_look_the_same(
        self, manager: ShareLinkManager, seed, clock: FakeClock
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner, share_token="legacy-token")
        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id), expires_in_days=1)
        clock.advance(days=2)

        with pytest.raises(NotFound) as expired:
            await manager.redeem(issued.token)
        with pytest.raises(NotFound) as unknown:
            await manager.redeem("never-issued")

        assert expired.value.message == unknown.value.message == REDEEM_NOT_FOUND
        assert expired.value.status_code == unknown.value.status_code == 404

    @pytest.mark.asyncio
    async def test_backfilled_token_expires_with_its_link(
        self, manager: ShareLinkManager, database: Database, seed, clock: FakeClock
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id), expires_in_days=1)
        assert (await load_portfolio(database, portfolio.id)).share_token == issued.token
        clock.advance(days=2)

        with pytest.raises(NotFound) as expired:
            await manager.redeem(issued.token)

        assert expired.value.message == REDEEM_NOT_FOUND

    @pytest.mark.asyncio
    async def test_legacy_inline_token_redeems(
        self,
        manager: ShareLinkManager,
        recorder: AnalyticsRecorder,
        database: Database,
        seed,
    ) -> None:
        owner = await seed.user()
        portfolio = await seed.portfolio(owner, share_token="legacy-token")

        shared = await manager.redeem("legacy-token")
        await recorder.drain()

        assert shared.portfolio.id == portfolio.id
        assert await count_events(database, portfolio.id) == 1

    @pytest.mark.asyncio
    async def test_empty_token(self, manager: ShareLinkManager) -> None:
        with pytest.raises(NotFound):
            await manager.redeem("")

    @pytest.mark.asyncio
    async def test_analytics_failure_does_not_fail_redeem(
        self, database: Database, seed, caplog: pytest.LogCaptureFixture
    ) -> None:
        broken = AnalyticsRecorder(Database("sqlite+aiosqlite://"))
        manager = make_manager(database, broken)
        owner = await seed.user()
        portfolio = await seed.portfolio(owner)
        issued = await manager.issue(portfolio.id, Identity(user_id=owner.id))

        with caplog.at_level(logging.ERROR):
            shared = await manager.redeem(issued.token)
            await broken.drain()

        assert shared.portfolio.id == portfolio.id
        assert "Error recording view event" in caplog.text
