from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

import spatial_showcase.data.db as app_db
from spatial_showcase.config import get_settings
from spatial_showcase.data.db import Database
from spatial_showcase.data.models import Media, Portfolio, Project, ShareLink, User

TEST_JWT_SECRET = "test-secret-not-for-production"
TEST_SHARE_BASE_URL = "https://viewer.example"
TEST_HASH_ITERATIONS = 1_000


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Provide the secrets and base URL every test expects."""
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("SHARE_BASE_URL", TEST_SHARE_BASE_URL)
    monkeypatch.setenv("PASSWORD_HASH_ITERATIONS", str(TEST_HASH_ITERATIONS))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def api_db(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Use a temporary SQLite DB for API tests."""
    db_path = tmp_path / "api.db"
    monkeypatch.setenv("DB_URL", f"sqlite+aiosqlite:///{db_path.as_posix()}")
    get_settings.cache_clear()
    app_db._database = None
    yield
    app_db._database = None


@pytest.fixture
def client(api_db: None) -> Iterator[TestClient]:
    """Test client running the app lifespan (pool, services) for the whole test."""
    from spatial_showcase.api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncIterator[Database]:
    """A connected database with all tables, disposed after the test."""
    db = Database(f"sqlite+aiosqlite:///{(tmp_path / 'service.db').as_posix()}")
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


class Seeder:
    """Insert rows directly, bypassing authorization."""

    def __init__(self, database: Database) -> None:
        self.database = database
        self._count = 0

    async def _add(self, obj: Any) -> Any:
        async with self.database.session() as session:
            session.add(obj)
        return obj

    async def user(self, name: str = "Owner") -> User:
        self._count += 1
        return await self._add(
            User(email=f"user{self._count}@example.com", password_hash="x:y", name=name)
        )

    async def portfolio(self, owner: User, **fields: Any) -> Portfolio:
        fields.setdefault("title", "Portfolio")
        return await self._add(Portfolio(user_id=owner.id, **fields))

    async def project(self, portfolio: Portfolio, **fields: Any) -> Project:
        fields.setdefault("title", "Project")
        return await self._add(Project(portfolio_id=portfolio.id, **fields))

    async def media(
        self,
        project: Project | None = None,
        portfolio: Portfolio | None = None,
        **fields: Any,
    ) -> Media:
        fields.setdefault("type", "image")
        fields.setdefault("url", "/uploads/picture.png")
        return await self._add(
            Media(
                project_id=project.id if project else None,
                portfolio_id=portfolio.id if portfolio else None,
                **fields,
            )
        )

    async def share_link(
        self,
        portfolio: Portfolio,
        token: str,
        expires_at: datetime | None = None,
        created_at: datetime | None = None,
    ) -> ShareLink:
        link = ShareLink(portfolio_id=portfolio.id, token=token, expires_at=expires_at)
        if created_at is not None:
            link.created_at = created_at
        return await self._add(link)


@pytest.fixture
def seed(database: Database) -> Seeder:
    return Seeder(database)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically add api_db fixture to tests in API test files."""
    for item in items:
        test_file_path = Path(str(item.fspath))
        if "api" in test_file_path.stem.lower():
            item.add_marker(pytest.mark.usefixtures("api_db"))


class ApiUser:
    """A registered account and its bearer header."""

    def __init__(self, client: TestClient, email: str, name: str) -> None:
        response = client.post(
            "/api/auth/register", json={"email": email, "password": "password", "name": name}
        )
        assert response.status_code == 201, response.text
        body = response.json()
        self.id: str = body["user"]["id"]
        self.token: str = body["token"]
        self.headers = {"Authorization": f"Bearer {self.token}"}

    def create_portfolio(self, client: TestClient, **fields: Any) -> dict[str, Any]:
        fields.setdefault("title", "My Portfolio")
        response = client.post("/api/portfolios", json=fields, headers=self.headers)
        assert response.status_code == 201, response.text
        return response.json()["portfolio"]


@pytest.fixture
def make_user(client: TestClient):
    """Register API users on demand."""
    counter = 0

    def _make(name: str = "User") -> ApiUser:
        nonlocal counter
        counter += 1
        return ApiUser(client, f"{name.lower()}{counter}@example.com", name)

    return _make
