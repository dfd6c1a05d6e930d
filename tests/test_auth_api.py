"""API tests for account endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient


def register(client: TestClient, email: str = "ada@example.com", password: str = "pw"):
    return client.post(
        "/api/auth/register", json={"email": email, "password": password, "name": "Ada"}
    )


class TestRegister:
    def test_register_returns_user_and_token(self, client: TestClient) -> None:
        response = register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["name"] == "Ada"
        assert "password_hash" not in body["user"]
        assert body["token"]

    def test_duplicate_email(self, client: TestClient) -> None:
        register(client)

        response = register(client, email="ADA@example.com")

        assert response.status_code == 409
        assert response.json() == {"error": "User already exists"}

    def test_missing_password(self, client: TestClient) -> None:
        response = client.post("/api/auth/register", json={"email": "ada@example.com"})

        assert response.status_code == 400
        assert "password" in response.json()["error"]


class TestLogin:
    def test_login_issues_working_token(self, client: TestClient) -> None:
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "pw"}
        )

        assert response.status_code == 200
        token = response.json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "ada@example.com"

    def test_wrong_password(self, client: TestClient) -> None:
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}


class TestMe:
    def test_requires_credential(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_rejects_malformed_header(self, client: TestClient) -> None:
        response = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_token_for_unknown_user(self, client: TestClient) -> None:
        token = client.app.state.services.verifier.issue("ghost")

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}
