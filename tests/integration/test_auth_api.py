"""Integration tests for authentication API endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledgerflow.core.security import create_access_token, create_refresh_token
from ledgerflow.models.audit_log import AuditLog
from ledgerflow.models.user import User
from ledgerflow.repositories.category import CategoryRepository
from ledgerflow.repositories.user import UserRepository


class TestUserRegistration:
    """Test user registration endpoint."""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient, db_session: AsyncSession):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "email": "newowner@example.com",
                "password": "SecurePass123!",
                "full_name": "New Owner",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newowner@example.com"
        assert data["is_active"] is True
        assert "password" not in data
        assert "password_hash" not in data

        user = await UserRepository(db_session).get_by_email("newowner@example.com")
        assert user is not None

    @pytest.mark.asyncio
    async def test_register_seeds_default_categories(self, client: AsyncClient, db_session: AsyncSession):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "seeded@example.com", "password": "SecurePass123!", "full_name": "Seeded"},
        )
        user = await UserRepository(db_session).get_by_email("seeded@example.com")

        categories = await CategoryRepository(db_session).get_by_user(user.id)
        assert response.status_code == 201
        assert len(categories) == 12
        assert {c.type for c in categories} == {"income", "expense"}
        assert any(c.name == "Account Transfer" and c.type == "income" for c in categories)

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": test_user.email, "password": "AnotherPass123!", "full_name": "Duplicate"},
        )

        assert response.status_code == 400
        assert "already registered" in response.json()["detail"].lower()

    @pytest.mark.asyncio
    async def test_register_duplicate_email_other_case(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "OWNER@Example.com", "password": "AnotherPass123!", "full_name": "Duplicate"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_short_password(self, client: AsyncClient):
        """Passwords shorter than 8 characters are rejected."""
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "short@example.com", "password": "short", "full_name": "Short"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_001"


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_email_case_insensitive(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "Owner@Example.com", "password": "password123"},
        )

        assert response.status_code == 200
        assert response.json()["access_token"]

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, db_session: AsyncSession, test_user: User):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "owner@example.com", "password": "password123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["refresh_token"]

        audit = (await db_session.execute(select(AuditLog).where(AuditLog.action == "login"))).scalar_one()
        assert audit.user_id == test_user.id

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "owner@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client: AsyncClient, db_session: AsyncSession, test_user: User):
        test_user.is_active = False
        await db_session.commit()

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "owner@example.com", "password": "password123"},
        )

        assert response.status_code == 403


class TestTokens:
    @pytest.mark.asyncio
    async def test_refresh_issues_new_pair(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": create_refresh_token(test_user.id)},
        )

        assert response.status_code == 200
        assert response.json()["access_token"]

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": create_access_token(test_user.id)},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_cannot_authenticate(self, client: AsyncClient, test_user: User):
        headers = {"Authorization": f"Bearer {create_refresh_token(test_user.id)}"}

        response = await client.get("/api/v1/auth/me", headers=headers)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == "owner@example.com"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient, test_user: User):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
