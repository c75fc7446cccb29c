import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.jwt import REFRESH, create_access_token, create_refresh_token, token_user_id
from src.core.auth.models import UserStatus
from src.core.auth.service import AuthService
from src.core.exceptions import AuthenticationError, DuplicateError


class TestAuthService:
    """Tests for AuthService."""

    async def test_create_user_starts_pending(self, db_session: AsyncSession):
        """Self-registered users wait for approval."""
        auth_service = AuthService(db_session)

        user = await auth_service.create_user(
            username="hanaro_academy",
            password="Password123",
            phone="010-1111-2222",
        )

        assert user.id is not None
        assert user.username == "hanaro_academy"
        assert user.status == UserStatus.PENDING.value
        assert user.is_approved is False
        assert user.is_admin is False
        assert user.password_hash != "Password123"

    async def test_create_user_duplicate_username(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)

        await auth_service.create_user(username="dup", password="Password123", phone="010")

        with pytest.raises(DuplicateError) as exc_info:
            await auth_service.create_user(username="dup", password="Another123", phone="010")

        assert "already exists" in str(exc_info.value)

    async def test_authenticate_success(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)
        await auth_service.create_user(username="login_me", password="Password123", phone="010")

        user, access_token, refresh_token = await auth_service.authenticate(
            username="login_me",
            password="Password123",
        )

        assert user.username == "login_me"
        assert user.last_login_at is not None
        assert access_token
        assert refresh_token

    async def test_authenticate_wrong_password(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)
        await auth_service.create_user(username="login_me", password="Password123", phone="010")

        with pytest.raises(AuthenticationError):
            await auth_service.authenticate(username="login_me", password="WrongPassword")

    async def test_authenticate_banned_user(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)
        await auth_service.create_user(
            username="banned", password="Password123", phone="010", status=UserStatus.BANNED
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.authenticate(username="banned", password="Password123")

        assert "banned" in str(exc_info.value)

    async def test_refresh_tokens(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)
        await auth_service.create_user(username="refresh_me", password="Password123", phone="010")
        _, _, refresh_token = await auth_service.authenticate("refresh_me", "Password123")

        new_access, new_refresh = await auth_service.refresh_tokens(refresh_token)

        assert new_access
        assert new_refresh

    async def test_ensure_admin_is_idempotent(self, db_session: AsyncSession):
        auth_service = AuthService(db_session)

        created = await auth_service.ensure_admin("admin", "admin123!", "010-0000-0000")
        again = await auth_service.ensure_admin("admin", "admin123!", "010-0000-0000")

        assert created is not None
        assert created.is_admin is True
        assert created.is_approved is True
        assert again is None


class TestAuthEndpoints:
    """Tests for auth API endpoints."""

    async def test_register_and_login(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"username": "new_academy", "password": "Password123", "phone": "010-9999-8888"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "pending"

        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "new_academy", "password": "Password123"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "access_token" in data["data"]
        assert data["data"]["user"]["is_approved"] is False

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"username": "new_academy", "password": "short", "phone": "010"},
        )
        assert response.status_code == 422

    async def test_register_multibyte_password_over_72_bytes(self, client: AsyncClient):
        # 30 Hangul syllables: 30 characters, 90 bytes in UTF-8
        response = await client.post(
            "/api/v1/auth/register",
            json={"username": "hangul_academy", "password": "가나다라마바사아자차" * 3, "phone": "010"},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["errors"][0]["field"] == "password"
        assert "72 bytes" in body["errors"][0]["message"]

    async def test_register_password_of_exactly_72_bytes(self, client: AsyncClient):
        # 24 Hangul syllables are 72 bytes
        password = "가나다라마바사아자차가나다라마바사아자차가나다라"
        response = await client.post(
            "/api/v1/auth/register",
            json={"username": "hangul_academy", "password": password, "phone": "010"},
        )
        assert response.status_code == 201

        login = await client.post(
            "/api/v1/auth/login", json={"username": "hangul_academy", "password": password}
        )
        assert login.status_code == 200

    async def test_login_invalid_credentials(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "nobody", "password": "Password123"},
        )
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_get_me(self, client: AsyncClient, approved_user, headers_for):
        response = await client.get("/api/v1/auth/me", headers=headers_for(approved_user))
        assert response.status_code == 200
        assert response.json()["data"]["username"] == approved_user.username

    async def test_get_me_without_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401
    async def test_missing_token_sets_bearer_challenge(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_refresh_token_rejected_as_access_token(self, client: AsyncClient, approved_user):
        token = create_refresh_token(approved_user.id)

        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert "token type" in response.json()["message"]


class TestTokens:
    def test_token_user_id(self):
        assert token_user_id(create_access_token(17, is_admin=True)) == 17
        assert token_user_id(create_refresh_token(17), REFRESH) == 17

    def test_wrong_token_type(self):
        with pytest.raises(AuthenticationError):
            token_user_id(create_access_token(17), REFRESH)

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError):
            token_user_id("not-a-jwt")
