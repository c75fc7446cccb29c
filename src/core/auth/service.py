from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.jwt import REFRESH, create_access_token, create_refresh_token, token_user_id
from src.core.auth.models import User, UserStatus
from src.core.auth.password import hash_password, verify_password
from src.core.audit import AuditAction, create_audit_log
from src.core.exceptions import AuthenticationError, DuplicateError


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        username: str,
        password: str,
        phone: str,
        status: UserStatus = UserStatus.PENDING,
        is_admin: bool = False,
        created_by_id: int | None = None,
    ) -> User:
        """Create a new user. Self-registered accounts start as pending."""
        existing = await self.get_user_by_username(username)
        if existing:
            raise DuplicateError("User", "username", username)

        user = User(
            username=username,
            password_hash=hash_password(password),
            phone=phone,
            status=status.value,
            is_admin=is_admin,
        )

        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)

        await create_audit_log(
            session=self.session,
            action=AuditAction.CREATE,
            entity_type="User",
            entity_id=user.id,
            user_id=created_by_id,
            entity_identifier=user.username,
            new_values={"username": user.username, "status": user.status, "is_admin": user.is_admin},
        )

        return user

    async def ensure_admin(self, username: str, password: str, phone: str) -> User | None:
        """Create the default administrator if it does not exist yet. Returns the new user or None."""
        if await self.get_user_by_username(username):
            return None
        return await self.create_user(
            username=username,
            password=password,
            phone=phone,
            status=UserStatus.APPROVED,
            is_admin=True,
        )

    async def authenticate(
        self, username: str, password: str, ip_address: str | None = None
    ) -> tuple[User, str, str]:
        """
        Authenticate user and return tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            AuthenticationError: If credentials are invalid or the account is banned/rejected
        """
        user = await self.get_user_by_username(username)

        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        if user.is_banned:
            raise AuthenticationError("User account is banned")

        if not user.can_login:
            raise AuthenticationError("User account was rejected")

        user.last_login_at = datetime.now(timezone.utc)
        await self.session.flush()
        await self.session.refresh(user)

        access_token = create_access_token(user.id, user.is_admin)
        refresh_token = create_refresh_token(user.id)

        await create_audit_log(
            session=self.session,
            action=AuditAction.LOGIN,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            entity_identifier=user.username,
            ip_address=ip_address,
        )

        return user, access_token, refresh_token

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]:
        """
        Refresh access token using refresh token.

        Returns:
            Tuple of (new_access_token, new_refresh_token)

        Raises:
            AuthenticationError: If refresh token is invalid
        """
        user = await self.get_user_by_id(token_user_id(refresh_token, REFRESH))

        if not user:
            raise AuthenticationError("User not found")

        if not user.can_login:
            raise AuthenticationError("User account is not active")

        new_access_token = create_access_token(user.id, user.is_admin)
        new_refresh_token = create_refresh_token(user.id)

        return new_access_token, new_refresh_token
