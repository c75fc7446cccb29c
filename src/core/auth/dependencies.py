from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.jwt import ACCESS, token_user_id
from src.core.auth.models import User
from src.core.auth.service import AuthService
from src.core.database import get_db
from src.core.exceptions import AuthenticationError, AuthorizationError


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get current authenticated user from JWT token.

    Usage:
        @router.get("/me")
        async def get_me(user: User = Depends(get_current_user)):
            return user
    """
    if not authorization:
        raise AuthenticationError("Authorization header required")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    user_id = token_user_id(authorization.removeprefix("Bearer "), ACCESS)

    auth_service = AuthService(db)
    user = await auth_service.get_user_by_id(user_id)

    if not user:
        raise AuthenticationError("User not found")

    if user.is_banned:
        raise AuthenticationError("User account is banned")

    return user


async def get_optional_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous requests resolve to None."""
    if not authorization:
        return None
    return await get_current_user(authorization=authorization, db=db)


async def require_approved(current_user: User = Depends(get_current_user)) -> User:
    """Only approved accounts may publish."""
    if not current_user.is_approved:
        raise AuthorizationError("Account not approved")
    return current_user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise AuthorizationError("Admin access required")
    return current_user


# Convenience dependencies
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]
ApprovedUser = Annotated[User, Depends(require_approved)]
AdminUser = Annotated[User, Depends(require_admin)]
