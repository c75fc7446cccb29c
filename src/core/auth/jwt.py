"""Access and refresh tokens for academy accounts.

Access tokens carry an ``admin`` claim so the frontend can show moderation
screens without an extra request; the server never trusts it and re-reads
the user on every call.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from src.core.config import settings
from src.core.exceptions import AuthenticationError

ACCESS = "access"
REFRESH = "refresh"


def _encode(user_id: int, token_type: str, lifetime: timedelta, **claims: Any) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: int, is_admin: bool = False) -> str:
    return _encode(
        user_id,
        ACCESS,
        timedelta(minutes=settings.access_token_expire_minutes),
        admin=is_admin,
    )


def create_refresh_token(user_id: int) -> str:
    return _encode(user_id, REFRESH, timedelta(days=settings.refresh_token_expire_days))


def decode_token(token: str, token_type: str = ACCESS) -> dict[str, Any]:
    """
    Decode a token and check its type.

    Raises:
        AuthenticationError: If the token is malformed, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}")

    if payload.get("type") != token_type:
        raise AuthenticationError(f"Invalid token type, expected {token_type}")
    return payload


def token_user_id(token: str, token_type: str = ACCESS) -> int:
    """Decode a token and return the user id it was issued for."""
    payload = decode_token(token, token_type)
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")
