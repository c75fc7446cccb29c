from src.core.auth.models import User, UserStatus
from src.core.auth.service import AuthService
from src.core.auth.jwt import create_access_token, create_refresh_token, decode_token, token_user_id
from src.core.auth.dependencies import get_current_user, require_admin, require_approved

__all__ = [
    "User",
    "UserStatus",
    "AuthService",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "token_user_id",
    "get_current_user",
    "require_admin",
    "require_approved",
]
