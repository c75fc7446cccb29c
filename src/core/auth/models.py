from datetime import datetime
from enum import StrEnum

from sqlalchemy import BigInteger, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel


class UserStatus(StrEnum):
    """Account moderation state."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BANNED = "banned"


class User(BaseModel):
    """
    Academy account.

    New registrations start as pending; only approved accounts may post.
    Administrators moderate accounts and content.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserStatus.PENDING.value, index=True
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    banned_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    banned_by_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED.value

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED.value

    @property
    def can_login(self) -> bool:
        return self.status not in (UserStatus.BANNED.value, UserStatus.REJECTED.value)
