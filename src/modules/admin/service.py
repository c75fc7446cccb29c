from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, create_audit_log
from src.core.auth.models import User, UserStatus
from src.core.database.base import utcnow
from src.core.exceptions import NotFoundError, ValidationError


class UserModerationService:
    """Administrator operations on academy accounts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: int) -> User:
        result = await self.session.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(
        self,
        status: UserStatus | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[User], int]:
        """
        List users, newest first.

        Returns:
            Tuple of (users list, total count)
        """
        stmt = select(User)
        count_stmt = select(func.count(User.id))
        if status is not None:
            stmt = stmt.where(User.status == status.value)
            count_stmt = count_stmt.where(User.status == status.value)

        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        stmt = stmt.offset((page - 1) * limit).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def set_status(self, user_id: int, status: UserStatus, admin_id: int) -> User:
        """Approve or reject a registration."""
        if status not in (UserStatus.APPROVED, UserStatus.REJECTED):
            raise ValidationError("Status must be approved or rejected", field="status")

        user = await self.get_user(user_id)
        old_status = user.status
        user.status = status.value
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.APPROVE if status == UserStatus.APPROVED else AuditAction.REJECT,
            entity_type="User",
            entity_id=user.id,
            user_id=admin_id,
            entity_identifier=user.username,
            old_values={"status": old_status},
            new_values={"status": user.status},
        )
        return user

    async def ban(self, user_id: int, admin_id: int, reason: str) -> User:
        user = await self.get_user(user_id)
        if user.id == admin_id:
            raise ValidationError("Administrators cannot ban themselves")
        if user.is_admin:
            raise ValidationError("Administrator accounts cannot be banned")

        old_status = user.status
        user.status = UserStatus.BANNED.value
        user.banned_at = utcnow()
        user.banned_by_id = admin_id
        user.ban_reason = reason
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.BAN,
            entity_type="User",
            entity_id=user.id,
            user_id=admin_id,
            entity_identifier=user.username,
            old_values={"status": old_status},
            new_values={"status": user.status},
            comment=reason,
        )
        return user

    async def unban(self, user_id: int, admin_id: int) -> User:
        """Lift a ban; the account goes back to approved."""
        user = await self.get_user(user_id)
        if not user.is_banned:
            raise ValidationError("User is not banned")

        user.status = UserStatus.APPROVED.value
        user.banned_at = None
        user.banned_by_id = None
        user.ban_reason = None
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.UNBAN,
            entity_type="User",
            entity_id=user.id,
            user_id=admin_id,
            entity_identifier=user.username,
            old_values={"status": UserStatus.BANNED.value},
            new_values={"status": user.status},
        )
        return user
