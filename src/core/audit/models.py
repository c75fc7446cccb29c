from datetime import datetime

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base, BigIntPK, timestamp_column

JSONValues = JSON().with_variant(JSONB, "postgresql")


class AuditLog(Base):
    """Trail of account moderation, post removal and storage maintenance actions."""

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # NULL for startup reconciliation and cron sweeps
    user_id: Mapped[int | None] = mapped_column(BigIntPK, nullable=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    # "User", "Post" or "Storage"; entity_id is 0 for storage-wide runs
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_id: Mapped[int] = mapped_column(BigIntPK, nullable=False)
    entity_identifier: Mapped[str | None] = mapped_column(String(200), nullable=True)

    old_values: Mapped[dict | None] = mapped_column(JSONValues, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSONValues, nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = timestamp_column(index=True)

    @property
    def is_system(self) -> bool:
        return self.user_id is None
