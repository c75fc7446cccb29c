from datetime import datetime, timezone
from typing import Any

from sqlalchemy import BigInteger, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BigInteger for PostgreSQL, Integer for SQLite (required for autoincrement)
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_column(*, on_update: bool = False, index: bool = False) -> Any:
    """
    Timezone-aware timestamp filled in Python at flush time.

    The value is set on the instance, so reading it after a flush never
    triggers a lazy load in async code. The server default covers rows
    written outside the ORM (migrations, manual SQL).
    """
    return mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow if on_update else None,
        nullable=False,
        index=index,
    )


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class BaseModel(Base):
    """Base model with id, created_at and updated_at."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = timestamp_column()
    updated_at: Mapped[datetime] = timestamp_column(on_update=True)
