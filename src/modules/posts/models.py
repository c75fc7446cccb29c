"""Post, Comment and Like models."""

from datetime import datetime

from sqlalchemy import (
    JSON,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base, BaseModel, BigIntPK, timestamp_column


class Post(BaseModel):
    """Academy promotion listing.

    image_urls holds "/uploads/<filename>" entries in display order, or NULL
    when the post has no images. Only the image binder (on creation) and the
    reconciler (by removal) change it.
    """

    __tablename__ = "posts"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    region: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    subject: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    target_grade: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    image_urls: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    author_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("users.id"), nullable=False, index=True
    )
    likes_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Listings and the expiry sweep filter on it
    created_at: Mapped[datetime] = timestamp_column(index=True)

    author: Mapped["User"] = relationship("User", lazy="joined")


class Comment(Base):
    """Anonymous comment, deletable with the password given when posting."""

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_name: Mapped[str] = mapped_column(String(50), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = timestamp_column()


class Like(Base):
    """One like per post and client IP."""

    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("post_id", "user_ip", name="uq_likes_post_ip"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigIntPK, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_ip: Mapped[str] = mapped_column(String(45), nullable=False)
    created_at: Mapped[datetime] = timestamp_column()


from src.core.auth.models import User  # noqa: E402
