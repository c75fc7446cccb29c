"""Database access for posts. The image_urls column is the image reference store."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.posts.models import Comment, Like, Post


class PostRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, author_id: int, **fields: Any) -> Post:
        post = Post(author_id=author_id, image_urls=None, **fields)
        self.session.add(post)
        await self.session.flush()
        await self.session.refresh(post)
        return post

    async def get(self, post_id: int) -> Post | None:
        result = await self.session.execute(select(Post).where(Post.id == post_id))
        return result.scalar_one_or_none()

    async def list_visible(
        self,
        cutoff: datetime,
        region: str | None = None,
        subject: str | None = None,
        target_grade: str | None = None,
    ) -> list[Post]:
        """Posts created at or after cutoff, newest first."""
        stmt = select(Post).where(Post.created_at >= cutoff)
        if region:
            stmt = stmt.where(Post.region == region)
        if subject:
            stmt = stmt.where(Post.subject == subject)
        if target_grade:
            stmt = stmt.where(Post.target_grade == target_grade)
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self) -> list[Post]:
        result = await self.session.execute(select(Post).order_by(Post.id))
        return list(result.scalars().all())

    async def list_created_before(self, cutoff: datetime) -> list[Post]:
        result = await self.session.execute(
            select(Post).where(Post.created_at < cutoff).order_by(Post.id)
        )
        return list(result.scalars().all())

    async def update(self, post: Post, **fields: Any) -> Post:
        for key, value in fields.items():
            setattr(post, key, value)
        await self.session.flush()
        return post

    async def set_image_urls(self, post: Post, image_urls: list[str] | None) -> Post:
        # Assign a new list so the JSON column is marked dirty
        return await self.update(post, image_urls=list(image_urls) if image_urls else None)

    async def delete(self, post: Post) -> None:
        """Delete a post with its comments and likes."""
        await self.session.execute(delete(Comment).where(Comment.post_id == post.id))
        await self.session.execute(delete(Like).where(Like.post_id == post.id))
        await self.session.delete(post)
        await self.session.flush()

    async def referenced_urls(self) -> set[str]:
        """Every image URL referenced by any post, expired ones included."""
        result = await self.session.execute(select(Post.image_urls))
        referenced: set[str] = set()
        for urls in result.scalars().all():
            referenced.update(urls or [])
        return referenced
