import logging

from fastapi import UploadFile
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, create_audit_log
from src.core.auth.models import User
from src.core.auth.password import hash_password, verify_password
from src.core.exceptions import AuthorizationError, NotFoundError
from src.core.storage import LocalFileStore
from src.modules.maintenance.expiry import delete_post_files, retention_cutoff
from src.modules.maintenance.reconciler import ImageReconciler
from src.modules.posts.binder import ImageBinder
from src.modules.posts.models import Comment, Like, Post
from src.modules.posts.repository import PostRepository
from src.modules.posts.schemas import (
    CommentCreate,
    LikeStatus,
    PostCreate,
    PostListFilters,
    PostResponse,
    PostUpdate,
)
from src.modules.uploads.staging import UploadStager

logger = logging.getLogger(__name__)


class PostService:
    """Posts, their images, likes and comments."""

    def __init__(self, session: AsyncSession, store: LocalFileStore):
        self.session = session
        self.store = store
        self.repository = PostRepository(session)
        self.reconciler = ImageReconciler(self.repository, store)

    def to_response(self, post: Post) -> PostResponse:
        """Build the client view of a post, dropping references to missing files."""
        return PostResponse(
            id=post.id,
            title=post.title,
            content=post.content,
            region=post.region,
            subject=post.subject,
            target_grade=post.target_grade,
            image_urls=self.reconciler.filter_existing(post.image_urls),
            author_id=post.author_id,
            author_name=post.author.username if post.author else None,
            likes_count=post.likes_count,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    # Posts

    async def create_post(
        self,
        data: PostCreate,
        files: list[UploadFile],
        author: User,
    ) -> Post:
        """
        Stage the uploads, create the post and promote its images.

        Validation errors reject the request before the post exists. Temp files
        left over after promotion are removed before returning.
        """
        stager = UploadStager(self.store)
        staged = await stager.stage(files)
        try:
            binder = ImageBinder(self.repository, self.store)
            post = await binder.create_post(
                author_id=author.id,
                fields=data.model_dump(),
                staged=staged,
            )
        finally:
            leftover = stager.discard(staged)
            if leftover:
                logger.warning("Removed %d leftover temp file(s)", leftover)
        return post

    async def list_posts(self, filters: PostListFilters | None = None) -> list[PostResponse]:
        """Non-expired posts, newest first, with verified image lists."""
        filters = filters or PostListFilters()
        posts = await self.repository.list_visible(
            retention_cutoff(),
            region=filters.region,
            subject=filters.subject,
            target_grade=filters.target_grade,
        )
        return [self.to_response(post) for post in posts]

    async def get_post(self, post_id: int) -> Post:
        post = await self.repository.get(post_id)
        if not post:
            raise NotFoundError("Post", post_id)
        return post

    async def get_visible_post(self, post_id: int) -> Post:
        """Like get_post, but expired posts are reported as missing."""
        post = await self.get_post(post_id)
        created_at = post.created_at
        cutoff = retention_cutoff()
        if created_at.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=None)
        if created_at < cutoff:
            raise NotFoundError("Post", post_id)
        return post

    def _check_can_modify(self, post: Post, user: User) -> None:
        if post.author_id != user.id and not user.is_admin:
            raise AuthorizationError("Only the author or an administrator can modify this post")

    async def update_post(self, post_id: int, data: PostUpdate, user: User) -> Post:
        post = await self.get_post(post_id)
        self._check_can_modify(post, user)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if changes:
            await self.repository.update(post, **changes)
        return post

    async def delete_post(self, post_id: int, user: User) -> int:
        """Delete a post and its image files. Returns the number of files removed."""
        post = await self.get_post(post_id)
        self._check_can_modify(post, user)

        files_deleted = delete_post_files(self.store, post)
        title = post.title
        author_id = post.author_id
        await self.repository.delete(post)
        logger.info("Post %s deleted by user %s (%d file(s))", post_id, user.id, files_deleted)

        if author_id != user.id:
            await create_audit_log(
                session=self.session,
                action=AuditAction.DELETE,
                entity_type="Post",
                entity_id=post_id,
                user_id=user.id,
                entity_identifier=title[:200],
                new_values={"files_deleted": files_deleted},
            )
        return files_deleted

    # Likes

    async def _has_liked(self, post_id: int, user_ip: str) -> bool:
        result = await self.session.execute(
            select(Like.id).where(Like.post_id == post_id, Like.user_ip == user_ip).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def _likes_count(self, post_id: int) -> int:
        result = await self.session.execute(select(Post.likes_count).where(Post.id == post_id))
        return result.scalar_one()

    async def like_status(self, post_id: int, user_ip: str) -> LikeStatus:
        await self.get_post(post_id)
        return LikeStatus(
            post_id=post_id,
            liked=await self._has_liked(post_id, user_ip),
            likes_count=await self._likes_count(post_id),
        )

    async def like_post(self, post_id: int, user_ip: str) -> LikeStatus:
        await self.get_post(post_id)
        if not await self._has_liked(post_id, user_ip):
            self.session.add(Like(post_id=post_id, user_ip=user_ip))
            await self.session.execute(
                update(Post).where(Post.id == post_id).values(likes_count=Post.likes_count + 1)
            )
            await self.session.flush()
        return await self.like_status(post_id, user_ip)

    async def unlike_post(self, post_id: int, user_ip: str) -> LikeStatus:
        await self.get_post(post_id)
        result = await self.session.execute(
            delete(Like).where(Like.post_id == post_id, Like.user_ip == user_ip)
        )
        if result.rowcount:
            await self.session.execute(
                update(Post)
                .where(Post.id == post_id, Post.likes_count > 0)
                .values(likes_count=Post.likes_count - 1)
            )
            await self.session.flush()
        return await self.like_status(post_id, user_ip)

    # Comments

    async def list_comments(self, post_id: int) -> list[Comment]:
        await self.get_post(post_id)
        result = await self.session.execute(
            select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars().all())

    async def add_comment(self, post_id: int, data: CommentCreate) -> Comment:
        await self.get_post(post_id)
        comment = Comment(
            post_id=post_id,
            author_name=data.author_name.strip(),
            password_hash=hash_password(data.password),
            content=data.content,
        )
        self.session.add(comment)
        await self.session.flush()
        return comment

    async def delete_comment(self, comment_id: int, password: str | None, user: User | None = None) -> None:
        """Delete a comment. Requires its password unless the caller is an administrator."""
        result = await self.session.execute(select(Comment).where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if not comment:
            raise NotFoundError("Comment", comment_id)

        is_admin = user is not None and user.is_admin
        if not is_admin and not verify_password(password or "", comment.password_hash):
            raise AuthorizationError("Incorrect comment password")

        await self.session.delete(comment)
        await self.session.flush()
