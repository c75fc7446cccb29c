"""Time-based retirement of posts and their image files."""

import logging
from datetime import datetime, timedelta

from src.core.config import settings
from src.core.database.base import utcnow
from src.core.storage import LocalFileStore
from src.modules.posts.models import Post
from src.modules.posts.repository import PostRepository

logger = logging.getLogger(__name__)


def retention_cutoff(now: datetime | None = None, days: int | None = None) -> datetime:
    """Posts created before this moment are expired."""
    if days is None:
        days = settings.post_retention_days
    return (now or utcnow()) - timedelta(days=days)


def delete_post_files(store: LocalFileStore, post: Post) -> int:
    """Best-effort removal of a post's image files. Returns the number of files deleted."""
    deleted = 0
    for url in post.image_urls or []:
        filename = store.filename_from_url(url)
        if filename is None:
            logger.warning("Post %s references unrecognised image URL %s", post.id, url)
            continue
        try:
            if store.delete(filename):
                deleted += 1
        except OSError as e:
            logger.warning("Could not delete image %s of post %s: %s", filename, post.id, e)
    return deleted


class ExpirySweeper:
    """
    Listings hide expired posts through the cutoff predicate; sweep_expired
    physically removes them. Files go first, the row is deleted regardless
    of how file deletion went.
    """

    def __init__(self, repository: PostRepository, store: LocalFileStore, retention_days: int | None = None):
        self.repository = repository
        self.store = store
        self.retention_days = retention_days

    def cutoff(self, now: datetime | None = None) -> datetime:
        return retention_cutoff(now, self.retention_days)

    async def find_expired(self, now: datetime | None = None) -> list[Post]:
        return await self.repository.list_created_before(self.cutoff(now))

    async def sweep_expired(self, now: datetime | None = None) -> int:
        """Delete every expired post and its files. Returns the number of posts deleted."""
        posts = await self.find_expired(now)
        for post in posts:
            files_deleted = delete_post_files(self.store, post)
            await self.repository.delete(post)
            logger.info("Deleted expired post %s (%d file(s))", post.id, files_deleted)

        if posts:
            logger.info("Expiry sweep removed %d post(s)", len(posts))
        return len(posts)
