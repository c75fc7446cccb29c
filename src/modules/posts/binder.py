"""Promote staged uploads to permanent files owned by a post."""

import logging
import uuid
from typing import Any

from src.core.storage import LocalFileStore
from src.core.storage.local import FILE_MODE
from src.modules.posts.models import Post
from src.modules.posts.repository import PostRepository
from src.modules.uploads.staging import StagedUpload

logger = logging.getLogger(__name__)


def permanent_filename(post_id: int, index: int, extension: str) -> str:
    """post<id>_<index>_<uuid4><ext>, index is 1-based within the upload batch."""
    return f"post{post_id}_{index}_{uuid.uuid4()}{extension}"


class ImageBinder:
    """
    Creates a post and binds its staged images to it.

    The post row is created first because permanent filenames embed the post
    id. Each staged file is then copied to its permanent name, verified and
    the temp file removed. A file that fails any step is logged and skipped;
    the post keeps whatever images were promoted.
    """

    def __init__(self, repository: PostRepository, store: LocalFileStore):
        self.repository = repository
        self.store = store

    async def create_post(
        self,
        author_id: int,
        fields: dict[str, Any],
        staged: list[StagedUpload],
    ) -> Post:
        post = await self.repository.create(author_id=author_id, **fields)

        image_urls = self.promote_all(post.id, staged)
        if image_urls:
            await self.repository.set_image_urls(post, image_urls)

        logger.info(
            "Created post %s with %d/%d image(s)", post.id, len(image_urls), len(staged)
        )
        return post

    def promote_all(self, post_id: int, staged: list[StagedUpload]) -> list[str]:
        image_urls: list[str] = []
        for index, item in enumerate(staged, start=1):
            url = self.promote(post_id, index, item)
            if url:
                image_urls.append(url)
        return image_urls

    def promote(self, post_id: int, index: int, item: StagedUpload) -> str | None:
        """Copy one staged file to its permanent name. Returns its URL, or None if skipped."""
        if not self.store.exists(item.temp_filename):
            logger.warning(
                "Temp file %s missing for post %s image %d, skipping",
                item.temp_filename,
                post_id,
                index,
            )
            return None

        filename = permanent_filename(post_id, index, item.extension)
        try:
            self.store.copy(item.temp_filename, filename)
            if not self.store.exists(filename) or self.store.size(filename) == 0:
                raise OSError(f"copy of {item.temp_filename} to {filename} is missing or empty")
            self.store.chmod(filename, FILE_MODE)
            self.store.delete(item.temp_filename)
        except OSError as e:
            logger.warning("Failed to promote %s for post %s: %s", item.temp_filename, post_id, e)
            self._remove_quietly(filename)
            self._remove_quietly(item.temp_filename)
            return None

        logger.info("Promoted %s -> %s", item.temp_filename, filename)
        return self.store.url_for(filename)

    def _remove_quietly(self, filename: str) -> None:
        try:
            self.store.delete(filename)
        except OSError as e:
            logger.warning("Could not remove %s: %s", filename, e)
