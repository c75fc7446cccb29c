"""Keep post image references and the upload directory consistent."""

import logging

from src.core.storage import LocalFileStore
from src.modules.posts.repository import PostRepository
from src.modules.uploads.staging import is_temp_filename

logger = logging.getLogger(__name__)


class ImageReconciler:
    """
    Cross-checks post image_urls against the files on disk.

    - filter_existing: read path, drops references to missing files without
      writing anything back.
    - reconcile_all: startup pass, persists the filtered lists.
    - sweep_orphans: deletes files no post references. Temp files belong to
      uploads still in flight and are never touched.
    """

    def __init__(self, repository: PostRepository, store: LocalFileStore):
        self.repository = repository
        self.store = store

    def filter_existing(self, image_urls: list[str] | None) -> list[str]:
        if not image_urls:
            return []
        return [url for url in image_urls if self.store.url_exists(url)]

    async def reconcile_all(self) -> int:
        """Drop missing files from every post. Returns the number of posts updated."""
        updated = 0
        for post in await self.repository.list_all():
            if not post.image_urls:
                continue
            existing = self.filter_existing(post.image_urls)
            if len(existing) == len(post.image_urls):
                continue
            for url in post.image_urls:
                if url not in existing:
                    logger.info("Missing image file %s, removing from post %s", url, post.id)
            before = len(post.image_urls)
            await self.repository.set_image_urls(post, existing or None)
            logger.info("Updated post %s: %d -> %d images", post.id, before, len(existing))
            updated += 1
        return updated

    async def sweep_orphans(self, referenced: set[str] | None = None) -> int:
        """Delete unreferenced files from the upload directory. Returns the number deleted."""
        if referenced is None:
            referenced = await self.repository.referenced_urls()

        deleted = 0
        for filename in self.store.list_files():
            if is_temp_filename(filename):
                continue
            if self.store.url_for(filename) in referenced:
                continue
            try:
                if self.store.delete(filename):
                    deleted += 1
                    logger.info("Cleaned up orphaned file: %s", filename)
            except (OSError, ValueError) as e:
                logger.warning("Could not delete orphaned file %s: %s", filename, e)

        logger.info("Cleaned up %d orphaned files", deleted)
        return deleted
