"""Entry points for storage maintenance, shared by the admin API, startup and scripts."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, create_audit_log
from src.core.storage import LocalFileStore
from src.modules.maintenance.expiry import ExpirySweeper
from src.modules.maintenance.reconciler import ImageReconciler
from src.modules.maintenance.schemas import StorageStats
from src.modules.posts.repository import PostRepository
from src.modules.uploads.staging import is_temp_filename

logger = logging.getLogger(__name__)


class MaintenanceService:
    def __init__(self, session: AsyncSession, store: LocalFileStore):
        self.session = session
        self.store = store
        self.repository = PostRepository(session)
        self.reconciler = ImageReconciler(self.repository, store)
        self.sweeper = ExpirySweeper(self.repository, store)

    async def _audit(self, action: AuditAction, user_id: int | None, values: dict) -> None:
        await create_audit_log(
            session=self.session,
            action=action,
            entity_type="Storage",
            entity_id=0,
            user_id=user_id,
            new_values=values,
        )

    async def sweep_expired_posts(self, user_id: int | None = None) -> int:
        deleted = await self.sweeper.sweep_expired()
        await self._audit(AuditAction.SWEEP_EXPIRED, user_id, {"deleted_posts": deleted})
        return deleted

    async def sweep_orphan_files(self, user_id: int | None = None) -> int:
        deleted = await self.reconciler.sweep_orphans()
        await self._audit(AuditAction.SWEEP_ORPHANS, user_id, {"deleted_files": deleted})
        return deleted

    async def reconcile_images(self, user_id: int | None = None) -> int:
        updated = await self.reconciler.reconcile_all()
        if updated or user_id is not None:
            await self._audit(AuditAction.RECONCILE_IMAGES, user_id, {"updated_posts": updated})
        return updated

    async def storage_stats(self) -> StorageStats:
        files = self.store.list_files()
        referenced = await self.repository.referenced_urls()
        temp_files = [f for f in files if is_temp_filename(f)]
        unreferenced = [
            f for f in files if not is_temp_filename(f) and self.store.url_for(f) not in referenced
        ]
        total_bytes = 0
        for filename in files:
            stat = self.store.stat(filename)
            if stat is not None:
                total_bytes += stat.st_size
        missing = [url for url in referenced if not self.store.url_exists(url)]
        return StorageStats(
            file_count=len(files),
            total_bytes=total_bytes,
            temp_files=len(temp_files),
            referenced_urls=len(referenced),
            unreferenced_files=len(unreferenced),
            missing_files=len(missing),
        )


async def reconcile_on_startup(session: AsyncSession, store: LocalFileStore) -> int:
    """One-time startup pass: prepare the upload directory and drop references to missing files."""
    store.ensure_directory()
    updated = await MaintenanceService(session, store).reconcile_images()
    logger.info("Startup image reconciliation updated %d post(s)", updated)
    return updated
