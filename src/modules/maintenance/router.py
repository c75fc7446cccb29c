from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import AdminUser
from src.core.database import get_db
from src.core.storage import LocalFileStore, get_file_store
from src.modules.maintenance.schemas import (
    ExpirySweepResult,
    OrphanSweepResult,
    ReconcileResult,
    StorageStats,
)
from src.modules.maintenance.service import MaintenanceService
from src.shared.schemas import SuccessResponse

router = APIRouter(prefix="/admin/maintenance", tags=["Maintenance"])


@router.post("/expired-posts", response_model=SuccessResponse[ExpirySweepResult])
async def sweep_expired_posts(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Delete posts older than the retention window together with their images."""
    service = MaintenanceService(db, store)
    deleted = await service.sweep_expired_posts(user_id=current_user.id)
    return SuccessResponse(
        data=ExpirySweepResult(deleted_posts=deleted),
        message=f"{deleted} expired post(s) deleted",
    )


@router.post("/orphan-files", response_model=SuccessResponse[OrphanSweepResult])
async def sweep_orphan_files(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Delete uploaded files that no post references. Uploads in progress are left alone."""
    service = MaintenanceService(db, store)
    deleted = await service.sweep_orphan_files(user_id=current_user.id)
    return SuccessResponse(
        data=OrphanSweepResult(deleted_files=deleted),
        message=f"{deleted} orphaned file(s) deleted",
    )


@router.post("/reconcile", response_model=SuccessResponse[ReconcileResult])
async def reconcile_images(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Remove references to missing image files from all posts."""
    service = MaintenanceService(db, store)
    updated = await service.reconcile_images(user_id=current_user.id)
    return SuccessResponse(
        data=ReconcileResult(updated_posts=updated),
        message=f"{updated} post(s) updated",
    )


@router.get("/storage", response_model=SuccessResponse[StorageStats])
async def storage_stats(
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    service = MaintenanceService(db, store)
    return SuccessResponse(data=await service.storage_stats())
