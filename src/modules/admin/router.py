from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import list_audit_entries
from src.core.auth.dependencies import AdminUser
from src.core.auth.models import UserStatus
from src.core.auth.schemas import UserResponse
from src.core.database import get_db
from src.core.storage import LocalFileStore, get_file_store
from src.modules.admin.schemas import AuditLogResponse, BanRequest, UserStatusUpdate
from src.modules.admin.service import UserModerationService
from src.modules.posts.service import PostService
from src.shared.schemas import PaginatedResponse, SuccessResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/users", response_model=SuccessResponse[PaginatedResponse[UserResponse]])
async def list_users(
    current_user: AdminUser,
    status: UserStatus | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List accounts, optionally only pending / approved / rejected / banned ones."""
    service = UserModerationService(db)
    users, total = await service.list_users(status=status, page=page, limit=limit)
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[UserResponse.model_validate(u) for u in users],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post("/users/{user_id}/status", response_model=SuccessResponse[UserResponse])
async def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending registration."""
    service = UserModerationService(db)
    user = await service.set_status(user_id, UserStatus(data.status), admin_id=current_user.id)
    return SuccessResponse(data=UserResponse.model_validate(user), message=f"User {user.status}")


@router.post("/users/{user_id}/ban", response_model=SuccessResponse[UserResponse])
async def ban_user(
    user_id: int,
    data: BanRequest,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = UserModerationService(db)
    user = await service.ban(user_id, admin_id=current_user.id, reason=data.reason)
    return SuccessResponse(data=UserResponse.model_validate(user), message="User banned")


@router.post("/users/{user_id}/unban", response_model=SuccessResponse[UserResponse])
async def unban_user(
    user_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    service = UserModerationService(db)
    user = await service.unban(user_id, admin_id=current_user.id)
    return SuccessResponse(data=UserResponse.model_validate(user), message="User unbanned")


@router.delete("/posts/{post_id}", response_model=SuccessResponse[dict])
async def delete_post(
    post_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Remove any post together with its images."""
    service = PostService(db, store)
    files_deleted = await service.delete_post(post_id, current_user)
    return SuccessResponse(data={"files_deleted": files_deleted}, message="Post deleted")


@router.get("/audit-logs", response_model=SuccessResponse[PaginatedResponse[AuditLogResponse]])
async def list_audit_logs(
    current_user: AdminUser,
    action: str | None = Query(None),
    entity_type: str | None = Query(None),
    entity_id: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Audit trail, newest first. System runs (startup, cron) have no user."""
    entries, total = await list_audit_entries(
        db,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        page=page,
        limit=limit,
    )
    return SuccessResponse(
        data=PaginatedResponse.create(
            items=[AuditLogResponse.model_validate(e) for e in entries],
            total=total,
            page=page,
            limit=limit,
        ),
    )
