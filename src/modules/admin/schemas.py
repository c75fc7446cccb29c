from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from src.shared.schemas import BaseSchema


class UserStatusUpdate(BaseSchema):
    status: Literal["approved", "rejected"]


class BanRequest(BaseSchema):
    reason: str = Field(min_length=1, max_length=1000)


class AuditLogResponse(BaseSchema):
    id: int
    user_id: int | None
    action: str
    entity_type: str
    entity_id: int
    entity_identifier: str | None
    old_values: dict[str, Any] | None
    new_values: dict[str, Any] | None
    comment: str | None
    ip_address: str | None = None
    is_system: bool
    created_at: datetime
