"""Response envelope shared by every endpoint.

Success: ``{"success": true, "data": ..., "message": ...}``
Failure: ``{"success": false, "data": null, "message": ..., "errors": [{"field", "message"}]}``
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base Pydantic schema; reads ORM objects directly."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class ErrorDetail(BaseSchema):
    """One problem, optionally tied to a request field such as "images"."""

    field: str | None = None
    message: str


class SuccessResponse(BaseSchema, Generic[T]):
    success: bool = True
    data: T
    message: str | None = None


class ErrorResponse(BaseSchema):
    success: bool = False
    data: None = None
    message: str
    errors: list[ErrorDetail] = []

    @classmethod
    def single(cls, message: str, field: str | None = None) -> "ErrorResponse":
        return cls(message=message, errors=[ErrorDetail(field=field, message=message)])


class PaginatedResponse(BaseSchema, Generic[T]):
    items: list[T]
    total: int
    page: int
    limit: int
    pages: int

    @classmethod
    def create(cls, items: list[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        pages = (total + limit - 1) // limit if limit > 0 else 0
        return cls(items=items, total=total, page=page, limit=limit, pages=pages)
