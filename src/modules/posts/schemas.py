from datetime import datetime

from pydantic import Field, field_validator

from src.core.auth.password import check_password_length
from src.shared.schemas import BaseSchema


class PostCreate(BaseSchema):
    """Text fields of a new post. Images arrive as multipart files alongside."""

    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    region: str = Field(min_length=1, max_length=100)
    subject: str = Field(min_length=1, max_length=100)
    target_grade: str = Field(min_length=1, max_length=100)

    @field_validator("title", "region", "subject", "target_grade")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value must not be blank")
        return v


class PostUpdate(BaseSchema):
    """Editable text fields. The image list is not editable."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    region: str | None = Field(default=None, min_length=1, max_length=100)
    subject: str | None = Field(default=None, min_length=1, max_length=100)
    target_grade: str | None = Field(default=None, min_length=1, max_length=100)


class PostListFilters(BaseSchema):
    region: str | None = None
    subject: str | None = None
    target_grade: str | None = None


class PostResponse(BaseSchema):
    """Post as returned to clients; image_urls only lists files that exist."""

    id: int
    title: str
    content: str
    region: str
    subject: str
    target_grade: str
    image_urls: list[str] = []
    author_id: int
    author_name: str | None = None
    likes_count: int
    created_at: datetime
    updated_at: datetime


class CommentCreate(BaseSchema):
    author_name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=4, max_length=72)
    content: str = Field(min_length=1, max_length=1000)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class CommentDelete(BaseSchema):
    password: str | None = None


class CommentResponse(BaseSchema):
    id: int
    post_id: int
    author_name: str
    content: str
    created_at: datetime


class LikeStatus(BaseSchema):
    post_id: int
    liked: bool
    likes_count: int


class FileExistsResponse(BaseSchema):
    filename: str
    exists: bool
