from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth.dependencies import ApprovedUser, CurrentUser, OptionalUser
from src.core.database import get_db
from src.core.exceptions import ValidationError
from src.core.storage import LocalFileStore, get_file_store
from src.modules.posts.schemas import (
    CommentCreate,
    CommentDelete,
    CommentResponse,
    LikeStatus,
    PostCreate,
    PostListFilters,
    PostResponse,
    PostUpdate,
)
from src.modules.posts.service import PostService
from src.shared.schemas import SuccessResponse

router = APIRouter(prefix="/posts", tags=["Posts"])
comments_router = APIRouter(prefix="/comments", tags=["Posts"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.get("", response_model=SuccessResponse[list[PostResponse]])
async def list_posts(
    region: str | None = Query(None),
    subject: str | None = Query(None),
    target_grade: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """List posts from the retention window, newest first. Filters are exact matches."""
    service = PostService(db, store)
    posts = await service.list_posts(
        PostListFilters(region=region, subject=subject, target_grade=target_grade)
    )
    return SuccessResponse(data=posts)


@router.post("", response_model=SuccessResponse[PostResponse], status_code=201)
async def create_post(
    current_user: ApprovedUser,
    title: str = Form(...),
    content: str = Form(...),
    region: str = Form(...),
    subject: str = Form(...),
    target_grade: str = Form(...),
    images: Annotated[list[UploadFile] | None, File()] = None,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """
    Create a post with up to 20 images (jpg, jpeg, png, gif, webp; 5 MB each).

    Only approved accounts can post. Images that fail to be stored are dropped
    from the post instead of failing the request.
    """
    try:
        data = PostCreate(
            title=title,
            content=content,
            region=region,
            subject=subject,
            target_grade=target_grade,
        )
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error.get("loc", ())) or None
        raise ValidationError(error.get("msg", "Invalid post data"), field=field)
    service = PostService(db, store)
    post = await service.create_post(data, images or [], current_user)
    return SuccessResponse(data=service.to_response(post), message="Post created")


@router.get("/{post_id}", response_model=SuccessResponse[PostResponse])
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    service = PostService(db, store)
    post = await service.get_visible_post(post_id)
    return SuccessResponse(data=service.to_response(post))


@router.patch("/{post_id}", response_model=SuccessResponse[PostResponse])
async def update_post(
    post_id: int,
    data: PostUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Edit the text of a post. Author or administrator only."""
    service = PostService(db, store)
    post = await service.update_post(post_id, data, current_user)
    return SuccessResponse(data=service.to_response(post), message="Post updated")


@router.delete("/{post_id}", response_model=SuccessResponse[dict])
async def delete_post(
    post_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Delete a post and its images. Author or administrator only."""
    service = PostService(db, store)
    files_deleted = await service.delete_post(post_id, current_user)
    return SuccessResponse(data={"files_deleted": files_deleted}, message="Post deleted")


@router.get("/{post_id}/like", response_model=SuccessResponse[LikeStatus])
async def get_like_status(
    post_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    service = PostService(db, store)
    return SuccessResponse(data=await service.like_status(post_id, _client_ip(request)))


@router.post("/{post_id}/like", response_model=SuccessResponse[LikeStatus])
async def like_post(
    post_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Like a post. One like per client IP; repeated likes are ignored."""
    service = PostService(db, store)
    return SuccessResponse(data=await service.like_post(post_id, _client_ip(request)))


@router.delete("/{post_id}/like", response_model=SuccessResponse[LikeStatus])
async def unlike_post(
    post_id: int,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    service = PostService(db, store)
    return SuccessResponse(data=await service.unlike_post(post_id, _client_ip(request)))


@router.get("/{post_id}/comments", response_model=SuccessResponse[list[CommentResponse]])
async def list_comments(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    service = PostService(db, store)
    comments = await service.list_comments(post_id)
    return SuccessResponse(data=[CommentResponse.model_validate(c) for c in comments])


@router.post("/{post_id}/comments", response_model=SuccessResponse[CommentResponse], status_code=201)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Add an anonymous comment. The password is needed to delete it later."""
    service = PostService(db, store)
    comment = await service.add_comment(post_id, data)
    return SuccessResponse(data=CommentResponse.model_validate(comment), message="Comment added")


@comments_router.delete("/{comment_id}", response_model=SuccessResponse[None])
async def delete_comment(
    comment_id: int,
    data: CommentDelete,
    current_user: OptionalUser,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
):
    """Delete a comment with its password. Administrators need no password."""
    service = PostService(db, store)
    await service.delete_comment(comment_id, data.password, current_user)
    return SuccessResponse(data=None, message="Comment deleted")
