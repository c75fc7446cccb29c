from fastapi import APIRouter, Depends

from src.core.storage import LocalFileStore, get_file_store
from src.modules.posts.schemas import FileExistsResponse
from src.shared.schemas import SuccessResponse

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.get("/{filename}/exists", response_model=SuccessResponse[FileExistsResponse])
async def file_exists(
    filename: str,
    store: LocalFileStore = Depends(get_file_store),
):
    """Check whether an uploaded image is still on disk before displaying it."""
    return SuccessResponse(data=FileExistsResponse(filename=filename, exists=store.exists(filename)))
