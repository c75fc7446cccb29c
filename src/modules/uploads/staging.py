"""Validate incoming image uploads and stage them as temp files."""

import logging
import uuid
from dataclasses import dataclass
from pathlib import PurePath

from fastapi import UploadFile

from src.core.config import settings
from src.core.exceptions import FileTooLargeError, InvalidFileTypeError, TooManyFilesError
from src.core.storage import LocalFileStore

logger = logging.getLogger(__name__)

TEMP_PREFIX = "temp_"


def is_temp_filename(filename: str) -> bool:
    return filename.startswith(TEMP_PREFIX)


@dataclass(frozen=True)
class StagedUpload:
    """An upload that passed validation and sits in the store under a temp name."""

    original_name: str
    content_type: str
    size_bytes: int
    temp_filename: str
    extension: str


class UploadStager:
    """
    Validates a batch of uploaded images and writes each to
    ``temp_<uuid4><ext>`` in the file store.

    The client filename is only used to read the extension; it never
    becomes part of a stored name.
    """

    def __init__(
        self,
        store: LocalFileStore,
        *,
        allowed_extensions: list[str] | None = None,
        max_file_size: int | None = None,
        max_files: int | None = None,
    ):
        self.store = store
        self.allowed_extensions = set(allowed_extensions or settings.allowed_image_extensions)
        self.max_file_size = max_file_size if max_file_size is not None else settings.max_upload_size
        self.max_files = max_files if max_files is not None else settings.max_files_per_post

    def extension_of(self, filename: str | None) -> str:
        """Lowercased extension including the dot, or "" when there is none."""
        if not filename:
            return ""
        return PurePath(filename).suffix.lower()

    def check_count(self, count: int) -> None:
        if count > self.max_files:
            raise TooManyFilesError(count, self.max_files)

    def check_type(self, filename: str | None, content_type: str | None) -> str:
        """Validate extension and declared MIME type. Returns the normalised extension."""
        ext = self.extension_of(filename)
        if ext not in self.allowed_extensions:
            allowed = ", ".join(sorted(e.lstrip(".") for e in self.allowed_extensions))
            raise InvalidFileTypeError(filename, f"allowed extensions are {allowed}")
        if not (content_type or "").lower().startswith("image/"):
            raise InvalidFileTypeError(filename, f"content type must be image/*, got {content_type or 'none'}")
        return ext

    def check_size(self, filename: str | None, size: int) -> None:
        if size > self.max_file_size:
            raise FileTooLargeError(filename, self.max_file_size)

    async def stage(self, files: list[UploadFile]) -> list[StagedUpload]:
        """
        Validate and stage a batch. Any invalid file rejects the whole batch;
        temp files already written for it are removed before the error propagates.
        """
        files = [f for f in files if f is not None and f.filename]
        self.check_count(len(files))

        extensions = [self.check_type(f.filename, f.content_type) for f in files]

        self.store.ensure_directory()
        staged: list[StagedUpload] = []
        try:
            for file, ext in zip(files, extensions):
                # Read one byte past the limit so oversized files are detected without reading them whole
                content = await file.read(self.max_file_size + 1)
                self.check_size(file.filename, len(content))

                temp_filename = f"{TEMP_PREFIX}{uuid.uuid4()}{ext}"
                self.store.write(temp_filename, content)
                staged.append(
                    StagedUpload(
                        original_name=file.filename,
                        content_type=file.content_type or "",
                        size_bytes=len(content),
                        temp_filename=temp_filename,
                        extension=ext,
                    )
                )
        except Exception:
            self.discard(staged)
            raise

        if staged:
            logger.info("Staged %d upload(s): %s", len(staged), [s.temp_filename for s in staged])
        return staged

    def discard(self, staged: list[StagedUpload]) -> int:
        """Remove any temp files of a batch that are still on disk. Returns the number removed."""
        removed = 0
        for item in staged:
            try:
                if self.store.delete(item.temp_filename):
                    removed += 1
            except OSError as e:
                logger.warning("Could not remove temp file %s: %s", item.temp_filename, e)
        return removed
