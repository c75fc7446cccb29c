"""Local file store for uploaded post images.

Every component that reads or writes files in the upload directory goes
through a ``LocalFileStore`` instance, so the directory layout and filename
rules live in one place.
"""

import logging
import os
import shutil
from pathlib import Path

from src.core.config import settings

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o755
FILE_MODE = 0o644


class LocalFileStore:
    """Flat directory of files addressed by bare filename."""

    def __init__(self, root: str | Path, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    @staticmethod
    def is_safe_name(filename: str | None) -> bool:
        """True when filename is a bare name that stays inside the store."""
        if not filename or filename in (".", ".."):
            return False
        if "/" in filename or "\\" in filename or "\x00" in filename:
            return False
        return ".." not in filename

    def path_for(self, filename: str) -> Path:
        if not self.is_safe_name(filename):
            raise ValueError(f"Invalid file name: {filename!r}")
        return self.root / filename

    def ensure_directory(self) -> None:
        """Create the upload directory if missing and set its permissions."""
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created upload directory: %s", self.root)
        try:
            os.chmod(self.root, DIRECTORY_MODE)
        except OSError as e:
            logger.warning("Could not set permissions on upload directory %s: %s", self.root, e)

    # URL mapping

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    def filename_from_url(self, url: str | None) -> str | None:
        """Return the stored filename for a public URL, or None if it is not one of ours."""
        if not url:
            return None
        prefix = f"{self.url_prefix}/"
        name = url[len(prefix):] if url.startswith(prefix) else url
        return name if self.is_safe_name(name) else None

    # File operations

    def exists(self, filename: str | None) -> bool:
        if not self.is_safe_name(filename):
            return False
        return (self.root / filename).is_file()

    def url_exists(self, url: str | None) -> bool:
        return self.exists(self.filename_from_url(url))

    def write(self, filename: str, content: bytes) -> Path:
        self.ensure_directory()
        path = self.path_for(filename)
        path.write_bytes(content)
        return path

    def copy(self, source: str, destination: str) -> Path:
        self.ensure_directory()
        dst = self.path_for(destination)
        shutil.copyfile(self.path_for(source), dst)
        return dst

    def delete(self, filename: str) -> bool:
        """Delete a file. Returns False if it did not exist."""
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def size(self, filename: str) -> int:
        return self.path_for(filename).stat().st_size

    def stat(self, filename: str) -> os.stat_result | None:
        if not self.exists(filename):
            return None
        return self.path_for(filename).stat()

    def chmod(self, filename: str, mode: int = FILE_MODE) -> None:
        os.chmod(self.path_for(filename), mode)

    def list_files(self) -> list[str]:
        """Names of regular files in the store, sorted."""
        if not self.root.exists():
            return []
        return sorted(entry.name for entry in self.root.iterdir() if entry.is_file())


def get_file_store() -> LocalFileStore:
    """Dependency returning the store for the configured upload directory."""
    return LocalFileStore(settings.upload_dir, settings.upload_url_prefix)
