from src.shared.schemas import BaseSchema


class ExpirySweepResult(BaseSchema):
    deleted_posts: int


class OrphanSweepResult(BaseSchema):
    deleted_files: int


class ReconcileResult(BaseSchema):
    updated_posts: int


class StorageStats(BaseSchema):
    """Snapshot of the upload directory against post references."""

    file_count: int
    total_bytes: int
    temp_files: int
    referenced_urls: int
    unreferenced_files: int
    missing_files: int
