from src.core.storage.local import LocalFileStore, get_file_store

__all__ = ["LocalFileStore", "get_file_store"]
