from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    InvalidFileTypeError,
    FileTooLargeError,
    TooManyFilesError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "DuplicateError",
    "InvalidFileTypeError",
    "FileTooLargeError",
    "TooManyFilesError",
]
