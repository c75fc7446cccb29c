from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id={identifier} not found"
        super().__init__(message=message, status_code=404)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None, status_code: int = 422):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=status_code, details=details)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, status_code=401)


class AuthorizationError(AppException):
    """Not authorized to perform action."""

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message=message, status_code=403)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} with {field}={value} already exists"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class InvalidFileTypeError(ValidationError):
    """Uploaded file is not an allowed image."""

    def __init__(self, filename: str | None, reason: str):
        super().__init__(f"Invalid file type for '{filename or ''}': {reason}", field="images")


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size ceiling."""

    def __init__(self, filename: str | None, max_size: int):
        super().__init__(
            f"File '{filename or ''}' exceeds the maximum size of {max_size // (1024 * 1024)} MB",
            field="images",
            status_code=413,
        )


class TooManyFilesError(ValidationError):
    """Upload batch exceeds the per-post file count."""

    def __init__(self, count: int, max_files: int):
        super().__init__(
            f"At most {max_files} images can be attached to a post, got {count}",
            field="images",
        )
