from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import AppException, AuthenticationError
from src.shared.schemas import ErrorDetail, ErrorResponse


def _json(status_code: int, response: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump(), headers=headers)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render application exceptions; upload errors carry field="images"."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return _json(exc.status_code, ErrorResponse.single(exc.message, exc.details.get("field")), headers)


def _format_validation_errors(errors: list[dict]) -> list[ErrorDetail]:
    details: list[ErrorDetail] = []
    for error in errors:
        loc = error.get("loc", ())
        # "body" / "query" / "path" prefixes are noise for clients
        if loc and loc[0] in ("body", "query", "path", "form"):
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) if loc else None
        details.append(ErrorDetail(field=field, message=error.get("msg", "Invalid value")))
    return details


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    response = ErrorResponse(
        message="Validation error",
        errors=_format_validation_errors(exc.errors()),
    )
    return _json(422, response)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "HTTP error"
    return _json(exc.status_code, ErrorResponse.single(message), getattr(exc, "headers", None))
