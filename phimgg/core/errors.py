from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class APIError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class MovieValidationError(APIError):
    def __init__(self, slug: str, errors: list[str]):
        super().__init__(
            "validation_failed",
            f"Validation failed: {', '.join(errors)}",
            status_code=422,
            details={"slug": slug, "errors": errors},
        )
        self.errors = errors


class StorageError(APIError):
    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str = "storage_error"):
        super().__init__(code, message, status_code=500, details=details)


class ConflictError(StorageError):
    """A row with the same unique key already exists."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details=details, code="conflict")
        self.status_code = 409


class ImportInProgressError(APIError):
    def __init__(self) -> None:
        super().__init__("import_in_progress", "An import run is already in progress", status_code=409)


def _error_payload(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details or {}}}


def error_response(exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_error_payload(exc.code, exc.message, exc.details))


async def api_error_handler(_: Request, exc: APIError) -> JSONResponse:
    return error_response(exc)


async def unhandled_error_handler(_: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=_error_payload("internal_error", "Unexpected server error", {"type": exc.__class__.__name__}),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
