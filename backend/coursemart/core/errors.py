from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class CourseMartError(Exception):
    """Base class for domain errors raised by the service layer."""


class NotFoundError(CourseMartError):
    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)
        self.message = message


class CourseValidationError(CourseMartError):
    """
    Form-field errors collected while validating a course draft.

    `errors` maps a field name (e.g. "image", "category_id") to a message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("Validation failed")
        self.errors = dict(errors)


class StorageError(CourseMartError):
    def __init__(self, message: str = "A problem occurred while recording") -> None:
        super().__init__(message)
        self.message = message


class FileTooLargeError(StorageError):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File exceeds the maximum size of {max_bytes} bytes")
        self.max_bytes = max_bytes


class FileNotFoundInStoreError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("File not found")


class AuthenticationError(CourseMartError):
    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)
        self.message = message


class ConflictError(CourseMartError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=status.HTTP_404_NOT_FOUND)

    @app.exception_handler(AuthenticationError)
    async def _unauthenticated(_request: Request, exc: AuthenticationError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=status.HTTP_401_UNAUTHORIZED)

    @app.exception_handler(ConflictError)
    async def _conflict(_request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=status.HTTP_409_CONFLICT)

    @app.exception_handler(CourseValidationError)
    async def _validation(_request: Request, exc: CourseValidationError) -> JSONResponse:
        return JSONResponse(
            {"detail": "Validation failed", "errors": exc.errors},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(FileTooLargeError)
    async def _too_large(_request: Request, exc: FileTooLargeError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    @app.exception_handler(StorageError)
    async def _storage(_request: Request, exc: StorageError) -> JSONResponse:
        return JSONResponse({"detail": exc.message}, status_code=status.HTTP_502_BAD_GATEWAY)
