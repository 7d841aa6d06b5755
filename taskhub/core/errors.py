"""
Error taxonomy and the exception handlers that render it.

Every error leaves the API in the same envelope:
``{"success": false, "error": {"code", "message", "errors"?}}``.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskhub.utils.response import error_body

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Operational error: its message is safe to show to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "APP_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ValidationError(AppError):
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


def _error_response(status_code: int, code: str, message: str, errors: Optional[list] = None, headers=None):
    return JSONResponse(status_code=status_code, content=error_body(code, message, errors), headers=headers)


def format_validation_errors(errors) -> list:
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append({
            "field": loc[-1] if loc else "body",
            "message": err.get("msg", "Invalid value"),
        })
    return formatted


def translate_integrity_error(exc: IntegrityError) -> AppError:
    msg = str(getattr(exc, "orig", exc)).lower()
    if "unique" in msg or "duplicate key" in msg:
        return ConflictError("A record with this value already exists", code="UNIQUE_CONSTRAINT")
    if "foreign key" in msg:
        return BadRequestError("Related record not found", code="FOREIGN_KEY_CONSTRAINT")
    return BadRequestError("Database error occurred", code="DATABASE_ERROR")


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.code)
        errors = exc.errors if isinstance(exc, ValidationError) else None
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
        return _error_response(exc.status_code, exc.code, exc.message, errors, headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        logger.info("Validation failed on %s %s: %s", request.method, request.url.path, errors)
        return _error_response(
            422, ValidationError.code, "Validation failed", errors
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        translated = translate_integrity_error(exc)
        return _error_response(translated.status_code, translated.code, translated.message)

    @app.exception_handler(NoResultFound)
    async def no_result_handler(request: Request, exc: NoResultFound):
        return _error_response(status.HTTP_404_NOT_FOUND, "NOT_FOUND", "Record not found")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _error_response(
                exc.status_code, "ROUTE_NOT_FOUND", f"Route {request.method} {request.url.path} not found"
            )
        return _error_response(exc.status_code, "HTTP_ERROR", str(exc.detail), headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal Server Error")
