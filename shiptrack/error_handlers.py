"""
HTTP-facing exceptions and the handlers that render them.

Every error body has the same shape: ``{"error", "details", "path"}``.
Storage failures reach this layer already classified (see
``api.deps.unwrap``); the SQLAlchemy handler only covers the secondary
resources that talk to the session directly.
"""
from typing import Any, Optional, Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from shiptrack.logging_config import get_logger

logger = get_logger("errors")


class AppException(Exception):
    """Rendered by ``app_exception_handler`` with its own status code."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppException):
    """The record does not exist or is outside the caller's ownership scope."""

    def __init__(self, resource: str, identifier: Union[str, Any]):
        super().__init__(
            message=f"{resource} with identifier '{identifier}' not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ResourceConflictError(AppException):
    def __init__(self, resource: str, storage_message: str):
        super().__init__(
            message=f"{resource} could not be saved: {storage_message}",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "storage_error": storage_message}
        )


class StorageUnavailableError(AppException):
    """A catalog read or write failed. Single attempt; the client decides whether to retry."""

    def __init__(self, storage_message: str):
        super().__init__(
            message=f"Storage request failed: {storage_message}",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"storage_error": storage_message, "retryable": True}
        )


class ImportFileError(AppException):
    """The uploaded CSV cannot be processed at all (as opposed to individual bad rows)."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST,
                 filename: Optional[str] = None):
        details = {"filename": filename} if filename else {}
        super().__init__(message=message, status_code=status_code, details=details)


class InsightUnavailableError(AppException):
    def __init__(self, message: str, original_error: Optional[str] = None):
        super().__init__(
            message=f"Insight generation unavailable: {message}",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"original_error": original_error}
        )


def _error_body(request: Request, message: str, details: Any) -> dict:
    return {"error": message, "details": details, "path": request.url.path}


async def app_exception_handler(request: Request, exc: AppException):
    # 4xx at INFO, 5xx at ERROR
    log = logger.error if exc.status_code >= 500 else logger.info
    log(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.message, exc.details)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Field-by-field list; the leading "body"/"query" location is dropped."""
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error["loc"]]
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors.append({
            "field": ".".join(loc) or "request",
            "message": error["msg"],
            "type": error["type"]
        })

    logger.info(f"Validation failed on {request.method} {request.url.path}: {len(errors)} error(s)")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation failed",
            "validation_errors": errors,
            "path": request.url.path
        }
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Supplier, category, shipment and dashboard queries that failed in the backend."""
    storage_message = str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc)
    if isinstance(exc, IntegrityError):
        status_code, message = status.HTTP_409_CONFLICT, "Data integrity constraint violated"
    else:
        status_code, message = status.HTTP_503_SERVICE_UNAVAILABLE, "Storage request failed"

    logger.error(f"[STORAGE] {request.method} {request.url.path}: {storage_message}", exc_info=True)
    return JSONResponse(
        status_code=status_code,
        content=_error_body(request, message, {"storage_error": storage_message})
    )


async def generic_exception_handler(request: Request, exc: Exception):
    logger.critical(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "Internal server error", {})
    )
