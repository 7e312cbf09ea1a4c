from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from .warranty_status import InvalidDateError

logger = logging.getLogger("warrity.errors")


class DomainError(Exception):
    """Base class for errors raised below the routers."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class PermissionDeniedError(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


def _reason(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) and detail else _reason(exc.status_code)
    details = detail if isinstance(detail, (dict, list)) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": [_jsonable_error(err) for err in exc.errors()]},
    )


async def invalid_date_handler(request: Request, exc: InvalidDateError):
    logger.info("request.invalid_date", extra={"extra_data": {"path": request.url.path}})
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="invalid_date",
        message=str(exc),
    )


async def domain_error_handler(request: Request, exc: DomainError):
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


def _jsonable_error(error: dict[str, Any]) -> dict[str, Any]:
    # pydantic puts the original exception object in ``ctx``; keep only its text
    cleaned = dict(error)
    ctx = cleaned.get("ctx")
    if isinstance(ctx, dict):
        cleaned["ctx"] = {key: str(value) for key, value in ctx.items()}
    return cleaned


def register_exception_handlers(app) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(InvalidDateError, invalid_date_handler)
    app.add_exception_handler(DomainError, domain_error_handler)


__all__ = [
    "ConflictError",
    "DomainError",
    "ErrorEnvelope",
    "NotFoundError",
    "PermissionDeniedError",
    "register_exception_handlers",
]
