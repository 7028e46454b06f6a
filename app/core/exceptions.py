# app/core/exceptions.py

from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


# ------------------------------------------------------------
# ERROR TAXONOMY
# ------------------------------------------------------------
class AppError(HTTPException):
    """
    Base for every error the API reports on purpose.
    `errors` carries field-level detail: [{"field": ..., "message": ...}]
    """
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        errors: Optional[list[dict[str, Any]]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(status_code=self.status_code_default, detail=message, headers=headers)
        self.message = message
        self.errors = errors


class ValidationFailed(AppError):
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed", errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(message, errors=errors)


class Unauthorized(AppError):
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(AppError):
    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied. Insufficient permissions."):
        super().__init__(message)


class NotFound(AppError):
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class Conflict(AppError):
    # The web client treats uniqueness clashes like any other bad request
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None):
        errors = [{"field": field, "message": message}] if field else None
        super().__init__(message, errors=errors)
        self.field = field


class InternalError(AppError):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


# ------------------------------------------------------------
# RESPONSE ENVELOPE
# ------------------------------------------------------------
def error_body(message: str, status_code: int, errors: Optional[list] = None) -> dict:
    body = {"success": False, "message": message, "statusCode": status_code}
    if errors:
        body["errors"] = errors
    return body


def _request_context(request: Request) -> str:
    actor_id = getattr(request.state, "actor_id", None)
    return f"{request.method} {request.url.path} actor={actor_id or 'anonymous'}"


def _field_path(loc: tuple) -> str:
    # ("body", "coordinates", "latitude") -> "coordinates.latitude"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def _clean_message(msg: str) -> str:
    return msg.removeprefix("Value error, ")


# ------------------------------------------------------------
# HANDLERS
# ------------------------------------------------------------
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    errors = getattr(exc, "errors", None)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"

    if exc.status_code >= 500:
        logger.error(f"{_request_context(request)} -> {exc.status_code}: {message}")
    else:
        logger.warning(f"{_request_context(request)} -> {exc.status_code}: {message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, exc.status_code, errors),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": _field_path(tuple(err.get("loc", ()))), "message": _clean_message(err.get("msg", "Invalid value"))}
        for err in exc.errors()
    ]
    logger.warning(f"{_request_context(request)} -> 400: validation failed {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", status.HTTP_400_BAD_REQUEST, errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"{_request_context(request)} -> 500: unhandled error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
