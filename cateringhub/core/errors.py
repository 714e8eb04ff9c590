"""
API error types

Every failure surfaced by the API is an HTTPException carrying a short
machine-readable code next to the human message, so clients can tell an
authorization failure apart from a domain-rule violation without parsing text.
"""

from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse


class APIError(HTTPException):
    def __init__(self, status_code: int, detail: str, code: str, extra: Optional[Any] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code
        self.extra = extra


def unauthorized(message: str = "Authentication required") -> APIError:
    return APIError(status.HTTP_401_UNAUTHORIZED, message, "UNAUTHORIZED")


def forbidden(message: str = "You don't have permission to perform this action") -> APIError:
    return APIError(status.HTTP_403_FORBIDDEN, message, "FORBIDDEN")


def not_found(resource: str = "Resource", message: Optional[str] = None) -> APIError:
    return APIError(status.HTTP_404_NOT_FOUND, message or f"{resource} not found", "NOT_FOUND")


def invalid_input(message: str, extra: Optional[Any] = None) -> APIError:
    return APIError(status.HTTP_400_BAD_REQUEST, message, "INVALID_INPUT", extra)


def conflict(message: str, extra: Optional[Any] = None) -> APIError:
    return APIError(status.HTTP_409_CONFLICT, message, "CONFLICT", extra)


def bad_gateway(message: str) -> APIError:
    return APIError(status.HTTP_502_BAD_GATEWAY, message, "UPSTREAM_ERROR")


def internal(message: str = "Internal server error") -> APIError:
    return APIError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, "INTERNAL_ERROR")


def is_unique_violation(exc: Exception) -> bool:
    """Postgres 23505 as reported by PostgREST."""
    return getattr(exc, "code", None) == "23505" or "23505" in str(exc)


async def api_error_handler(request: Request, exc: APIError):
    content = {"detail": exc.detail, "code": exc.code}
    if exc.extra is not None:
        content["details"] = exc.extra
    return JSONResponse(status_code=exc.status_code, content=content)
