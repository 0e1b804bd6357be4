"""Domain error taxonomy - translated into JSON responses in main.py"""

from typing import Any, Optional


class AppError(Exception):
    """Base error carrying a user-facing message and a machine-readable code"""

    status_code = 500
    default_code = "SERVER_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        extra: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.extra = extra or {}
        self.headers = headers

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error_code": self.error_code, **self.extra}


class ValidationFailed(AppError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"


class NotFoundOrForbidden(AppError):
    """Unknown id and someone else's resource look the same to the caller"""

    status_code = 404
    default_code = "NOT_FOUND_OR_FORBIDDEN"


class AuthenticationError(AppError):
    status_code = 401
    default_code = "INVALID_TOKEN"


class PermissionDenied(AppError):
    status_code = 403
    default_code = "FORBIDDEN"


class UpstreamError(AppError):
    status_code = 502
    default_code = "UPSTREAM_ERROR"


class ServiceUnavailable(AppError):
    status_code = 503
    default_code = "SERVICE_UNAVAILABLE"
