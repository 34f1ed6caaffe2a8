"""
Application error hierarchy and the JSON error envelope.

Every error leaving the API has the shape::

    {"success": false, "error": "...", "code": "...", "statusCode": 400}

Services raise the subclasses below; the handlers registered in
``app.main`` turn them into responses.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_REQUIRED"


class AuthorizationError(AppError):
    status_code = 403
    code = "FORBIDDEN"


class TenantAccessError(AuthorizationError):
    code = "TENANT_ACCESS_DENIED"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class AuthProviderError(AppError):
    status_code = 502
    code = "AUTH_PROVIDER_ERROR"


def format_error_response(error: Exception) -> Dict[str, Any]:
    """Map any exception onto the error envelope."""
    if isinstance(error, AppError):
        body: Dict[str, Any] = {
            "success": False,
            "error": error.message,
            "code": error.code,
            "statusCode": error.status_code,
        }
        field = getattr(error, "field", None)
        if field:
            body["field"] = field
        return body

    return {
        "success": False,
        "error": "An unexpected error occurred",
        "code": "UNKNOWN_ERROR",
        "statusCode": 500,
    }
