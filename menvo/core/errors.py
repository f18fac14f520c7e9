"""
Error taxonomy shared by all modules.

Every error is an HTTPException so services can raise it directly and FastAPI
renders it as {"detail": {"code": ..., "message": ..., "field": ...}}.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

GENERIC_UPSTREAM_MESSAGE = "Something went wrong, please try again"


class MenvoError(HTTPException):
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"

    def __init__(self, message: str, field: Optional[str] = None, extra: Optional[Dict[str, Any]] = None):
        detail: Dict[str, Any] = {"code": self.code, "message": message}
        if field:
            detail["field"] = field
        if extra:
            detail.update(extra)
        super().__init__(status_code=self.status_code_default, detail=detail)
        self.message = message
        self.field = field


class ValidationError(MenvoError):
    """Missing or malformed input; the user fixes the form and resubmits."""
    status_code_default = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class ConflictError(MenvoError):
    """Slot already booked, duplicate submission, duplicate record."""
    status_code_default = status.HTTP_409_CONFLICT
    code = "conflict"


class AuthError(MenvoError):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    code = "auth_error"


class ForbiddenError(MenvoError):
    status_code_default = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(MenvoError):
    status_code_default = status.HTTP_404_NOT_FOUND
    code = "not_found"


class UpstreamError(MenvoError):
    """Supabase, S3 or an Edge Function failed. The cause is logged, never returned."""
    status_code_default = status.HTTP_502_BAD_GATEWAY
    code = "upstream_error"

    def __init__(self, message: str = GENERIC_UPSTREAM_MESSAGE):
        super().__init__(message)
