"""API error response schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel


class ErrorCode(str, Enum):
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"
    MISSING_AUTH_DATA = "MISSING_AUTH_DATA"
    TOKEN_VERIFICATION_FAILED = "TOKEN_VERIFICATION_FAILED"
    PROVIDER_EXCHANGE_FAILED = "PROVIDER_EXCHANGE_FAILED"
    ACCOUNT_ALREADY_EXISTS = "ACCOUNT_ALREADY_EXISTS"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class AuthErrorResponse(BaseModel):
    """Error body of the authentication endpoints.

    ``details`` is only set for ``MISSING_AUTH_DATA``, naming the absent field.
    """

    code: ErrorCode
    message: str
    details: dict[str, Any] | None = None
