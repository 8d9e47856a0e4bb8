"""HTTP translation of identity errors."""

from simpleidentity.domain.errors import (
    AccountAlreadyExistsError,
    IdentityError,
    MissingRequiredAuthDataError,
    ProviderExchangeError,
    ProviderNotFoundError,
    TokenVerificationError,
)
from simpleidentity.schemas.error import AuthErrorResponse, ErrorCode

# Checked in order; subclasses must precede their bases.
_IDENTITY_ERROR_STATUS: tuple[tuple[type[IdentityError], int, ErrorCode], ...] = (
    (ProviderNotFoundError, 400, ErrorCode.PROVIDER_NOT_FOUND),
    (MissingRequiredAuthDataError, 400, ErrorCode.MISSING_AUTH_DATA),
    (TokenVerificationError, 401, ErrorCode.TOKEN_VERIFICATION_FAILED),
    (ProviderExchangeError, 502, ErrorCode.PROVIDER_EXCHANGE_FAILED),
    (AccountAlreadyExistsError, 409, ErrorCode.ACCOUNT_ALREADY_EXISTS),
)

_OPAQUE_FAILURE_MESSAGE = "Authentication failed"


class ApiError(Exception):
    """Authentication failure carrying the HTTP status and response body sent to the client."""

    def __init__(self, status_code: int, payload: AuthErrorResponse) -> None:
        self.status_code = status_code
        self.payload = payload
        super().__init__(payload.message)

    @classmethod
    def from_identity_error(cls, exc: IdentityError) -> "ApiError":
        for error_type, status_code, code in _IDENTITY_ERROR_STATUS:
            if isinstance(exc, error_type):
                details = {"field": exc.field} if isinstance(exc, MissingRequiredAuthDataError) else None
                return cls(status_code, AuthErrorResponse(code=code, message=str(exc), details=details))

        # Resolution, creation and repository failures are not described to the caller.
        return cls(500, AuthErrorResponse(code=ErrorCode.AUTHENTICATION_FAILED, message=_OPAQUE_FAILURE_MESSAGE))

    @classmethod
    def validation_failed(cls) -> "ApiError":
        return cls(400, AuthErrorResponse(code=ErrorCode.VALIDATION_ERROR, message="Invalid authentication payload"))


__all__ = ["ApiError"]
